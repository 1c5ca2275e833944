"""
Branch directory

The active branch list is read on almost every page, so it is served from
the cache for BRANCHES_CACHE_TTL_SECONDS and falls back to the built-in
branches when the database cannot be read.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import config
from ..auth import ADMIN_ROLES, require_roles
from ..cache import BRANCHES_CACHE_KEY, cache, invalidate_branches_cache
from ..database import get_db
from ..models import Branch, User
from ..schemas import BranchCreateRequest, model_to_dict
from ..seed import DEFAULT_BRANCHES, fallback_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/branches", tags=["Branches"])


@router.get("")
async def get_branches(db: Session = Depends(get_db)):
    cached = cache.get(BRANCHES_CACHE_KEY)
    if cached is not None:
        return {"success": True, "branches": cached, "source": "cache"}

    try:
        rows = (
            db.query(Branch)
            .filter(Branch.is_active.is_(True))
            .order_by(Branch.is_main_branch.desc(), Branch.name)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Get branches error, serving defaults: {e}")
        return {"success": True, "branches": fallback_rows(Branch, DEFAULT_BRANCHES), "source": "fallback"}

    branches = [model_to_dict(b) for b in rows]
    cache.set(BRANCHES_CACHE_KEY, branches, config.BRANCHES_CACHE_TTL_SECONDS)
    return {"success": True, "branches": branches, "source": "db"}


@router.post("", status_code=201)
async def create_branch(
    data: BranchCreateRequest,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    if db.query(Branch.id).filter(Branch.code == data.code).first():
        raise HTTPException(status_code=409, detail=f"Branch code {data.code} already exists")

    branch = Branch(
        name=data.name,
        code=data.code,
        type=data.type,
        address=data.address,
        city=data.city,
        phone=data.phone,
        email=data.email,
        latitude=data.latitude,
        longitude=data.longitude,
        manager_name=data.managerName,
        capacity=data.capacity,
        services=data.services,
        operating_hours=data.operatingHours,
        is_main_branch=data.isMainBranch,
    )
    db.add(branch)
    db.commit()
    db.refresh(branch)
    invalidate_branches_cache()

    logger.info(f"🏢 Branch {branch.code} created by {current_user.email}")
    return {"success": True, "branch": model_to_dict(branch), "message": "Branch created successfully"}


@router.get("/{branch_id}")
async def get_branch(branch_id: str, db: Session = Depends(get_db)):
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if not branch:
        raise HTTPException(status_code=404, detail="Branch not found")
    return {"success": True, "branch": model_to_dict(branch)}
