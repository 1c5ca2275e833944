import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLES, require_roles
from ..database import get_db
from ..models import Ad, AdDismissal, User
from ..schemas import AdCreateRequest, AdDismissRequest, model_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ads", tags=["Ads"])


@router.get("")
async def get_ads(userEmail: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Active ads, newest first, without the ones this user dismissed"""
    query = db.query(Ad).filter(Ad.is_active.is_(True))
    if userEmail:
        dismissed = db.query(AdDismissal.ad_id).filter(AdDismissal.user_email == userEmail)
        query = query.filter(Ad.id.notin_(dismissed))

    ads = query.order_by(Ad.created_at.desc(), Ad.id.desc()).all()
    return {"success": True, "ads": [model_to_dict(ad) for ad in ads]}


@router.post("", status_code=201)
async def create_ad(
    data: AdCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    ad = Ad(
        title=data.title,
        content=data.content,
        image_url=data.imageUrl,
        duration=data.duration,
        target_pages=data.targetPages,
        admin_email=data.adminEmail,
        is_active=data.isActive,
    )
    db.add(ad)
    db.commit()
    db.refresh(ad)

    logger.info(f"📢 Ad created by {data.adminEmail}: {ad.title}")
    return {"success": True, "ad": model_to_dict(ad), "message": "Ad created successfully"}


@router.post("/{ad_id}/dismiss")
async def dismiss_ad(ad_id: str, data: AdDismissRequest, db: Session = Depends(get_db)):
    if not db.query(Ad.id).filter(Ad.id == ad_id).first():
        raise HTTPException(status_code=404, detail="Ad not found")

    already_dismissed = (
        db.query(AdDismissal.id)
        .filter(AdDismissal.ad_id == ad_id, AdDismissal.user_email == data.userEmail)
        .first()
    )
    if not already_dismissed:
        db.add(AdDismissal(ad_id=ad_id, user_email=data.userEmail))
        db.commit()

    return {"success": True, "message": "Ad dismissed successfully"}
