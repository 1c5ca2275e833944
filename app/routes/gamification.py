import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import CustomerLevel, User
from ..schemas import model_to_dict
from ..seed import DEFAULT_LEVELS, fallback_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gamification", tags=["Gamification"])


def _load_levels(db: Session) -> list[dict]:
    try:
        levels = (
            db.query(CustomerLevel)
            .filter(CustomerLevel.is_active.is_(True))
            .order_by(CustomerLevel.min_points)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Get customer levels error, serving defaults: {e}")
        return fallback_rows(CustomerLevel, DEFAULT_LEVELS)
    return [model_to_dict(level) for level in levels]


def find_level(levels: list[dict], points: int) -> tuple[Optional[dict], Optional[dict]]:
    """
    Current level is the highest tier whose range contains the points; the
    next level is the lowest tier starting above them. Both are looked up
    independently, so points in a gap between tiers still get a next level.

    Returns:
        Tuple of (current level, next level); levels must be sorted by minPoints
    """
    containing = [
        level
        for level in levels
        if level["minPoints"] <= points
        and (level.get("maxPoints") is None or points <= level["maxPoints"])
    ]
    current = containing[-1] if containing else None
    upcoming = next((level for level in levels if level["minPoints"] > points), None)
    return current, upcoming


@router.get("/levels")
async def get_customer_levels(db: Session = Depends(get_db)):
    return {"success": True, "levels": _load_levels(db)}


@router.get("/levels/user/{user_id}")
async def get_user_level(user_id: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    points = user.loyalty_points or 0
    current, upcoming = find_level(_load_levels(db), points)
    return {
        "success": True,
        "data": {
            "userId": user.id,
            "loyaltyPoints": points,
            "currentLevel": current,
            "nextLevel": upcoming,
            "pointsToNext": max(upcoming["minPoints"] - points, 0) if upcoming else 0,
        },
    }
