import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLES, require_roles
from ..database import get_db
from ..models import PackageSubscription, ServicePackage, User
from ..schemas import SubscriptionUpgradeRequest, model_to_dict
from ..seed import SUBSCRIPTION_PRICES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])

SUBSCRIPTION_PERIOD_DAYS = 30


def _resolve_package(db: Session, package_id: str) -> tuple[float, str]:
    """Price and membership tier for a package id or tier name"""
    package = db.query(ServicePackage).filter(ServicePackage.id == package_id).first()
    if package:
        tier = package.name.strip().lower().replace(" ", "-")
        return float(package.base_price), tier
    if package_id in SUBSCRIPTION_PRICES:
        return SUBSCRIPTION_PRICES[package_id], package_id
    raise HTTPException(status_code=404, detail="Package not found")


@router.get("")
async def get_subscriptions(
    status: str = Query("active"),
    userId: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(PackageSubscription)
    if status and status != "all":
        query = query.filter(PackageSubscription.status == status)
    if userId:
        query = query.filter(PackageSubscription.user_id == userId)

    subscriptions = query.order_by(PackageSubscription.created_at.desc()).all()
    logger.info(f"📋 Subscriptions fetched: {len(subscriptions)}")
    return {"success": True, "subscriptions": [model_to_dict(s) for s in subscriptions]}


@router.post("/upgrade", status_code=201)
async def upgrade_subscription(data: SubscriptionUpgradeRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == data.userId).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    price, _ = _resolve_package(db, data.packageId)
    subscription = PackageSubscription(
        user_id=user.id,
        package_id=data.packageId,
        status="pending",
        original_price=price,
        final_price=price,
        payment_method=data.paymentMethod,
        auto_renew=True,
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)

    logger.info(f"📦 Upgrade requested by {user.email}: {data.packageId} (₱{price:.2f})")
    return {
        "success": True,
        "subscription": model_to_dict(subscription),
        "message": "Subscription upgrade pending approval",
    }


@router.put("/{subscription_id}/approve")
async def approve_subscription(
    subscription_id: str,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    subscription = (
        db.query(PackageSubscription).filter(PackageSubscription.id == subscription_id).first()
    )
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")
    if subscription.status != "pending":
        raise HTTPException(
            status_code=409, detail=f"Subscription is already {subscription.status}"
        )

    _, tier = _resolve_package(db, subscription.package_id)
    now = datetime.utcnow()
    end_date = now + timedelta(days=SUBSCRIPTION_PERIOD_DAYS)

    subscription.status = "active"
    subscription.payment_status = "paid"
    subscription.start_date = now
    subscription.end_date = end_date

    user = db.query(User).filter(User.id == subscription.user_id).first()
    if user:
        user.subscription_status = tier
        user.subscription_expiry = end_date

    db.commit()
    db.refresh(subscription)

    logger.info(f"✅ Subscription {subscription.id} approved by {current_user.email}")
    return {
        "success": True,
        "subscription": model_to_dict(subscription),
        "message": "Subscription approved",
    }
