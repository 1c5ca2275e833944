"""
System notifications (in-app banners) and FCM push notifications
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLES, require_roles
from ..database import get_db
from ..models import SystemNotification, User
from ..schemas import (
    MarkReadRequest,
    RegisterTokenRequest,
    SendPushRequest,
    UnregisterTokenRequest,
    model_to_dict,
)
from ..services.push_notification_service import PushNotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _is_targeted(notification: SystemNotification, user_id: str, user_role: str) -> bool:
    return user_role in (notification.target_roles or []) or user_id in (
        notification.target_users or []
    )


def _is_read_by(notification: SystemNotification, user_id: str) -> bool:
    return any(entry.get("userId") == user_id for entry in notification.read_by or [])


@router.get("")
async def get_notifications(
    userId: Optional[str] = Query(None),
    userRole: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Notifications addressed to a user directly or through their role"""
    if not userId or not userRole:
        raise HTTPException(status_code=400, detail="userId and userRole are required")

    rows = (
        db.query(SystemNotification)
        .order_by(SystemNotification.created_at.desc(), SystemNotification.id.desc())
        .all()
    )

    notifications = []
    for notification in rows:
        if not _is_targeted(notification, userId, userRole):
            continue
        entry = model_to_dict(notification)
        entry["isRead"] = _is_read_by(notification, userId)
        notifications.append(entry)

    return {"success": True, "notifications": notifications}


@router.put("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    data: MarkReadRequest,
    db: Session = Depends(get_db),
):
    notification = db.query(SystemNotification).filter(SystemNotification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not _is_read_by(notification, data.userId):
        # JSON columns only detect reassignment
        notification.read_by = list(notification.read_by or []) + [
            {"userId": data.userId, "readAt": datetime.utcnow().isoformat() + "Z"}
        ]
        db.commit()

    return {"success": True, "message": "Notification marked as read"}


@router.post("/register-token")
async def register_token(data: RegisterTokenRequest, db: Session = Depends(get_db)):
    fcm_token = PushNotificationService(db).register_token(
        token=data.token,
        user_id=data.userId,
        device_type=data.deviceType,
        browser_info=data.browserInfo,
        device_name=data.deviceName,
        notification_types=data.notificationTypes,
    )
    return {"success": True, "message": "FCM token registered successfully", "tokenId": fcm_token.id}


@router.post("/unregister-token")
async def unregister_token(data: UnregisterTokenRequest, db: Session = Depends(get_db)):
    updated = PushNotificationService(db).unregister_token(data.token)
    if not updated:
        raise HTTPException(status_code=404, detail="Token not found")
    return {"success": True, "message": "FCM token unregistered successfully"}


@router.post("/send")
async def send_push_notification(
    data: SendPushRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    if data.targetType != "all" and not data.targetValues:
        raise HTTPException(status_code=400, detail="targetValues are required for this targetType")

    result = PushNotificationService(db).send_notification(
        title=data.title,
        body=data.body,
        target_type=data.targetType,
        target_values=data.targetValues,
        notification_type=data.notificationType,
        data=data.data,
        image_url=data.imageUrl,
    )
    return {"success": result["success"], "data": result}
