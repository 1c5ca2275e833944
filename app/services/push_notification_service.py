"""
Push notifications through Firebase Cloud Messaging

Tokens are registered per device in fcm_tokens; every send is recorded in
push_notifications. Without Firebase credentials deliveries are recorded
as mock-sent so the rest of the flow can be exercised in development.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy.orm import Session

from .. import config
from ..models import FcmToken, PushNotification, User

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_TYPES = ["booking_updates", "loyalty_updates", "system"]

# FCM accepts at most 500 tokens per multicast
MULTICAST_BATCH_SIZE = 500

_firebase_app = None


def get_firebase_app():
    """Initialize Firebase Admin once; None when no credentials are configured"""
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app

    try:
        _firebase_app = firebase_admin.get_app()
        return _firebase_app
    except ValueError:
        pass

    if not (config.FIREBASE_CREDENTIALS_FILE or config.FIREBASE_PROJECT_ID):
        return None

    try:
        if config.FIREBASE_CREDENTIALS_FILE:
            cred = credentials.Certificate(config.FIREBASE_CREDENTIALS_FILE)
        else:
            cred = credentials.ApplicationDefault()
        _firebase_app = firebase_admin.initialize_app(cred, {"projectId": config.FIREBASE_PROJECT_ID})
        logger.info("✅ Firebase Admin initialized for push notifications")
    except Exception as e:
        logger.error(f"❌ Failed to initialize Firebase Admin: {e}")
        logger.info("🔧 Using mock push notification delivery")
        return None

    return _firebase_app


def _is_invalid_token_error(exc: Optional[Exception]) -> bool:
    return isinstance(exc, (messaging.UnregisteredError, firebase_exceptions.InvalidArgumentError))


class PushNotificationService:
    """Service layer for FCM token registration and push delivery"""

    def __init__(self, db: Session):
        self.db = db

    def register_token(
        self,
        token: str,
        user_id: Optional[str] = None,
        device_type: str = "web",
        browser_info: Optional[str] = None,
        device_name: Optional[str] = None,
        notification_types: Optional[list[str]] = None,
    ) -> FcmToken:
        """Insert a token or re-activate and re-assign an existing one"""
        fcm_token = self.db.query(FcmToken).filter(FcmToken.token == token).first()
        if fcm_token is None:
            fcm_token = FcmToken(token=token)
            self.db.add(fcm_token)
            logger.info("✅ FCM token registered")
        else:
            logger.info("✅ FCM token updated")

        fcm_token.user_id = user_id
        fcm_token.device_type = device_type or "web"
        fcm_token.browser_info = browser_info
        fcm_token.device_name = device_name
        fcm_token.notification_types = notification_types or list(DEFAULT_NOTIFICATION_TYPES)
        fcm_token.is_active = True
        fcm_token.last_used = datetime.utcnow()

        self.db.commit()
        self.db.refresh(fcm_token)
        return fcm_token

    def unregister_token(self, token: str, user_id: Optional[str] = None) -> int:
        """Deactivate a token; returns how many rows changed"""
        query = self.db.query(FcmToken).filter(FcmToken.token == token)
        if user_id:
            query = query.filter(FcmToken.user_id == user_id)
        updated = query.update({FcmToken.is_active: False}, synchronize_session=False)
        self.db.commit()
        return updated

    def get_target_tokens(self, target_type: str, values: Optional[list[str]] = None) -> list[FcmToken]:
        query = self.db.query(FcmToken).filter(FcmToken.is_active.is_(True))
        values = values or []

        if target_type == "user":
            if not values:
                return []
            query = query.filter(FcmToken.user_id == values[0])
        elif target_type == "users":
            if not values:
                return []
            query = query.filter(FcmToken.user_id.in_(values))
        elif target_type == "role":
            if not values:
                return []
            query = query.join(User, User.id == FcmToken.user_id).filter(User.role.in_(values))
        elif target_type != "all":
            logger.warning(f"⚠️ Unknown push target type: {target_type}")
            return []

        return query.all()

    def send_notification(
        self,
        title: str,
        body: str,
        target_type: str = "all",
        target_values: Optional[list[str]] = None,
        notification_type: str = "system",
        data: Optional[dict[str, Any]] = None,
        image_url: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> dict:
        tokens = self.get_target_tokens(target_type, target_values)
        if not tokens:
            logger.warning("⚠️ No target tokens found for notification")
            return {
                "success": False,
                "notificationId": None,
                "totalTargets": 0,
                "successfulDeliveries": 0,
                "failedDeliveries": 0,
            }

        record = PushNotification(
            title=title,
            body=body,
            image_url=image_url,
            target_type=target_type,
            target_ids=target_values or [],
            notification_type=notification_type,
            data=data,
            total_targets=len(tokens),
            status="sending",
            created_by=created_by,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        app = get_firebase_app()
        if app is None:
            logger.warning("🔧 Firebase Admin not initialized, using mock delivery")
            successful, failed = len(tokens), 0
        else:
            successful, failed = self._deliver(app, record, tokens)

        record.successful_deliveries = successful
        record.failed_deliveries = failed
        record.status = "failed" if failed == len(tokens) else "sent"
        record.sent_at = datetime.utcnow()
        self.db.commit()

        logger.info(f"📤 Notification sent: {successful}/{len(tokens)} successful")
        return {
            "success": successful > 0,
            "notificationId": record.id,
            "totalTargets": len(tokens),
            "successfulDeliveries": successful,
            "failedDeliveries": failed,
        }

    def _deliver(self, app, record: PushNotification, tokens: list[FcmToken]) -> tuple[int, int]:
        payload_data = {"type": record.notification_type, "notificationId": record.id}
        for key, value in (record.data or {}).items():
            payload_data[str(key)] = value if isinstance(value, str) else str(value)

        successful = failed = 0
        for start in range(0, len(tokens), MULTICAST_BATCH_SIZE):
            batch = tokens[start : start + MULTICAST_BATCH_SIZE]
            message = messaging.MulticastMessage(
                tokens=[t.token for t in batch],
                notification=messaging.Notification(
                    title=record.title, body=record.body, image=record.image_url
                ),
                data=payload_data,
                webpush=messaging.WebpushConfig(
                    notification=messaging.WebpushNotification(
                        title=record.title,
                        body=record.body,
                        icon="/favicon.ico",
                        badge="/favicon.ico",
                        require_interaction=True,
                    ),
                ),
            )
            try:
                response = messaging.send_each_for_multicast(message, app=app)
            except Exception as e:
                logger.error(f"❌ Failed to send notification via Firebase: {e}")
                failed += len(batch)
                continue

            for fcm_token, result in zip(batch, response.responses):
                if result.success:
                    successful += 1
                    continue
                failed += 1
                if _is_invalid_token_error(result.exception):
                    fcm_token.is_active = False
                    logger.info("🧹 Deactivated invalid FCM token")

        return successful, failed
