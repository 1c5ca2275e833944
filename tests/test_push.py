from types import SimpleNamespace

from firebase_admin import messaging

from app.models import FcmToken
from app.services import push_notification_service
from app.services.push_notification_service import PushNotificationService


def register(service, tokens):
    for token, user_id in tokens:
        service.register_token(token=token, user_id=user_id)


def test_role_targets_resolve_through_users(db, make_user):
    admin = make_user(email="admin@example.com", role="admin")
    customer = make_user(email="customer@example.com")
    service = PushNotificationService(db)
    register(service, [("admin-tok", admin.id), ("customer-tok", customer.id)])

    tokens = service.get_target_tokens("role", ["admin"])

    assert [t.token for t in tokens] == ["admin-tok"]


def test_unknown_target_type_has_no_tokens(db):
    service = PushNotificationService(db)
    register(service, [("tok", "u1")])
    assert service.get_target_tokens("planet", ["earth"]) == []


def test_inactive_tokens_are_not_targeted(db):
    service = PushNotificationService(db)
    register(service, [("tok-1", "u1"), ("tok-2", "u2")])
    service.unregister_token("tok-2")

    assert [t.token for t in service.get_target_tokens("all")] == ["tok-1"]


def test_firebase_delivery_deactivates_unregistered_tokens(db, monkeypatch):
    service = PushNotificationService(db)
    register(service, [("good-tok", "u1"), ("stale-tok", "u2")])
    sent = []

    def fake_send(message, app=None):
        sent.append(message)
        return SimpleNamespace(
            responses=[
                SimpleNamespace(success=True, exception=None),
                SimpleNamespace(success=False, exception=messaging.UnregisteredError("gone")),
            ]
        )

    monkeypatch.setattr(push_notification_service, "get_firebase_app", lambda: object())
    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send)

    result = service.send_notification(
        title="Booking confirmed",
        body="See you soon",
        target_type="users",
        target_values=["u1", "u2"],
        data={"bookingId": 42},
    )

    assert result["successfulDeliveries"] == 1
    assert result["failedDeliveries"] == 1
    assert sorted(sent[0].tokens) == ["good-tok", "stale-tok"]
    assert sent[0].data["bookingId"] == "42"

    stale = db.query(FcmToken).filter(FcmToken.token == "stale-tok").one()
    assert stale.is_active is False


def test_firebase_failure_counts_whole_batch_as_failed(db, monkeypatch):
    service = PushNotificationService(db)
    register(service, [("tok-1", "u1")])

    def broken_send(message, app=None):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(push_notification_service, "get_firebase_app", lambda: object())
    monkeypatch.setattr(messaging, "send_each_for_multicast", broken_send)

    result = service.send_notification(title="Hi", body="There")

    assert result["success"] is False
    assert result["failedDeliveries"] == 1
