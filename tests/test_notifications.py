from datetime import datetime, timedelta

from app.models import FcmToken, PushNotification, SystemNotification
from app.services import push_notification_service


def add_notification(db, title, created_at, target_roles=None, target_users=None):
    notification = SystemNotification(
        type="system",
        title=title,
        message=f"{title} message",
        target_roles=target_roles or [],
        target_users=target_users,
        created_at=created_at,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def test_notifications_require_user_and_role(client):
    response = client.get("/api/notifications", params={"userId": "u1"})
    assert response.status_code == 400
    assert response.json()["error"] == "userId and userRole are required"


def test_notifications_filtered_by_role_or_user_newest_first(client, db):
    now = datetime.utcnow()
    older = add_notification(db, "For admins", now - timedelta(minutes=5), target_roles=["admin"])
    newer = add_notification(db, "For u1", now, target_users=["u1"])
    add_notification(db, "For cashiers", now, target_roles=["cashier"])

    body = client.get("/api/notifications", params={"userId": "u1", "userRole": "admin"}).json()

    assert [n["id"] for n in body["notifications"]] == [newer.id, older.id]
    assert all(n["isRead"] is False for n in body["notifications"])


def test_mark_read_is_idempotent(client, db):
    notification = add_notification(db, "Hello", datetime.utcnow(), target_roles=["admin"])

    for _ in range(2):
        response = client.put(f"/api/notifications/{notification.id}/read", json={"userId": "u1"})
        assert response.status_code == 200

    db.refresh(notification)
    assert [entry["userId"] for entry in notification.read_by] == ["u1"]

    listed = client.get("/api/notifications", params={"userId": "u1", "userRole": "admin"}).json()
    assert listed["notifications"][0]["isRead"] is True

    other_user = client.get("/api/notifications", params={"userId": "u2", "userRole": "admin"}).json()
    assert other_user["notifications"][0]["isRead"] is False


def test_mark_read_unknown_notification(client):
    response = client.put("/api/notifications/missing/read", json={"userId": "u1"})
    assert response.status_code == 404


def test_register_token_upserts(client, db):
    first = client.post("/api/notifications/register-token", json={"token": "tok-1", "userId": "u1"})
    second = client.post(
        "/api/notifications/register-token",
        json={"token": "tok-1", "userId": "u2", "deviceType": "android"},
    )

    assert first.status_code == 200
    assert first.json()["tokenId"] == second.json()["tokenId"]
    token = db.query(FcmToken).one()
    assert (token.user_id, token.device_type, token.is_active) == ("u2", "android", True)


def test_unregister_token(client, db):
    client.post("/api/notifications/register-token", json={"token": "tok-1", "userId": "u1"})

    assert client.post("/api/notifications/unregister-token", json={"token": "tok-1"}).status_code == 200
    assert client.post("/api/notifications/unregister-token", json={"token": "nope"}).status_code == 404
    assert db.query(FcmToken).one().is_active is False


def test_send_without_firebase_records_mock_delivery(client, db, monkeypatch, admin_headers):
    monkeypatch.setattr(push_notification_service, "get_firebase_app", lambda: None)
    for token, user_id in (("tok-1", "u1"), ("tok-2", "u2"), ("tok-3", "u3")):
        client.post("/api/notifications/register-token", json={"token": token, "userId": user_id})

    response = client.post(
        "/api/notifications/send",
        json={"title": "Promo", "body": "50% off", "targetType": "users", "targetValues": ["u1", "u3"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success"] is True
    assert data["totalTargets"] == 2
    assert data["successfulDeliveries"] == 2
    record = db.query(PushNotification).one()
    assert record.status == "sent"


def test_send_requires_target_values_for_user_targets(client, admin_headers):
    response = client.post(
        "/api/notifications/send",
        json={"title": "Hi", "body": "There", "targetType": "user"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_send_with_no_tokens_reports_failure(client, monkeypatch, admin_headers):
    monkeypatch.setattr(push_notification_service, "get_firebase_app", lambda: None)

    response = client.post(
        "/api/notifications/send", json={"title": "Hi", "body": "There"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["data"]["totalTargets"] == 0


def test_broadcast_requires_staff_session(client, make_user, auth_headers):
    payload = {"title": "Hi", "body": "There"}
    customer_headers = auth_headers(make_user())

    assert client.post("/api/notifications/send", json=payload).status_code == 401
    assert client.post("/api/notifications/send", json=payload, headers=customer_headers).status_code == 403
