from app.models import User
from app.routes.gamification import find_level


def branch_payload(**overrides):
    payload = {
        "name": "Putik Branch",
        "code": "put01",
        "address": "Putik Road",
        "city": "Zamboanga City",
    }
    payload.update(overrides)
    return payload


def test_branches_main_first_then_cached(client):
    first = client.get("/api/branches").json()
    second = client.get("/api/branches").json()

    assert first["source"] == "db"
    assert [b["code"] for b in first["branches"]] == ["TMA01", "BOA01"]
    assert second["source"] == "cache"
    assert second["branches"] == first["branches"]


def test_branches_fall_back_to_defaults_on_database_error(client, broken_db):
    body = client.get("/api/branches").json()

    assert body["success"] is True
    assert body["source"] == "fallback"
    assert {b["code"] for b in body["branches"]} == {"TMA01", "BOA01"}


def test_create_branch_invalidates_cache(client, admin_headers):
    client.get("/api/branches")

    response = client.post("/api/branches", json=branch_payload(), headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["branch"]["code"] == "PUT01"
    listed = client.get("/api/branches").json()
    assert listed["source"] == "db"
    assert "PUT01" in [b["code"] for b in listed["branches"]]


def test_create_branch_duplicate_code(client, admin_headers):
    response = client.post("/api/branches", json=branch_payload(code="tma01"), headers=admin_headers)
    assert response.status_code == 409


def test_create_branch_requires_admin(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    assert client.post("/api/branches", json=branch_payload(), headers=headers).status_code == 403


def test_get_branch_by_id(client):
    assert client.get("/api/branches/branch_main_001").json()["branch"]["code"] == "TMA01"
    assert client.get("/api/branches/nope").status_code == 404


def test_packages_featured_then_popular(client):
    packages = client.get("/api/packages").json()["packages"]
    assert [p["name"] for p in packages] == ["VIP Gold", "Basic Car Wash", "VIP Silver", "Classic"]


def test_packages_fallback(client, broken_db):
    body = client.get("/api/packages").json()
    assert len(body["packages"]) == 4


def test_levels_sorted_by_points(client):
    levels = client.get("/api/gamification/levels").json()["levels"]
    assert [level["minPoints"] for level in levels] == [0, 1000, 5000]


def test_levels_fallback(client, broken_db):
    levels = client.get("/api/gamification/levels").json()["levels"]
    assert levels[0]["name"] == "Bronze Member"


def test_user_level_with_next_tier(client, make_user):
    user = make_user(loyalty_points=1200)

    data = client.get(f"/api/gamification/levels/user/{user.id}").json()["data"]

    assert data["currentLevel"]["name"] == "Silver Member"
    assert data["nextLevel"]["name"] == "Gold Member"
    assert data["pointsToNext"] == 3800


def test_user_level_top_tier_has_no_next(client, make_user):
    user = make_user(loyalty_points=9000)

    data = client.get(f"/api/gamification/levels/user/{user.id}").json()["data"]

    assert data["currentLevel"]["name"] == "Gold Member"
    assert data["nextLevel"] is None
    assert data["pointsToNext"] == 0


def test_user_level_unknown_user(client):
    assert client.get("/api/gamification/levels/user/nobody").status_code == 404


def test_subscription_upgrade_and_approval(client, db, make_user, admin_headers):
    user = make_user()

    upgrade = client.post(
        "/api/subscriptions/upgrade",
        json={"userId": user.id, "packageId": "pkg_vip_gold", "paymentMethod": "gcash"},
    )
    assert upgrade.status_code == 201
    subscription = upgrade.json()["subscription"]
    assert (subscription["status"], subscription["finalPrice"]) == ("pending", 3000.0)

    pending = client.get("/api/subscriptions", params={"status": "pending", "userId": user.id}).json()
    assert [s["id"] for s in pending["subscriptions"]] == [subscription["id"]]

    approved = client.put(f"/api/subscriptions/{subscription['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["subscription"]["status"] == "active"
    assert approved.json()["subscription"]["endDate"] is not None

    db.expire_all()
    refreshed = db.query(User).filter(User.id == user.id).one()
    assert refreshed.subscription_status == "vip-gold"

    again = client.put(f"/api/subscriptions/{subscription['id']}/approve", headers=admin_headers)
    assert again.status_code == 409


def test_subscription_upgrade_unknown_package(client, make_user):
    user = make_user()
    response = client.post("/api/subscriptions/upgrade", json={"userId": user.id, "packageId": "platinum"})
    assert response.status_code == 404


def test_approve_unknown_subscription(client, admin_headers):
    assert client.put("/api/subscriptions/nope/approve", headers=admin_headers).status_code == 404


def test_find_level_between_tiers_still_has_next():
    levels = [
        {"name": "Bronze", "minPoints": 0, "maxPoints": 99},
        {"name": "Silver", "minPoints": 150, "maxPoints": None},
    ]

    current, upcoming = find_level(levels, 120)

    assert current is None
    assert upcoming["name"] == "Silver"


def test_find_level_prefers_highest_overlapping_tier():
    levels = [
        {"name": "Bronze", "minPoints": 0, "maxPoints": 500},
        {"name": "Silver", "minPoints": 300, "maxPoints": 900},
        {"name": "Gold", "minPoints": 1000, "maxPoints": None},
    ]

    current, upcoming = find_level(levels, 400)

    assert current["name"] == "Silver"
    assert upcoming["name"] == "Gold"
