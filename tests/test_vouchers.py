from datetime import datetime, timedelta

import pytest

from app.models import Booking, Voucher, VoucherRedemption


@pytest.fixture
def make_voucher(db):
    def _make_voucher(code="WELCOME20", **overrides) -> Voucher:
        fields = {
            "code": code,
            "title": "Welcome discount",
            "discount_type": "percentage",
            "discount_value": 20,
            "audience": "all",
            "per_user_limit": 1,
        }
        fields.update(overrides)
        voucher = Voucher(**fields)
        db.add(voucher)
        db.commit()
        db.refresh(voucher)
        return voucher

    return _make_voucher


def validate(client, **payload):
    return client.post("/api/vouchers/validate", json=payload)


def test_percentage_discount_is_case_insensitive(client, make_voucher):
    make_voucher()

    response = validate(client, code="welcome20", bookingAmount=333.33)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["code"] == "WELCOME20"
    assert data["discountAmount"] == 66.67
    assert data["finalAmount"] == 266.66


def test_fixed_discount_capped_at_amount(client, make_voucher):
    make_voucher(code="FLAT500", discount_type="fixed", discount_value=500)

    data = validate(client, code="FLAT500", bookingAmount=300).json()["data"]

    assert data["discountAmount"] == 300
    assert data["finalAmount"] == 0


def test_requires_code_and_numeric_amount(client):
    assert validate(client, code="X").status_code == 400
    assert validate(client, code="X", bookingAmount=None).json()["error"] == "code and bookingAmount are required"


def test_unknown_code(client):
    response = validate(client, code="NOPE", bookingAmount=100)
    assert response.status_code == 404
    assert response.json()["error"] == "Invalid voucher code"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"is_active": False}, "Voucher is inactive"),
        ({"valid_from": datetime.utcnow() + timedelta(days=1)}, "Voucher not yet active"),
        ({"valid_until": datetime.utcnow() - timedelta(days=1)}, "Voucher expired"),
        ({"usage_limit": 5, "total_used": 5}, "Voucher usage limit reached"),
        ({"minimum_amount": 500}, "Minimum amount ₱500.00 not met"),
    ],
)
def test_voucher_rules(client, make_voucher, overrides, message):
    make_voucher(**overrides)

    response = validate(client, code="WELCOME20", bookingAmount=100)

    assert response.status_code == 400
    assert response.json()["error"] == message


def test_registered_only_voucher_needs_email(client, make_voucher):
    make_voucher(audience="registered")

    anonymous = validate(client, code="WELCOME20", bookingAmount=100)
    registered = validate(client, code="WELCOME20", bookingAmount=100, userEmail="a@example.com")

    assert anonymous.status_code == 403
    assert anonymous.json()["error"] == "Voucher is only for registered users"
    assert registered.status_code == 200


def test_redeem_stamps_booking_and_enforces_per_user_limit(client, db, make_voucher):
    voucher = make_voucher()
    booking = Booking(
        confirmation_code="FAC-000001-AAA",
        category="carwash",
        service="Classic Wash",
        date="2026-11-02",
        time_slot="10:00",
        branch="Tumaga Branch",
        full_name="Juan Santos",
        mobile="09171234567",
        email="a@example.com",
        base_price=500,
        total_price=500,
    )
    db.add(booking)
    db.commit()

    response = client.post(
        "/api/vouchers/redeem",
        json={"code": "welcome20", "bookingId": booking.id, "discountAmount": 100, "userEmail": "a@example.com"},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Voucher redeemed"
    db.expire_all()
    assert db.query(Voucher).filter(Voucher.id == voucher.id).one().total_used == 1
    stamped = db.query(Booking).filter(Booking.id == booking.id).one()
    assert (stamped.voucher_code, stamped.voucher_discount) == ("WELCOME20", 100)
    assert db.query(VoucherRedemption).count() == 1

    again = validate(client, code="WELCOME20", bookingAmount=500, userEmail="a@example.com")
    assert again.status_code == 400
    assert again.json()["error"] == "You have already used this voucher"


def test_redeem_requires_fields(client):
    response = client.post("/api/vouchers/redeem", json={"code": "WELCOME20"})
    assert response.status_code == 400
    assert response.json()["error"] == "code, bookingId and discountAmount are required"


def test_list_vouchers_by_audience_and_status(client, make_voucher):
    make_voucher(code="ALL10")
    make_voucher(code="MEMBERS", audience="registered")
    make_voucher(code="GUESTS", audience="guest")
    make_voucher(code="OLD", valid_until=datetime.utcnow() - timedelta(days=1))

    registered = client.get("/api/vouchers", params={"audience": "registered"}).json()["vouchers"]
    active = client.get("/api/vouchers", params={"status": "active"}).json()["vouchers"]

    assert {v["code"] for v in registered} == {"ALL10", "MEMBERS", "OLD"}
    assert "OLD" not in {v["code"] for v in active}
    assert len(active) == 3
