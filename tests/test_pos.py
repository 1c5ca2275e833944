import pytest

from app.domain.pos import router as pos_router
from app.domain.pos.service import reconcile
from app.models import Booking, PosSession
from app.shared.money import round_to_cents


@pytest.fixture(autouse=True)
def captured_events(monkeypatch):
    events = []

    async def fake_transaction_event(payload):
        events.append(("pos.transaction.created", payload))

    async def fake_expense_event(payload):
        events.append(("pos.expense.created", payload))

    monkeypatch.setattr(pos_router, "emit_transaction_created", fake_transaction_event)
    monkeypatch.setattr(pos_router, "emit_expense_created", fake_expense_event)
    return events


def sale(number, total, method="cash", **overrides):
    payload = {
        "transactionNumber": number,
        "items": [{"name": "Tire shine", "unitPrice": total, "quantity": 1}],
        "subtotal": total,
        "totalAmount": total,
        "paymentMethod": method,
        "cashierInfo": {"id": "cashier-1", "name": "Ana"},
        "branchId": "branch_main_001",
    }
    payload.update(overrides)
    return payload


def open_session(client, opening_balance=1000):
    response = client.post(
        "/api/pos/sessions/open",
        json={"cashierId": "cashier-1", "cashierName": "Ana", "openingBalance": opening_balance},
    )
    assert response.status_code == 201
    return response.json()["sessionId"]


def test_round_to_cents_rounds_half_up():
    assert round_to_cents(2.675) == 2.68
    assert round_to_cents(0.125) == 0.13
    assert round_to_cents(None) == 0.0


def test_reconcile_balanced_within_a_cent():
    result = reconcile(
        opening_balance=1000,
        sales=[(250, "cash"), (100.10, "cash"), (500, "gcash"), (300, "card"), (20, None), (99, "voucher")],
        expenses=[50.05],
        actual_cash=1320.06,
        actual_digital=800,
    )

    assert result["total_cash_sales"] == 370.10
    assert result["expected_cash"] == 1320.05
    assert result["expected_digital"] == 800.0
    assert result["cash_variance"] == 0.01
    assert result["is_balanced"] is True
    assert result["closing_balance"] == 2120.06


def test_reconcile_flags_variance():
    result = reconcile(1000, [(250, "cash")], [], actual_cash=1200, actual_digital=0)
    assert result["cash_variance"] == -50.0
    assert result["is_balanced"] is False


def test_categories_sorted_and_fallback(client, broken_db):
    body = client.get("/api/pos/categories").json()
    assert [c["name"] for c in body["categories"]] == [
        "Car Wash Services",
        "Detailing",
        "Car Care Products",
    ]


def test_categories_from_database(client):
    names = [c["name"] for c in client.get("/api/pos/categories").json()["categories"]]
    assert names == ["Car Wash Services", "Detailing", "Car Care Products"]


def test_create_transaction_stores_items_and_emits(client, captured_events):
    response = client.post("/api/pos/transactions", json=sale("TXN-001", 150))

    assert response.status_code == 201
    transaction = response.json()["transaction"]
    assert transaction["amountPaid"] == 150
    assert transaction["cashierName"] == "Ana"
    assert [item["itemName"] for item in transaction["items"]] == ["Tire shine"]

    event_name, payload = captured_events[0]
    assert event_name == "pos.transaction.created"
    assert payload["branchId"] == "branch_main_001"
    assert payload["transactionNumber"] == "TXN-001"


def test_create_transaction_validation(client):
    missing = client.post("/api/pos/transactions", json=sale("TXN-002", 150, paymentMethod=None))
    client.post("/api/pos/transactions", json=sale("TXN-003", 150))
    duplicate = client.post("/api/pos/transactions", json=sale("TXN-003", 150))

    assert missing.status_code == 400
    assert duplicate.status_code == 409


def test_list_transactions_by_date_and_branch(client):
    client.post("/api/pos/transactions", json=sale("TXN-A", 100))
    client.post("/api/pos/transactions", json=sale("TXN-B", 200, branchId="branch_boalan_001"))

    listed = client.get("/api/pos/transactions", params={"branchId": "branch_boalan_001"}).json()
    assert [t["transactionNumber"] for t in listed["transactions"]] == ["TXN-B"]

    long_ago = client.get("/api/pos/transactions", params={"date": "2001-01-01"}).json()
    assert long_ago["transactions"] == []

    bad_date = client.get("/api/pos/transactions", params={"date": "01/01/2001"})
    assert bad_date.status_code == 400


def test_session_lifecycle_with_reconciliation(client, db, captured_events):
    session_id = open_session(client, opening_balance=1000)

    current = client.get("/api/pos/sessions/current/cashier-1").json()["session"]
    assert current["id"] == session_id

    client.post("/api/pos/transactions", json=sale("TXN-1", 250.50, "cash"))
    client.post("/api/pos/transactions", json=sale("TXN-2", 400, "gcash"))
    client.post(
        "/api/bookings",
        json={
            "category": "carwash",
            "service": "Classic Wash",
            "date": "2026-11-02",
            "timeSlot": "09:00",
            "branch": "Tumaga Branch",
            "fullName": "Walk In",
            "mobile": "09171234567",
            "email": "walkin@example.com",
            "basePrice": 300,
            "totalPrice": 300,
            "paymentMethod": "card",
        },
    )
    expense = client.post(
        "/api/pos/expenses",
        json={
            "posSessionId": session_id,
            "category": "supplies",
            "description": "Microfiber towels",
            "amount": 75.25,
            "recordedBy": "cashier-1",
            "recordedByName": "Ana",
        },
    )
    assert expense.status_code == 201
    assert ("pos.expense.created", expense.json()["expense"]) in captured_events

    response = client.post(
        f"/api/pos/sessions/close/{session_id}",
        json={"actualCash": 1175.25, "actualDigital": 700, "remittanceNotes": "All good"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["isBalanced"] is True
    assert body["cashVariance"] == 0.0
    assert body["digitalVariance"] == 0.0
    assert body["closingBalance"] == 1875.25
    assert body["message"] == "POS closed successfully and balanced!"

    session = db.query(PosSession).filter(PosSession.id == session_id).one()
    assert session.status == "closed"
    assert session.expected_cash == 1175.25
    assert session.total_card_sales == 300.0
    assert db.query(Booking).count() == 1

    assert client.get("/api/pos/sessions/current/cashier-1").json()["session"] is None
    closed_again = client.post(
        f"/api/pos/sessions/close/{session_id}", json={"actualCash": 0, "actualDigital": 0}
    )
    assert closed_again.status_code == 409


def test_close_with_variance(client):
    session_id = open_session(client, opening_balance=500)
    client.post("/api/pos/transactions", json=sale("TXN-1", 100, "cash"))

    body = client.post(
        f"/api/pos/sessions/close/{session_id}", json={"actualCash": 550, "actualDigital": 0}
    ).json()

    assert body["isBalanced"] is False
    assert body["cashVariance"] == -50.0
    assert body["message"] == "POS closed with variance"


def test_expense_for_unknown_session(client):
    response = client.post(
        "/api/pos/expenses",
        json={
            "posSessionId": "missing",
            "category": "fuel",
            "description": "Generator",
            "amount": 10,
            "recordedBy": "cashier-1",
            "recordedByName": "Ana",
        },
    )
    assert response.status_code == 404


def test_close_unknown_session(client):
    response = client.post("/api/pos/sessions/close/missing", json={"actualCash": 0})
    assert response.status_code == 404
