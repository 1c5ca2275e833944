"""POS service - Transactions, cashier sessions and end-of-day reconciliation"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import PosExpense, PosSession, PosTransaction, PosTransactionItem
from ...schemas import (
    PosExpenseCreate,
    PosSessionCloseRequest,
    PosSessionOpenRequest,
    PosTransactionCreate,
    model_to_dict,
)
from ...services.pusher_service import PUBLIC_CHANNEL, trigger_event, with_private
from ...shared.money import round_to_cents
from ...shared.validators import validate_date_string
from .repository import PosRepository

logger = logging.getLogger(__name__)

DIGITAL_METHODS = ("card", "gcash", "bank")

# Largest variance still treated as balanced
BALANCE_TOLERANCE = 0.01


def reconcile(
    opening_balance: float,
    sales: Iterable[tuple[float, Optional[str]]],
    expenses: Iterable[float],
    actual_cash: float,
    actual_digital: float,
) -> dict:
    """
    Compare counted cash and digital takings against what the session's
    sales say should be there.

    Sales without a payment method count as cash; methods outside
    cash/card/gcash/bank are ignored.
    """
    totals = {"cash": 0.0, "card": 0.0, "gcash": 0.0, "bank": 0.0}
    for amount, method in sales:
        method = method or "cash"
        if method in totals:
            totals[method] = round_to_cents(totals[method] + round_to_cents(amount))

    total_expenses = round_to_cents(sum(round_to_cents(e) for e in expenses))
    opening = round_to_cents(opening_balance)
    expected_cash = round_to_cents(opening + totals["cash"] - total_expenses)
    expected_digital = round_to_cents(sum(totals[m] for m in DIGITAL_METHODS))

    actual_cash = round_to_cents(actual_cash)
    actual_digital = round_to_cents(actual_digital)
    cash_variance = round_to_cents(actual_cash - expected_cash)
    digital_variance = round_to_cents(actual_digital - expected_digital)

    return {
        "total_cash_sales": totals["cash"],
        "total_card_sales": totals["card"],
        "total_gcash_sales": totals["gcash"],
        "total_bank_sales": totals["bank"],
        "total_expenses": total_expenses,
        "expected_cash": expected_cash,
        "actual_cash": actual_cash,
        "cash_variance": cash_variance,
        "expected_digital": expected_digital,
        "actual_digital": actual_digital,
        "digital_variance": digital_variance,
        "closing_balance": round_to_cents(actual_cash + actual_digital),
        "is_balanced": abs(cash_variance) <= BALANCE_TOLERANCE
        and abs(digital_variance) <= BALANCE_TOLERANCE,
    }


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def serialize_transaction(transaction: PosTransaction) -> dict:
    data = model_to_dict(transaction)
    data["items"] = [model_to_dict(item) for item in transaction.items]
    return data


async def emit_transaction_created(payload: dict):
    """Broadcast a sale to the public dashboard and its branch channel"""
    channels = with_private(PUBLIC_CHANNEL, f"branch-{payload['branchId']}")
    result = await trigger_event(channels, "pos.transaction.created", payload)
    if not result.get("success"):
        logger.debug(f"📡 pos.transaction.created not delivered: {result.get('error')}")


async def emit_expense_created(payload: dict):
    result = await trigger_event(with_private(PUBLIC_CHANNEL), "pos.expense.created", payload)
    if not result.get("success"):
        logger.debug(f"📡 pos.expense.created not delivered: {result.get('error')}")


class PosService:
    """Service layer for POS business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PosRepository()

    def list_categories(self) -> list:
        return self.repo.list_categories(self.db)

    def create_transaction(self, data: PosTransactionCreate) -> PosTransaction:
        if not data.transactionNumber or not data.totalAmount or not data.paymentMethod:
            raise HTTPException(
                status_code=400,
                detail="Missing required fields: transactionNumber, totalAmount, paymentMethod",
            )
        if self.repo.transaction_number_exists(self.db, data.transactionNumber):
            raise HTTPException(
                status_code=409, detail=f"Transaction {data.transactionNumber} already exists"
            )

        customer = data.customerInfo
        cashier = data.cashierInfo
        transaction = PosTransaction(
            transaction_number=data.transactionNumber,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else None,
            customer_email=customer.email if customer else None,
            customer_phone=customer.phone if customer else None,
            type="sale",
            status="completed",
            branch_id=data.branchId or "default",
            cashier_id=(cashier.id if cashier else None) or "unknown",
            cashier_name=(cashier.name if cashier else None) or "Unknown",
            subtotal=data.subtotal,
            tax_amount=data.taxAmount,
            discount_amount=data.discountAmount,
            total_amount=data.totalAmount,
            payment_method=data.paymentMethod,
            payment_reference=data.paymentReference,
            amount_paid=data.amountPaid if data.amountPaid is not None else data.totalAmount,
            change_amount=data.changeAmount or 0.0,
            notes=data.notes,
        )
        for item in data.items:
            line_total = round_to_cents(item.unitPrice * item.quantity)
            transaction.items.append(
                PosTransactionItem(
                    product_id=item.productId,
                    item_name=item.name,
                    item_sku=item.sku,
                    item_category=item.category,
                    unit_price=item.unitPrice,
                    quantity=item.quantity,
                    subtotal=item.subtotal if item.subtotal is not None else line_total,
                    final_price=item.finalPrice if item.finalPrice is not None else line_total,
                )
            )

        try:
            transaction = self.repo.create_transaction(self.db, transaction)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error saving transaction: {e}")
            raise HTTPException(status_code=500, detail="Failed to save transaction") from e

        logger.info(
            f"💳 Transaction {transaction.transaction_number} saved: "
            f"₱{transaction.total_amount:.2f} via {transaction.payment_method} ({len(transaction.items)} items)"
        )
        return transaction

    def list_transactions(self, date: Optional[str] = None, branch_id: Optional[str] = None) -> list:
        start = end = None
        if date:
            try:
                validate_date_string(date)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            start = datetime.strptime(date, "%Y-%m-%d")
            end = start + timedelta(days=1)
        return self.repo.list_transactions(self.db, start=start, end=end, branch_id=branch_id)

    def open_session(self, data: PosSessionOpenRequest) -> PosSession:
        now = datetime.utcnow()
        session = PosSession(
            status="open",
            session_date=start_of_day(now),
            cashier_id=data.cashierId,
            cashier_name=data.cashierName,
            branch_id=data.branchId,
            opening_balance=round_to_cents(data.openingBalance),
            opened_at=now,
        )
        session = self.repo.save(self.db, session)
        logger.info(f"🔓 POS session {session.id} opened by {data.cashierName} with ₱{session.opening_balance:.2f}")
        return session

    def get_current_session(self, cashier_id: str) -> Optional[PosSession]:
        try:
            return self.repo.get_open_session(self.db, cashier_id, start_of_day())
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Database query failed for POS session: {e}")
            return None

    def record_expense(self, data: PosExpenseCreate) -> PosExpense:
        session = self.repo.get_session(self.db, data.posSessionId)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        if session.status != "open":
            raise HTTPException(status_code=409, detail="Session is already closed")

        expense = PosExpense(
            pos_session_id=session.id,
            category=data.category,
            description=data.description,
            amount=round_to_cents(data.amount),
            payment_method=data.paymentMethod,
            notes=data.notes,
            recorded_by=data.recordedBy,
            recorded_by_name=data.recordedByName,
        )
        expense = self.repo.save(self.db, expense)
        logger.info(f"💸 Expense recorded: {expense.category} - ₱{expense.amount:.2f}")
        return expense

    def close_session(self, session_id: str, data: PosSessionCloseRequest) -> tuple[PosSession, dict]:
        session = self.repo.get_session(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        if session.status != "open":
            raise HTTPException(status_code=409, detail="Session is already closed")

        since = session.opened_at or session.created_at
        result = reconcile(
            opening_balance=session.opening_balance,
            sales=self.repo.sales_since(self.db, since),
            expenses=self.repo.session_expense_amounts(self.db, session.id),
            actual_cash=data.actualCash,
            actual_digital=data.actualDigital,
        )

        for key, value in result.items():
            setattr(session, key, value)
        session.status = "closed"
        session.closed_at = datetime.utcnow()
        session.remittance_notes = data.remittanceNotes

        try:
            session = self.repo.save(self.db, session)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error closing POS session {session_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to close POS session") from e

        logger.info(
            f"🔒 POS session {session_id} closed - cash variance ₱{result['cash_variance']:+.2f}, "
            f"digital variance ₱{result['digital_variance']:+.2f}, balanced: {result['is_balanced']}"
        )
        return session, result
