"""POS repository - Database operations for point-of-sale data"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Booking, PosCategory, PosExpense, PosSession, PosTransaction


class PosRepository:
    """Repository for POS database operations"""

    @staticmethod
    def list_categories(db: Session) -> list[PosCategory]:
        return (
            db.query(PosCategory)
            .filter(PosCategory.is_active.is_(True))
            .order_by(PosCategory.sort_order, PosCategory.name)
            .all()
        )

    @staticmethod
    def transaction_number_exists(db: Session, transaction_number: str) -> bool:
        return (
            db.query(PosTransaction.id)
            .filter(PosTransaction.transaction_number == transaction_number)
            .first()
            is not None
        )

    @staticmethod
    def create_transaction(db: Session, transaction: PosTransaction) -> PosTransaction:
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
        return transaction

    @staticmethod
    def list_transactions(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        branch_id: Optional[str] = None,
    ) -> list[PosTransaction]:
        """Transactions newest first, with their items loaded"""
        query = db.query(PosTransaction).options(selectinload(PosTransaction.items))
        if start:
            query = query.filter(PosTransaction.created_at >= start)
        if end:
            query = query.filter(PosTransaction.created_at < end)
        if branch_id:
            query = query.filter(PosTransaction.branch_id == branch_id)
        return query.order_by(PosTransaction.created_at.desc(), PosTransaction.id.desc()).all()

    @staticmethod
    def get_session(db: Session, session_id: str) -> Optional[PosSession]:
        return db.query(PosSession).filter(PosSession.id == session_id).first()

    @staticmethod
    def get_open_session(db: Session, cashier_id: str, since: datetime) -> Optional[PosSession]:
        return (
            db.query(PosSession)
            .filter(
                PosSession.cashier_id == cashier_id,
                PosSession.status == "open",
                PosSession.session_date >= since,
            )
            .order_by(PosSession.opened_at.desc())
            .first()
        )

    @staticmethod
    def save(db: Session, obj):
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    @staticmethod
    def sales_since(db: Session, since: datetime) -> list[tuple[float, Optional[str]]]:
        """(amount, payment method) of every POS sale and booking created since a moment"""
        pos_sales = (
            db.query(PosTransaction.total_amount, PosTransaction.payment_method)
            .filter(PosTransaction.created_at >= since)
            .all()
        )
        booking_sales = (
            db.query(Booking.total_price, Booking.payment_method)
            .filter(Booking.created_at >= since)
            .all()
        )
        return [(amount, method) for amount, method in pos_sales + booking_sales]

    @staticmethod
    def session_expense_amounts(db: Session, session_id: str) -> list[float]:
        return [
            amount
            for (amount,) in db.query(PosExpense.amount)
            .filter(PosExpense.pos_session_id == session_id)
            .all()
        ]
