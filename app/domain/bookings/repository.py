"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, BookingStatusHistory, SystemNotification, User
from .schemas import ACTIVE_STATUSES


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def list_bookings(
        db: Session,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        branch: Optional[str] = None,
    ) -> list[Booking]:
        """Bookings newest first, filtered by whichever arguments are given"""
        query = db.query(Booking)
        if user_id:
            query = query.filter(Booking.user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        if branch:
            query = query.filter(Booking.branch == branch)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def confirmation_code_exists(db: Session, code: str) -> bool:
        return db.query(Booking.id).filter(Booking.confirmation_code == code).first() is not None

    @staticmethod
    def count_active_in_slot(db: Session, date: str, time_slot: str, branch: str) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.date == date,
                Booking.time_slot == time_slot,
                Booking.branch == branch,
                Booking.status.in_(ACTIVE_STATUSES),
            )
            .scalar()
        ) or 0

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(
        db: Session,
        booking: Booking,
        updates: dict,
        history: Optional[BookingStatusHistory] = None,
    ) -> Booking:
        for key, value in updates.items():
            setattr(booking, key, value)
        if history is not None:
            db.add(history)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.commit()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    @staticmethod
    def create_system_notification(db: Session, **notification_data) -> SystemNotification:
        notification = SystemNotification(**notification_data)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
