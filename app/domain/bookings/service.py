"""Booking service - Business logic for booking operations"""

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ... import config
from ...database import CONNECTION_ERRORS
from ...models import Booking, BookingStatusHistory
from ...schemas import model_to_dict
from ...services.pusher_service import PUBLIC_CHANNEL, trigger_event, with_private
from ...shared.validators import is_number
from .repository import BookingRepository
from .schemas import UPDATE_FIELD_MAP, BookingCreate, BookingUpdate

logger = logging.getLogger(__name__)

# Roles that always see every branch
ALL_BRANCH_ROLES = ("admin", "superadmin")

NEW_BOOKING_NOTIFY_ROLES = ["admin", "superadmin", "manager"]

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_confirmation_code() -> str:
    """FAC-<last 6 digits of epoch millis>-<3 random characters>"""
    millis = str(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(3))
    return f"FAC-{millis}-{suffix}"


def serialize_booking(booking: Booking) -> dict:
    return model_to_dict(booking)


async def emit_booking_event(event_name: str, booking: dict):
    """Send a booking event to the admin channel and the owner's channel"""
    channels = []
    if booking.get("userId"):
        channels.extend(with_private(f"user-customer-{booking['userId']}"))
    channels.extend(with_private(PUBLIC_CHANNEL))
    result = await trigger_event(channels, event_name, {"bookingId": booking["id"], "booking": booking})
    if not result.get("success"):
        logger.debug(f"📡 {event_name} not delivered: {result.get('error')}")


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def get_slot_availability(self, date: str, time_slot: str, branch: str) -> dict:
        current = self.repo.count_active_in_slot(self.db, date, time_slot, branch)
        capacity = config.SLOT_CAPACITY
        return {
            "isAvailable": current < capacity,
            "currentBookings": current,
            "maxCapacity": capacity,
        }

    def _unique_confirmation_code(self) -> str:
        for _ in range(5):
            code = generate_confirmation_code()
            if not self.repo.confirmation_code_exists(self.db, code):
                return code
        raise HTTPException(status_code=500, detail="Could not allocate a confirmation code")

    def create_booking(self, data: BookingCreate) -> Booking:
        missing = data.missing_fields()
        if missing:
            logger.warning(f"🔐 Booking validation failed: missing fields {missing}")
            raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

        if not is_number(data.basePrice) or not is_number(data.totalPrice):
            raise HTTPException(status_code=400, detail="basePrice and totalPrice must be valid numbers")
        if data.basePrice < 0 or data.totalPrice < 0:
            raise HTTPException(status_code=400, detail="Prices must be non-negative")

        availability = self.get_slot_availability(data.date, data.timeSlot, data.branch)
        if not availability["isAvailable"]:
            logger.warning(f"❌ Booking slot not available: {data.date} {data.timeSlot} at {data.branch}")
            raise HTTPException(
                status_code=409,
                detail=(
                    f"No availability for {data.timeSlot} on {data.date} at {data.branch}. "
                    "Please select another time slot."
                ),
            )

        booking_data = {
            "user_id": data.userId,
            "guest_info": data.guestInfo.model_dump() if data.guestInfo else None,
            "type": "registered" if data.userId else "guest",
            "confirmation_code": self._unique_confirmation_code(),
            "category": data.category,
            "service": data.service,
            "service_type": data.serviceType,
            "unit_type": data.unitType,
            "unit_size": data.unitSize,
            "plate_number": data.plateNumber,
            "vehicle_model": data.vehicleModel,
            "date": data.date,
            "time_slot": data.timeSlot,
            "branch": data.branch,
            "service_location": data.serviceLocation,
            "estimated_duration": data.estimatedDuration,
            "full_name": data.fullName,
            "mobile": data.mobile,
            "email": data.email,
            "base_price": float(data.basePrice),
            "total_price": float(data.totalPrice),
            "currency": data.currency,
            "voucher_code": data.voucherCode,
            "voucher_discount": data.voucherDiscount,
            "payment_method": data.paymentMethod,
            "payment_status": data.paymentStatus,
            "receipt_url": data.receiptUrl,
            "notes": data.notes,
            "special_requests": data.specialRequests,
            "status": "pending",
        }

        try:
            booking = self.repo.create_booking(self.db, **booking_data)
        except CONNECTION_ERRORS as e:
            self.db.rollback()
            logger.error(f"❌ Create booking error: {e}")
            raise HTTPException(
                status_code=503, detail="Database connection error. Please try again later."
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Create booking error: {e}")
            raise HTTPException(status_code=500, detail="Failed to create booking") from e

        logger.info(f"✅ Booking {booking.confirmation_code} created for {booking.branch} on {booking.date}")
        self._notify_new_booking(booking)
        return booking

    def _notify_new_booking(self, booking: Booking):
        try:
            self.repo.create_system_notification(
                self.db,
                type="new_booking",
                title="🎯 New Booking Received",
                message=f"New booking created: {booking.service} on {booking.date}",
                priority="high",
                target_roles=list(NEW_BOOKING_NOTIFY_ROLES),
                data={"bookingId": booking.id},
                play_sound=True,
                sound_type="new_booking",
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Failed to create notification: {e}")

    def list_bookings(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        branch: Optional[str] = None,
        user_email: Optional[str] = None,
        user_role: Optional[str] = None,
    ) -> dict:
        """
        userId wins; otherwise a specific branch (optionally by status);
        otherwise by status or everything. Callers identified by email who
        cannot see every branch only get their own branch in the last two
        cases.
        """
        current_user = self.repo.get_user_by_email(self.db, user_email) if user_email else None
        can_view_all = user_role in ALL_BRANCH_ROLES or bool(
            current_user and current_user.can_view_all_branches
        )

        if user_id:
            bookings = self.repo.list_bookings(self.db, user_id=user_id)
        elif branch and branch != "all":
            bookings = self.repo.list_bookings(self.db, branch=branch, status=status)
        else:
            if current_user and not can_view_all:
                # No branch on file means no branch to see
                bookings = (
                    self.repo.list_bookings(self.db, status=status, branch=current_user.branch_location)
                    if current_user.branch_location
                    else []
                )
            else:
                bookings = self.repo.list_bookings(self.db, status=status)

        return {
            "success": True,
            "bookings": [serialize_booking(b) for b in bookings],
            "canViewAllBranches": can_view_all,
            "userBranch": current_user.branch_location if current_user else None,
        }

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate) -> Booking:
        booking = self.get_booking(booking_id)
        provided = data.model_dump(exclude_unset=True)

        updates = {
            column: provided[field] for field, column in UPDATE_FIELD_MAP.items() if field in provided
        }

        history = None
        new_status = provided.get("status")
        if new_status and new_status != booking.status:
            updates["status"] = new_status
            history = BookingStatusHistory(
                booking_id=booking.id,
                from_status=booking.status,
                to_status=new_status,
                notes=provided.get("notes"),
                changed_by=provided.get("changedBy"),
            )
            if new_status == "completed":
                updates["completed_at"] = datetime.utcnow()
            logger.info(f"🔄 Booking {booking.confirmation_code}: {booking.status} -> {new_status}")

        try:
            return self.repo.update_booking(self.db, booking, updates, history)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Update booking error: {e}")
            raise HTTPException(status_code=500, detail="Failed to update booking") from e

    def delete_booking(self, booking_id: str) -> dict:
        booking = self.get_booking(booking_id)
        self.repo.delete_booking(self.db, booking)
        logger.info(f"🗑️ Booking {booking_id} deleted")
        return {"success": True, "message": "Booking deleted successfully"}


def get_garage_settings(now: Optional[datetime] = None) -> dict:
    """Current garage-local time and whether the garage is open"""
    now = now or datetime.now(timezone.utc)
    local = now.astimezone(ZoneInfo(config.GARAGE_TIMEZONE))
    return {
        "currentTime": now.isoformat().replace("+00:00", "Z"),
        "currentHour": local.hour,
        "currentMinute": local.minute,
        "currentDate": local.strftime("%Y-%m-%d"),
        "garageOpenTime": config.GARAGE_OPEN_HOUR,
        "garageCloseTime": config.GARAGE_CLOSE_HOUR,
        "isGarageOpen": config.GARAGE_OPEN_HOUR <= local.hour < config.GARAGE_CLOSE_HOUR,
        "timezone": config.GARAGE_TIMEZONE,
    }
