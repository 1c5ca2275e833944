"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import ADMIN_ROLES, require_roles
from ...database import get_db
from ...email_service import send_booking_confirmation
from ...models import User
from .schemas import BookingCreate, BookingUpdate
from .service import BookingService, emit_booking_event, get_garage_settings, serialize_booking

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("/availability")
async def get_slot_availability(
    date: Optional[str] = Query(None),
    timeSlot: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """How many bookings hold a slot and whether another one fits"""
    if not date or not timeSlot or not branch:
        raise HTTPException(status_code=400, detail="Missing required parameters: date, timeSlot, branch")
    return {"success": True, "data": service.get_slot_availability(date, timeSlot, branch)}


@router.get("/garage-settings")
async def garage_settings():
    return {"success": True, "data": get_garage_settings()}


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking; realtime events and the confirmation email go out after the response"""
    booking = serialize_booking(service.create_booking(data))

    background_tasks.add_task(emit_booking_event, "booking.created", booking)
    background_tasks.add_task(send_booking_confirmation, booking)

    return {"success": True, "booking": booking, "message": "Booking created successfully"}


@router.get("")
async def get_bookings(
    userId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    userEmail: Optional[str] = Query(None),
    userRole: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings(
        user_id=userId, status=status, branch=branch, user_email=userEmail, user_role=userRole
    )


@router.get("/{booking_id}")
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    return {"success": True, "booking": serialize_booking(service.get_booking(booking_id))}


@router.put("/{booking_id}")
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
):
    booking = serialize_booking(service.update_booking(booking_id, data))
    background_tasks.add_task(emit_booking_event, "booking.updated", booking)
    return {"success": True, "booking": booking, "message": "Booking updated successfully"}


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: str,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    logger.info(f"🗑️ {current_user.email} deleting booking {booking_id}")
    return service.delete_booking(booking_id)
