"""Booking domain schemas - Pydantic models for validation"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_date_string

BOOKING_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled")

# Statuses that hold a slot
ACTIVE_STATUSES = ("pending", "confirmed", "in_progress")

REQUIRED_BOOKING_FIELDS = (
    "category",
    "service",
    "date",
    "timeSlot",
    "branch",
    "fullName",
    "mobile",
    "email",
    "basePrice",
    "totalPrice",
)


class GuestInfo(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class BookingCreate(BaseModel):
    """Schema for creating a booking.

    Required fields are optional here so a request missing several of them
    gets one message listing all of them. Prices are left untyped so a
    non-numeric price is reported as such rather than coerced.
    """

    userId: Optional[str] = None
    guestInfo: Optional[GuestInfo] = None
    category: Optional[str] = None
    service: Optional[str] = None
    serviceType: str = "branch"
    unitType: str = "car"
    unitSize: Optional[str] = None
    plateNumber: Optional[str] = None
    vehicleModel: Optional[str] = None
    date: Optional[str] = None
    timeSlot: Optional[str] = None
    branch: Optional[str] = None
    serviceLocation: Optional[str] = None
    estimatedDuration: Optional[int] = None
    fullName: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    basePrice: Any = None
    totalPrice: Any = None
    currency: str = "PHP"
    voucherCode: Optional[str] = None
    voucherDiscount: float = 0.0
    paymentMethod: Optional[str] = None
    paymentStatus: str = "pending"
    receiptUrl: Optional[str] = None
    notes: Optional[str] = None
    specialRequests: Optional[str] = None

    def missing_fields(self) -> List[str]:
        missing = []
        for field in REQUIRED_BOOKING_FIELDS:
            value = getattr(self, field)
            if field in ("basePrice", "totalPrice"):
                if value is None:
                    missing.append(field)
            elif not value:
                missing.append(field)
        return missing


class BookingUpdate(BaseModel):
    """Schema for a partial booking update"""

    status: Optional[str] = None
    notes: Optional[str] = None
    paymentStatus: Optional[str] = None
    paymentMethod: Optional[str] = None
    receiptUrl: Optional[str] = None
    date: Optional[str] = None
    timeSlot: Optional[str] = None
    branch: Optional[str] = None
    serviceLocation: Optional[str] = None
    totalPrice: Optional[float] = None
    assignedCrew: Optional[List[str]] = None
    crewNotes: Optional[str] = None
    customerRating: Optional[float] = None
    customerFeedback: Optional[str] = None
    changedBy: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in BOOKING_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(BOOKING_STATUSES)}")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return validate_date_string(v)

    @field_validator("customerRating")
    @classmethod
    def validate_rating(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError("customerRating must be between 1 and 5")
        return v


# camelCase request field -> snake_case column
UPDATE_FIELD_MAP: Dict[str, str] = {
    "notes": "notes",
    "paymentStatus": "payment_status",
    "paymentMethod": "payment_method",
    "receiptUrl": "receipt_url",
    "date": "date",
    "timeSlot": "time_slot",
    "branch": "branch",
    "serviceLocation": "service_location",
    "totalPrice": "total_price",
    "assignedCrew": "assigned_crew",
    "crewNotes": "crew_notes",
    "customerRating": "customer_rating",
    "customerFeedback": "customer_feedback",
}
