"""Voucher service - Discount code validation and redemption"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Booking, Voucher, VoucherRedemption
from ...schemas import VoucherRedeemRequest, VoucherValidateRequest
from ...shared.money import round_to_cents
from ...shared.validators import is_number

logger = logging.getLogger(__name__)


def calculate_discount(voucher: Voucher, amount: float) -> float:
    """Percentage or fixed discount, never more than the amount"""
    if voucher.discount_type == "percentage":
        discount = round_to_cents(amount * float(voucher.discount_value) / 100)
    else:
        discount = float(voucher.discount_value)
    return min(discount, amount)


class VoucherService:
    """Service layer for voucher business logic"""

    def __init__(self, db: Session):
        self.db = db

    def _find(self, code: str) -> Optional[Voucher]:
        return self.db.query(Voucher).filter(func.lower(Voucher.code) == code.strip().lower()).first()

    def list_vouchers(self, audience: Optional[str] = None, status: Optional[str] = None) -> list[Voucher]:
        query = self.db.query(Voucher)
        if audience:
            query = query.filter(or_(Voucher.audience == audience, Voucher.audience == "all"))
        if status == "active":
            query = query.filter(
                Voucher.is_active.is_(True),
                or_(Voucher.valid_until.is_(None), Voucher.valid_until >= datetime.utcnow()),
            )
        return query.order_by(Voucher.created_at.desc(), Voucher.code).all()

    def validate(self, data: VoucherValidateRequest, now: Optional[datetime] = None) -> dict:
        """
        Check a code against a booking amount.

        Raises:
            HTTPException: 404 for unknown codes, 403 when a registered-only
                voucher is used without an email, 400 for every other rule
        """
        if not data.code or not is_number(data.bookingAmount):
            raise HTTPException(status_code=400, detail="code and bookingAmount are required")

        voucher = self._find(data.code)
        if not voucher:
            raise HTTPException(status_code=404, detail="Invalid voucher code")

        now = now or datetime.utcnow()
        if not voucher.is_active:
            raise HTTPException(status_code=400, detail="Voucher is inactive")
        if voucher.valid_from and voucher.valid_from > now:
            raise HTTPException(status_code=400, detail="Voucher not yet active")
        if voucher.valid_until and voucher.valid_until < now:
            raise HTTPException(status_code=400, detail="Voucher expired")

        is_registered = bool(data.userEmail)
        if voucher.audience == "registered" and not is_registered:
            raise HTTPException(status_code=403, detail="Voucher is only for registered users")

        if voucher.usage_limit and (voucher.total_used or 0) >= voucher.usage_limit:
            raise HTTPException(status_code=400, detail="Voucher usage limit reached")

        if is_registered and voucher.per_user_limit:
            used = (
                self.db.query(func.count(VoucherRedemption.id))
                .filter(
                    VoucherRedemption.voucher_code == voucher.code,
                    VoucherRedemption.user_email == data.userEmail,
                )
                .scalar()
            ) or 0
            if used >= voucher.per_user_limit:
                raise HTTPException(status_code=400, detail="You have already used this voucher")

        minimum = float(voucher.minimum_amount or 0)
        if minimum > 0 and data.bookingAmount < minimum:
            raise HTTPException(status_code=400, detail=f"Minimum amount ₱{minimum:.2f} not met")

        discount = calculate_discount(voucher, data.bookingAmount)
        return {
            "code": voucher.code,
            "title": voucher.title,
            "discountType": voucher.discount_type,
            "discountValue": float(voucher.discount_value),
            "discountAmount": discount,
            "finalAmount": round_to_cents(data.bookingAmount - discount),
            "audience": voucher.audience,
        }

    def redeem(self, data: VoucherRedeemRequest) -> VoucherRedemption:
        if not data.code or not data.bookingId or not is_number(data.discountAmount):
            raise HTTPException(
                status_code=400, detail="code, bookingId and discountAmount are required"
            )

        voucher = self._find(data.code)
        if not voucher:
            raise HTTPException(status_code=404, detail="Invalid voucher code")

        redemption = VoucherRedemption(
            voucher_code=voucher.code,
            user_email=data.userEmail,
            booking_id=data.bookingId,
            discount_amount=data.discountAmount,
        )
        self.db.add(redemption)
        voucher.total_used = (voucher.total_used or 0) + 1

        booking = self.db.query(Booking).filter(Booking.id == data.bookingId).first()
        if booking:
            booking.voucher_code = voucher.code
            booking.voucher_discount = data.discountAmount

        self.db.commit()
        self.db.refresh(redemption)
        logger.info(f"🎟️ Voucher {voucher.code} redeemed for booking {data.bookingId}")
        return redemption
