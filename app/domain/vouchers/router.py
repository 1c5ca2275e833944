"""Voucher router - FastAPI endpoints for discount vouchers"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas import VoucherRedeemRequest, VoucherValidateRequest, model_to_dict
from .service import VoucherService

router = APIRouter(prefix="/api/vouchers", tags=["Vouchers"])


def get_voucher_service(db: Session = Depends(get_db)) -> VoucherService:
    return VoucherService(db)


@router.get("")
async def get_vouchers(
    audience: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    service: VoucherService = Depends(get_voucher_service),
):
    vouchers = service.list_vouchers(audience=audience, status=status)
    return {"success": True, "vouchers": [model_to_dict(v) for v in vouchers]}


@router.post("/validate")
async def validate_voucher(
    data: VoucherValidateRequest, service: VoucherService = Depends(get_voucher_service)
):
    return {"success": True, "data": service.validate(data)}


@router.post("/redeem")
async def redeem_voucher(data: VoucherRedeemRequest, service: VoucherService = Depends(get_voucher_service)):
    redemption = service.redeem(data)
    return {"success": True, "message": "Voucher redeemed", "id": redemption.id}
