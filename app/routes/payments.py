from fastapi import APIRouter, Query

from ..services.payment_methods import list_payment_methods

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.get("/methods")
async def get_payment_methods(refresh: bool = Query(False)):
    """Payment methods available for checkout"""
    methods, source = await list_payment_methods(force_refresh=refresh)
    return {"success": True, "methods": methods, "source": source}
