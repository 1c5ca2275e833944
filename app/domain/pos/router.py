"""POS router - FastAPI endpoints for the cashier terminal"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import PosCategory
from ...schemas import (
    PosExpenseCreate,
    PosSessionCloseRequest,
    PosSessionOpenRequest,
    PosTransactionCreate,
    model_to_dict,
)
from ...seed import DEFAULT_POS_CATEGORIES, fallback_rows
from .service import PosService, emit_expense_created, emit_transaction_created, serialize_transaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pos", tags=["POS"])


def get_pos_service(db: Session = Depends(get_db)) -> PosService:
    return PosService(db)


@router.get("/categories")
async def get_pos_categories(service: PosService = Depends(get_pos_service)):
    try:
        categories = [model_to_dict(c) for c in service.list_categories()]
    except SQLAlchemyError as e:
        logger.error(f"❌ Get POS categories error, serving defaults: {e}")
        categories = fallback_rows(PosCategory, DEFAULT_POS_CATEGORIES)
    return {"success": True, "categories": categories}


@router.post("/transactions", status_code=201)
async def create_transaction(
    data: PosTransactionCreate,
    background_tasks: BackgroundTasks,
    service: PosService = Depends(get_pos_service),
):
    transaction = service.create_transaction(data)

    payload = {
        "transactionId": transaction.id,
        "transactionNumber": transaction.transaction_number,
        "totalAmount": transaction.total_amount,
        "paymentMethod": transaction.payment_method,
        "branchId": transaction.branch_id,
        "cashierInfo": data.cashierInfo.model_dump() if data.cashierInfo else None,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    background_tasks.add_task(emit_transaction_created, payload)

    return {
        "success": True,
        "transactionId": transaction.id,
        "transaction": serialize_transaction(transaction),
        "message": "Transaction saved successfully",
    }


@router.get("/transactions")
async def get_transactions(
    date: Optional[str] = Query(None),
    branchId: Optional[str] = Query(None),
    service: PosService = Depends(get_pos_service),
):
    transactions = service.list_transactions(date=date, branch_id=branchId)
    return {
        "success": True,
        "transactions": [serialize_transaction(t) for t in transactions],
        "count": len(transactions),
    }


@router.post("/sessions/open", status_code=201)
async def open_session(data: PosSessionOpenRequest, service: PosService = Depends(get_pos_service)):
    session = service.open_session(data)
    return {
        "success": True,
        "sessionId": session.id,
        "session": model_to_dict(session),
        "message": "POS session opened successfully",
    }


@router.get("/sessions/current/{cashier_id}")
async def get_current_session(cashier_id: str, service: PosService = Depends(get_pos_service)):
    """Today's open session for a cashier, or null"""
    session = service.get_current_session(cashier_id)
    return {"success": True, "session": model_to_dict(session) if session else None}


@router.post("/expenses", status_code=201)
async def record_expense(
    data: PosExpenseCreate,
    background_tasks: BackgroundTasks,
    service: PosService = Depends(get_pos_service),
):
    expense = service.record_expense(data)
    background_tasks.add_task(emit_expense_created, model_to_dict(expense))
    return {
        "success": True,
        "expenseId": expense.id,
        "expense": model_to_dict(expense),
        "message": "Expense recorded successfully",
    }


@router.post("/sessions/close/{session_id}")
async def close_session(
    session_id: str,
    data: PosSessionCloseRequest,
    service: PosService = Depends(get_pos_service),
):
    session, result = service.close_session(session_id, data)
    return {
        "success": True,
        "isBalanced": result["is_balanced"],
        "cashVariance": result["cash_variance"],
        "digitalVariance": result["digital_variance"],
        "closingBalance": result["closing_balance"],
        "session": model_to_dict(session),
        "message": "POS closed successfully and balanced!"
        if result["is_balanced"]
        else "POS closed with variance",
    }
