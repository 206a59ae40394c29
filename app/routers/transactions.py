"""
Mataam Back Office - Transactions Router

API endpoints for ledger income and expense recording.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_active_user
from app.models.transaction import PaymentMethod, TransactionCategory, TransactionType
from app.models.user import User
from app.schemas.transaction import TransactionCreate, TransactionResponse
from app.services.ledger_service import LedgerService
from app.utils.error_handling import ValidationException


router = APIRouter()


def _parse_filter(enum_cls, value: Optional[str], field: str):
    if value is None:
        return None
    try:
        return enum_cls[value.upper()]
    except KeyError:
        raise ValidationException(
            f"Invalid {field}: {value}",
            field=field,
            details={"allowed": [m.name for m in enum_cls]},
        )


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
    description="Record an income or expense for a branch. Transactions are immutable once written.",
)
async def create_transaction(
    data: TransactionCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Record a ledger transaction."""
    service = LedgerService(db)
    transaction = await service.record_transaction(
        branch_id=data.branch_id,
        transaction_type=TransactionType[data.type],
        category=TransactionCategory[data.category],
        amount=data.amount,
        transaction_date=data.transaction_date,
        payment_method=PaymentMethod[data.payment_method],
        employee_id=data.employee_id,
        notes=data.notes,
        reference=data.reference,
        acting_user=current_user,
    )
    return TransactionResponse.model_validate(transaction)


@router.get(
    "",
    response_model=List[TransactionResponse],
    summary="List transactions",
)
async def list_transactions(
    branch_id: Optional[uuid.UUID] = Query(None, alias="branchId"),
    transaction_type: Optional[str] = Query(None, alias="type"),
    category: Optional[str] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """List transactions in the branches visible to the current user."""
    service = LedgerService(db)
    transactions = await service.list_transactions(
        acting_user=current_user,
        branch_id=branch_id,
        transaction_type=_parse_filter(TransactionType, transaction_type, "type"),
        category=_parse_filter(TransactionCategory, category, "category"),
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get a transaction visible to the current user."""
    service = LedgerService(db)
    transaction = await service.get_transaction(transaction_id, current_user)
    return TransactionResponse.model_validate(transaction)
