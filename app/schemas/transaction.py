"""
Mataam Back Office - Transaction Schemas

Pydantic schemas for ledger transactions.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional
from uuid import UUID

from pydantic import BeforeValidator, Field

from app.schemas.base import CamelModel, EnumName, enum_name


TransactionTypeEnum = Annotated[Literal["INCOME", "EXPENSE"], BeforeValidator(enum_name)]

PaymentMethodEnum = Annotated[Literal["CASH", "MASTER"], BeforeValidator(enum_name)]

TransactionCategoryEnum = Annotated[
    Literal[
        "SALES", "SERVICES", "APP_PURCHASES", "OTHER_INCOME",
        "EMPLOYEE_SALARIES", "WORKER_DAILY", "RENT", "UTILITIES", "SUPPLIES",
        "MAINTENANCE", "TRANSPORTATION", "INVENTORY", "OTHER_EXPENSE",
    ],
    BeforeValidator(enum_name),
]


class TransactionCreate(CamelModel):
    """Request body for a ledger transaction."""
    branch_id: UUID
    type: TransactionTypeEnum
    category: TransactionCategoryEnum
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    transaction_date: date = Field(..., alias="date")
    payment_method: PaymentMethodEnum = "CASH"
    employee_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=1000)
    reference: Optional[str] = Field(None, max_length=100)


class TransactionResponse(CamelModel):
    """Ledger transaction."""
    id: UUID
    branch_id: UUID
    transaction_type: EnumName = Field(..., alias="type")
    category: EnumName
    amount: Decimal
    transaction_date: date = Field(..., alias="date")
    payment_method: EnumName
    employee_id: Optional[UUID] = None
    notes: Optional[str] = None
    reference: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
