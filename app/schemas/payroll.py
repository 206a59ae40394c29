"""
Mataam Back Office - Payroll Schemas

Pydantic schemas for adjustment and salary settlement requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import BeforeValidator, Field

from app.schemas.base import CamelModel, EnumName, enum_name
from app.schemas.employee import EmployeeResponse
from app.schemas.transaction import PaymentMethodEnum, TransactionResponse


# ===========================================
# ENUMS AS LITERALS
# ===========================================

AdjustmentTypeEnum = Annotated[
    Literal["BONUS", "DEDUCTION", "ADVANCE"], BeforeValidator(enum_name)
]

AdjustmentStatusEnum = Annotated[
    Literal["PENDING", "PROCESSED"], BeforeValidator(enum_name)
]


# ===========================================
# ADJUSTMENT SCHEMAS
# ===========================================

class AdjustmentCreate(CamelModel):
    """Request body for a bonus, deduction or cash advance."""
    employee_id: UUID
    type: AdjustmentTypeEnum
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    adjustment_date: date = Field(..., alias="date")
    description: Optional[str] = Field(None, max_length=1000)


class AdjustmentResponse(CamelModel):
    """Employee adjustment."""
    id: UUID
    employee_id: UUID
    adjustment_type: EnumName = Field(..., alias="type")
    amount: Decimal
    adjustment_date: date = Field(..., alias="date")
    description: Optional[str] = None
    status: EnumName
    transaction_id: Optional[UUID] = None
    salary_payment_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class AdjustmentCreateResponse(CamelModel):
    """Created adjustment and, for an ADVANCE, its ledger expense."""
    adjustment: AdjustmentResponse
    transaction: Optional[TransactionResponse] = None


# ===========================================
# SALARY DETAILS
# ===========================================

class SalaryTotals(CamelModel):
    """Totals of the pending adjustments and the resulting net salary."""
    total_bonuses: Decimal
    total_deductions: Decimal
    total_advances: Decimal
    net_salary: Decimal


class SalaryDetailsResponse(CamelModel):
    """Salary an employee would receive for a month."""
    employee: EmployeeResponse
    salary_month: str
    period_start: date
    period_end: date
    base_salary: Decimal
    allowance: Decimal
    gross_salary: Decimal
    pending_adjustments: List[AdjustmentResponse]
    bonuses: List[AdjustmentResponse]
    deductions: List[AdjustmentResponse]
    advances: List[AdjustmentResponse]
    summary: SalaryTotals
    is_paid: bool


# ===========================================
# SALARY SETTLEMENT
# ===========================================

class PaySalaryRequest(CamelModel):
    """Request body for settling a month's salary."""
    employee_id: UUID
    salary_month: str = Field(..., description="Month to settle as YYYY-MM")
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    payment_method: PaymentMethodEnum = "CASH"
    notes: Optional[str] = Field(None, max_length=1000)


class SalaryPaymentResponse(CamelModel):
    """Settled salary with its breakdown."""
    id: UUID
    employee_id: UUID
    salary_month: str
    payment_date: date
    payment_method: EnumName
    gross_salary: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    total_advances: Decimal
    net_salary: Decimal
    transaction_id: UUID
    notes: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime


class PaySalaryResponse(CamelModel):
    """Result of a committed settlement."""
    salary_payment: SalaryPaymentResponse
    transaction: TransactionResponse
    adjustments_processed: int
    processed_adjustment_ids: List[UUID]


# ===========================================
# BRANCH SUMMARY
# ===========================================

class UnpaidEmployee(CamelModel):
    """Active employee without a settlement for the month."""
    id: UUID
    name: str
    position: str


class PayrollSummaryResponse(CamelModel):
    """Settled payroll of a branch for a month."""
    branch_id: UUID
    salary_month: str
    payments_count: int
    total_gross: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    total_advances: Decimal
    total_net: Decimal
    unpaid_employees: List[UnpaidEmployee]
