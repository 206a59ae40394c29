"""
Mataam Back Office - Employee Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional
from uuid import UUID

from pydantic import BeforeValidator, Field

from app.schemas.base import CamelModel, EnumName, enum_name


EmploymentStatusEnum = Annotated[Literal["ACTIVE", "INACTIVE"], BeforeValidator(enum_name)]


class EmployeeCreate(CamelModel):
    """Request body for a new employee."""
    branch_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    position: str = Field(..., min_length=1, max_length=100)
    base_salary: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    allowance: Decimal = Field(Decimal("0.00"), ge=0, max_digits=15, decimal_places=2)
    hire_date: date
    status: EmploymentStatusEnum = "ACTIVE"


class EmployeeResponse(CamelModel):
    """Employee snapshot."""
    id: UUID
    branch_id: UUID
    name: str
    position: str
    base_salary: Decimal
    allowance: Decimal
    status: EnumName
    hire_date: date
    resignation_date: Optional[date] = None
    created_at: datetime


class EmployeeResign(CamelModel):
    """Request body for a resignation; the date defaults to today."""
    resignation_date: Optional[date] = None


class SalaryIncreaseCreate(CamelModel):
    """Request body for a base salary raise."""
    new_salary: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    effective_date: date
    reason: Optional[str] = Field(None, max_length=1000)


class SalaryIncreaseResponse(CamelModel):
    """Recorded salary raise."""
    id: UUID
    employee_id: UUID
    previous_salary: Decimal
    new_salary: Decimal
    increase_amount: Decimal
    effective_date: date
    reason: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
