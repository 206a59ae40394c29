"""
Mataam Back Office - Payroll Router

API endpoints for salary adjustments and monthly salary settlement.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_active_user
from app.models.payroll import AdjustmentStatus, AdjustmentType
from app.models.transaction import PaymentMethod
from app.models.user import User
from app.schemas.employee import EmployeeResponse
from app.schemas.payroll import (
    AdjustmentCreate,
    AdjustmentCreateResponse,
    AdjustmentResponse,
    PaySalaryRequest,
    PaySalaryResponse,
    PayrollSummaryResponse,
    SalaryDetailsResponse,
    SalaryPaymentResponse,
    SalaryTotals,
)
from app.schemas.transaction import TransactionResponse
from app.services.payroll_service import PayrollService
from app.utils.error_handling import ValidationException


router = APIRouter()


def _enum_from_name(enum_cls, value: Optional[str], field: str):
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


# ===========================================
# ADJUSTMENTS
# ===========================================

@router.post(
    "/adjustments",
    response_model=AdjustmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a salary adjustment",
    description=(
        "Record a BONUS, DEDUCTION or ADVANCE for an employee. An ADVANCE also "
        "writes a cash expense to the ledger in the same transaction."
    ),
)
async def create_adjustment(
    data: AdjustmentCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Create a salary adjustment."""
    service = PayrollService(db)
    result = await service.create_adjustment(
        employee_id=data.employee_id,
        adjustment_type=AdjustmentType[data.type],
        amount=data.amount,
        adjustment_date=data.adjustment_date,
        description=data.description,
        acting_user=current_user,
    )
    return AdjustmentCreateResponse(
        adjustment=AdjustmentResponse.model_validate(result.adjustment),
        transaction=(
            TransactionResponse.model_validate(result.transaction)
            if result.transaction else None
        ),
    )


@router.get(
    "/adjustments",
    response_model=List[AdjustmentResponse],
    summary="List salary adjustments",
)
async def list_adjustments(
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    adjustment_status: Optional[str] = Query(None, alias="status"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    adjustment_type: Optional[str] = Query(None, alias="type"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """List adjustments in the branches visible to the current user."""
    service = PayrollService(db)
    adjustments = await service.list_adjustments(
        acting_user=current_user,
        employee_id=employee_id,
        status=_enum_from_name(AdjustmentStatus, adjustment_status, "status"),
        salary_month=month,
        adjustment_type=_enum_from_name(AdjustmentType, adjustment_type, "type"),
    )
    return [AdjustmentResponse.model_validate(a) for a in adjustments]


# ===========================================
# SALARY DETAILS
# ===========================================

@router.get(
    "/employee/{employee_id}/salary-details",
    response_model=SalaryDetailsResponse,
    summary="Get salary details for a month",
    description="Gross salary, pending adjustments and net salary for an employee and month. Read only.",
)
async def get_salary_details(
    employee_id: uuid.UUID = Path(...),
    month: str = Query(..., description="Salary month as YYYY-MM"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get the salary details of an employee for a month."""
    service = PayrollService(db)
    summary = await service.get_salary_details(employee_id, month, current_user)

    pending = [AdjustmentResponse.model_validate(a) for a in summary.pending_adjustments]
    return SalaryDetailsResponse(
        employee=EmployeeResponse.model_validate(summary.employee),
        salary_month=summary.salary_month,
        period_start=summary.period_start,
        period_end=summary.period_end,
        base_salary=summary.base_salary,
        allowance=summary.allowance,
        gross_salary=summary.gross_salary,
        pending_adjustments=pending,
        bonuses=[a for a in pending if a.adjustment_type == AdjustmentType.BONUS.name],
        deductions=[a for a in pending if a.adjustment_type == AdjustmentType.DEDUCTION.name],
        advances=[a for a in pending if a.adjustment_type == AdjustmentType.ADVANCE.name],
        summary=SalaryTotals(
            total_bonuses=summary.total_bonuses,
            total_deductions=summary.total_deductions,
            total_advances=summary.total_advances,
            net_salary=summary.net_salary,
        ),
        is_paid=summary.is_paid,
    )


# ===========================================
# SETTLEMENT
# ===========================================

@router.post(
    "/pay-salary",
    response_model=PaySalaryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay a month's salary",
    description=(
        "Settle an employee's salary for a month: writes the ledger expense and "
        "the salary payment and marks the month's pending adjustments as processed."
    ),
)
async def pay_salary(
    data: PaySalaryRequest,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Settle a month's salary."""
    service = PayrollService(db)
    result = await service.pay_salary(
        employee_id=data.employee_id,
        salary_month=data.salary_month,
        payment_date=data.payment_date,
        payment_method=PaymentMethod[data.payment_method],
        notes=data.notes,
        acting_user=current_user,
    )
    return PaySalaryResponse(
        salary_payment=SalaryPaymentResponse.model_validate(result.salary_payment),
        transaction=TransactionResponse.model_validate(result.transaction),
        adjustments_processed=result.adjustments_processed,
        processed_adjustment_ids=result.processed_adjustment_ids,
    )


@router.get(
    "/salary-payments",
    response_model=List[SalaryPaymentResponse],
    summary="List salary payments",
)
async def list_salary_payments(
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    branch_id: Optional[uuid.UUID] = Query(None, alias="branchId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """List settled salaries, newest payment date first."""
    service = PayrollService(db)
    payments = await service.list_salary_payments(
        acting_user=current_user,
        employee_id=employee_id,
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
    )
    return [SalaryPaymentResponse.model_validate(p) for p in payments]


@router.get(
    "/summary",
    response_model=PayrollSummaryResponse,
    summary="Branch payroll summary for a month",
)
async def get_payroll_summary(
    branch_id: uuid.UUID = Query(..., alias="branchId"),
    month: str = Query(..., description="Salary month as YYYY-MM"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Totals paid for a branch and month, and who is still unpaid."""
    service = PayrollService(db)
    summary = await service.get_payroll_summary(branch_id, month, current_user)
    return PayrollSummaryResponse.model_validate(summary)
