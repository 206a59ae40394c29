"""
Mataam Back Office - Employees Router

API endpoints for the employee directory.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_active_user
from app.models.payroll import EmploymentStatus
from app.models.user import User
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeResign,
    SalaryIncreaseCreate,
    SalaryIncreaseResponse,
)
from app.services.employee_service import EmployeeService
from app.utils.error_handling import ValidationException


router = APIRouter()


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an employee",
)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Create an employee in a branch visible to the current user."""
    service = EmployeeService(db)
    employee = await service.create_employee(
        branch_id=data.branch_id,
        name=data.name,
        position=data.position,
        base_salary=data.base_salary,
        allowance=data.allowance,
        hire_date=data.hire_date,
        status=EmploymentStatus[data.status],
        acting_user=current_user,
    )
    return EmployeeResponse.model_validate(employee)


@router.get(
    "",
    response_model=List[EmployeeResponse],
    summary="List employees",
)
async def list_employees(
    branch_id: Optional[uuid.UUID] = Query(None, alias="branchId"),
    employment_status: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """List employees in the branches visible to the current user."""
    status_filter = None
    if employment_status:
        try:
            status_filter = EmploymentStatus[employment_status.upper()]
        except KeyError:
            raise ValidationException(
                f"Invalid status: {employment_status}",
                field="status",
                details={"allowed": [s.name for s in EmploymentStatus]},
            )

    service = EmployeeService(db)
    employees = await service.list_employees(
        acting_user=current_user,
        branch_id=branch_id,
        status=status_filter,
    )
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Get an employee",
)
async def get_employee(
    employee_id: uuid.UUID = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get an employee visible to the current user."""
    service = EmployeeService(db)
    employee = await service.get_accessible_employee(employee_id, current_user)
    return EmployeeResponse.model_validate(employee)


@router.post(
    "/{employee_id}/resign",
    response_model=EmployeeResponse,
    summary="Record a resignation",
)
async def resign_employee(
    data: Optional[EmployeeResign] = None,
    employee_id: uuid.UUID = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Mark an employee as inactive. No payroll entries can follow."""
    service = EmployeeService(db)
    employee = await service.resign_employee(
        employee_id,
        acting_user=current_user,
        resignation_date=data.resignation_date if data else None,
    )
    return EmployeeResponse.model_validate(employee)


@router.post(
    "/{employee_id}/salary-increases",
    response_model=SalaryIncreaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a salary increase",
)
async def record_salary_increase(
    data: SalaryIncreaseCreate,
    employee_id: uuid.UUID = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Raise the employee's base salary for every month settled from now on."""
    service = EmployeeService(db)
    increase = await service.record_salary_increase(
        employee_id,
        new_salary=data.new_salary,
        effective_date=data.effective_date,
        acting_user=current_user,
        reason=data.reason,
    )
    return SalaryIncreaseResponse.model_validate(increase)


@router.get(
    "/{employee_id}/salary-increases",
    response_model=List[SalaryIncreaseResponse],
    summary="List salary increases",
)
async def list_salary_increases(
    employee_id: uuid.UUID = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_active_user),
):
    """Salary raise history of an employee, oldest first."""
    service = EmployeeService(db)
    increases = await service.list_salary_increases(employee_id, current_user)
    return [SalaryIncreaseResponse.model_validate(i) for i in increases]
