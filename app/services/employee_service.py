"""
Mataam Back Office - Employee Service

Employee directory: create, look up and list employees within the branches
the acting user can see, record salary raises and resignations.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditAction
from app.models.branch import Branch
from app.models.payroll import Employee, EmploymentStatus, SalaryIncrease
from app.models.user import User
from app.services.audit_service import AuditService
from app.utils.error_handling import (
    BranchNotFoundException,
    EmployeeInactiveException,
    EmployeeNotFoundException,
    InvalidAmountException,
    ValidationException,
)
from app.utils.money import parse_amount, to_money
from app.utils.permissions import BranchScope, ensure_branch_access, scope_for_user


logger = logging.getLogger(__name__)


class EmployeeService:
    """Service for employee directory operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    def _salary_figure(self, value: Any, field: str) -> Decimal:
        amount = to_money(value, field=field)
        if amount < 0:
            raise InvalidAmountException(
                value, field=field, message=f"{field} cannot be negative",
            )
        return amount

    async def create_employee(
        self,
        branch_id: uuid.UUID,
        name: str,
        position: str,
        base_salary: Any,
        hire_date: date,
        acting_user: User,
        allowance: Any = 0,
        status: EmploymentStatus = EmploymentStatus.ACTIVE,
    ) -> Employee:
        """
        Create an employee in a branch the acting user can see.

        Raises:
            BranchNotFoundException: unknown branch
            BranchAccessDeniedException: branch outside the user's scope
            ValidationException: blank name/position or negative salary
        """
        branch = await self.db.get(Branch, branch_id)
        if not branch:
            raise BranchNotFoundException(branch_id)
        ensure_branch_access(scope_for_user(acting_user), branch_id, "Branch")

        if not name or not name.strip():
            raise ValidationException("Employee name is required", field="name")
        if not position or not position.strip():
            raise ValidationException("Employee position is required", field="position")

        base = self._salary_figure(base_salary, "base_salary")
        extra = self._salary_figure(allowance, "allowance")

        employee = Employee(
            branch_id=branch_id,
            name=name.strip(),
            position=position.strip(),
            base_salary=base,
            allowance=extra,
            status=status,
            hire_date=hire_date,
            created_by_id=acting_user.id,
        )
        self.db.add(employee)
        await self.db.flush()

        await self.audit.log_action(
            action=AuditAction.CREATE,
            target_entity_type="employee",
            target_entity_id=str(employee.id),
            user_id=acting_user.id,
            branch_id=branch_id,
            new_values={
                "name": employee.name,
                "position": employee.position,
                "base_salary": str(base),
                "allowance": str(extra),
                "status": status.value,
            },
        )
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info("Created employee %s in branch %s", employee.id, branch_id)
        return employee

    async def get_employee(
        self,
        employee_id: uuid.UUID,
        for_update: bool = False,
    ) -> Employee:
        """
        Get an employee by ID.

        With for_update the row is locked (SELECT ... FOR UPDATE) until the
        current transaction ends.
        """
        query = select(Employee).where(Employee.id == employee_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        employee = result.scalar_one_or_none()
        if not employee:
            raise EmployeeNotFoundException(employee_id)
        return employee

    async def get_accessible_employee(
        self,
        employee_id: uuid.UUID,
        acting_user: User,
        for_update: bool = False,
    ) -> Employee:
        """
        Get an employee the acting user may act on.

        Raises:
            EmployeeNotFoundException: unknown employee
            BranchAccessDeniedException: employee in another branch
        """
        employee = await self.get_employee(employee_id, for_update=for_update)
        ensure_branch_access(scope_for_user(acting_user), employee.branch_id, "Employee")
        return employee

    async def list_employees(
        self,
        acting_user: User,
        branch_id: Optional[uuid.UUID] = None,
        status: Optional[EmploymentStatus] = None,
    ) -> List[Employee]:
        """List employees visible to the acting user, ordered by name."""
        scope = scope_for_user(acting_user)
        query = select(Employee)

        if branch_id is not None:
            ensure_branch_access(scope, branch_id, "Branch")
            query = query.where(Employee.branch_id == branch_id)
        elif isinstance(scope, BranchScope):
            query = query.where(Employee.branch_id == scope.branch_id)

        if status:
            query = query.where(Employee.status == status)

        query = query.order_by(Employee.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # LIFECYCLE
    # ===========================================

    async def resign_employee(
        self,
        employee_id: uuid.UUID,
        acting_user: User,
        resignation_date: Optional[date] = None,
    ) -> Employee:
        """
        Mark an employee as having left (ACTIVE -> INACTIVE).

        Past salary payments and adjustments stay as they are; no further
        payroll entries can be recorded for the employee.

        Raises:
            EmployeeNotFoundException: unknown employee
            BranchAccessDeniedException: employee outside the user's branches
            ValidationException: the employee has already resigned
        """
        actor_id = acting_user.id
        resignation_date = resignation_date or date.today()
        try:
            employee = await self.get_accessible_employee(
                employee_id, acting_user, for_update=True,
            )
            if employee.status != EmploymentStatus.ACTIVE:
                raise ValidationException(
                    "Employee has already resigned",
                    field="status",
                    details={"employee_id": str(employee.id)},
                )
            if resignation_date < employee.hire_date:
                raise ValidationException(
                    "Resignation date cannot be before the hire date",
                    field="resignation_date",
                )

            employee.status = EmploymentStatus.INACTIVE
            employee.resignation_date = resignation_date
            await self.db.flush()

            await self.audit.log_action(
                action=AuditAction.UPDATE,
                target_entity_type="employee",
                target_entity_id=str(employee.id),
                user_id=actor_id,
                branch_id=employee.branch_id,
                new_values={
                    "status": EmploymentStatus.INACTIVE.value,
                    "resignation_date": resignation_date.isoformat(),
                },
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(employee)
        logger.info("Employee %s resigned on %s", employee.id, resignation_date)
        return employee

    async def record_salary_increase(
        self,
        employee_id: uuid.UUID,
        new_salary: Any,
        effective_date: date,
        acting_user: User,
        reason: Optional[str] = None,
    ) -> SalaryIncrease:
        """
        Raise an employee's base salary and keep the raise in the history.

        The new base salary applies to every month settled afterwards.

        Raises:
            EmployeeNotFoundException: unknown employee
            BranchAccessDeniedException: employee outside the user's branches
            EmployeeInactiveException: the employee has left
            InvalidAmountException: bad amount, or not above the current salary
        """
        actor_id = acting_user.id
        try:
            employee = await self.get_accessible_employee(
                employee_id, acting_user, for_update=True,
            )
            if employee.status != EmploymentStatus.ACTIVE:
                raise EmployeeInactiveException(employee.id)

            amount = parse_amount(new_salary, field="new_salary")
            previous = employee.base_salary
            if amount <= previous:
                raise InvalidAmountException(
                    new_salary,
                    field="new_salary",
                    message=f"New salary {amount} must be greater than the current salary {previous}",
                )

            increase = SalaryIncrease(
                employee_id=employee.id,
                previous_salary=previous,
                new_salary=amount,
                increase_amount=amount - previous,
                effective_date=effective_date,
                reason=reason,
                created_by_id=actor_id,
            )
            employee.base_salary = amount
            self.db.add(increase)
            await self.db.flush()

            await self.audit.log_action(
                action=AuditAction.CREATE,
                target_entity_type="salary_increase",
                target_entity_id=str(increase.id),
                user_id=actor_id,
                branch_id=employee.branch_id,
                new_values={
                    "employee_id": str(employee.id),
                    "previous_salary": str(previous),
                    "new_salary": str(amount),
                    "effective_date": effective_date.isoformat(),
                },
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(increase)
        logger.info(
            "Raised salary of employee %s from %s to %s", employee_id, increase.previous_salary,
            increase.new_salary,
        )
        return increase

    async def list_salary_increases(
        self,
        employee_id: uuid.UUID,
        acting_user: User,
    ) -> List[SalaryIncrease]:
        """Salary raises of an employee, oldest first."""
        await self.get_accessible_employee(employee_id, acting_user)
        result = await self.db.execute(
            select(SalaryIncrease)
            .where(SalaryIncrease.employee_id == employee_id)
            .order_by(SalaryIncrease.effective_date, SalaryIncrease.created_at)
        )
        return list(result.scalars().all())
