"""
Mataam Back Office - Payroll Service

Salary adjustments and monthly salary settlement.

Adjustments:
- BONUS: added to the next settlement of its month
- DEDUCTION: subtracted from the next settlement of its month
- ADVANCE: cash handed out now (a ledger expense is written immediately),
  recovered from the settlement of its month

Settlement of (employee, month):
    net = base_salary + allowance + bonuses - deductions - advances

computed from the PENDING adjustments dated in that month. Paying writes one
ledger expense for the net amount, one salary payment row, flips exactly the
adjustments it summed to PROCESSED and writes an audit entry, all in a single
database transaction. A month is paid at most once per employee: an
application check gives a clean ALREADY_PAID error and the unique
(employee_id, salary_month) constraint catches the race the check cannot.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditAction
from app.models.branch import Branch
from app.models.payroll import (
    Employee,
    EmployeeAdjustment,
    AdjustmentType,
    AdjustmentStatus,
    EmploymentStatus,
    SalaryPayment,
)
from app.models.transaction import Transaction, TransactionCategory, PaymentMethod
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.employee_service import EmployeeService
from app.services.ledger_service import LedgerService, coerce_enum, coerce_payment_method
from app.utils.error_handling import (
    AppException,
    BranchNotFoundException,
    EmployeeInactiveException,
    NonPositiveNetSalaryException,
    SalaryAlreadyPaidException,
    SettlementConflictException,
)
from app.utils.money import ZERO, parse_amount, sum_money, to_money
from app.utils.periods import parse_salary_month, salary_month_of
from app.utils.permissions import BranchScope, ensure_branch_access, scope_for_user


logger = logging.getLogger(__name__)


SALARY_PAYMENT_UNIQUE_CONSTRAINT = "uq_salary_payments_employee_month"


# ===========================================
# RESULTS
# ===========================================

@dataclass
class AdjustmentResult:
    """Created adjustment and, for advances, the ledger expense."""
    adjustment: EmployeeAdjustment
    transaction: Optional[Transaction] = None


@dataclass
class SalarySummary:
    """Salary figures for one employee and month. Never stored."""
    employee: Employee
    salary_month: str
    period_start: date
    period_end: date
    base_salary: Decimal
    allowance: Decimal
    gross_salary: Decimal
    pending_adjustments: List[EmployeeAdjustment]
    total_bonuses: Decimal
    total_deductions: Decimal
    total_advances: Decimal
    net_salary: Decimal
    is_paid: bool = False


@dataclass
class SettlementResult:
    """Outcome of a committed salary settlement."""
    salary_payment: SalaryPayment
    transaction: Transaction
    processed_adjustment_ids: List[uuid.UUID] = field(default_factory=list)

    @property
    def adjustments_processed(self) -> int:
        return len(self.processed_adjustment_ids)


@dataclass
class PayrollSummary:
    """Settled payroll of one branch for one month."""
    branch_id: uuid.UUID
    salary_month: str
    payments_count: int
    total_gross: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    total_advances: Decimal
    total_net: Decimal
    unpaid_employees: List[Employee]


def _adjustment_snapshot(adjustment: EmployeeAdjustment) -> Dict[str, Any]:
    return {
        "employee_id": str(adjustment.employee_id),
        "adjustment_type": adjustment.adjustment_type.value,
        "amount": str(adjustment.amount),
        "adjustment_date": adjustment.adjustment_date.isoformat(),
        "description": adjustment.description,
        "status": adjustment.status.value,
        "transaction_id": str(adjustment.transaction_id) if adjustment.transaction_id else None,
    }


def _is_duplicate_settlement(exc: IntegrityError) -> bool:
    """Whether an IntegrityError is the (employee_id, salary_month) unique violation."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    if SALARY_PAYMENT_UNIQUE_CONSTRAINT in message:
        return True
    # SQLite names the columns instead of the constraint
    return "salary_payments.employee_id" in message and "salary_payments.salary_month" in message


class PayrollService:
    """
    Payroll service for salary adjustments and settlements.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.employees = EmployeeService(db)
        self.ledger = LedgerService(db)
        self.audit = AuditService(db)

    # ===========================================
    # QUERIES
    # ===========================================

    async def _find_salary_payment(
        self,
        employee_id: uuid.UUID,
        salary_month: str,
    ) -> Optional[SalaryPayment]:
        result = await self.db.execute(
            select(SalaryPayment).where(
                SalaryPayment.employee_id == employee_id,
                SalaryPayment.salary_month == salary_month,
            )
        )
        return result.scalar_one_or_none()

    async def _pending_adjustments(
        self,
        employee_id: uuid.UUID,
        period_start: date,
        period_end: date,
        for_update: bool = False,
    ) -> List[EmployeeAdjustment]:
        query = (
            select(EmployeeAdjustment)
            .where(
                EmployeeAdjustment.employee_id == employee_id,
                EmployeeAdjustment.status == AdjustmentStatus.PENDING,
                EmployeeAdjustment.adjustment_date >= period_start,
                EmployeeAdjustment.adjustment_date <= period_end,
            )
            .order_by(EmployeeAdjustment.adjustment_date, EmployeeAdjustment.created_at)
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    def _summarize(
        self,
        employee: Employee,
        salary_month: str,
        period_start: date,
        period_end: date,
        adjustments: List[EmployeeAdjustment],
    ) -> SalarySummary:
        """Partition adjustments by type and compute gross and net."""
        bonuses = sum_money(
            a.amount for a in adjustments if a.adjustment_type == AdjustmentType.BONUS
        )
        deductions = sum_money(
            a.amount for a in adjustments if a.adjustment_type == AdjustmentType.DEDUCTION
        )
        advances = sum_money(
            a.amount for a in adjustments if a.adjustment_type == AdjustmentType.ADVANCE
        )

        base_salary = employee.base_salary
        allowance = employee.allowance or ZERO
        gross_salary = base_salary + allowance
        net_salary = gross_salary + bonuses - deductions - advances

        return SalarySummary(
            employee=employee,
            salary_month=salary_month,
            period_start=period_start,
            period_end=period_end,
            base_salary=base_salary,
            allowance=allowance,
            gross_salary=gross_salary,
            pending_adjustments=adjustments,
            total_bonuses=bonuses,
            total_deductions=deductions,
            total_advances=advances,
            net_salary=net_salary,
        )

    # ===========================================
    # ADJUSTMENTS
    # ===========================================

    async def create_adjustment(
        self,
        employee_id: uuid.UUID,
        adjustment_type: AdjustmentType,
        amount: Any,
        adjustment_date: date,
        acting_user: User,
        description: Optional[str] = None,
    ) -> AdjustmentResult:
        """
        Record a bonus, deduction or cash advance for an employee.

        The employee row is locked for the duration, which serializes this
        call against a settlement of the same employee.

        Raises:
            EmployeeNotFoundException: unknown employee
            BranchAccessDeniedException: employee outside the user's branches
            EmployeeInactiveException: the employee has left
            ValidationException: bad amount or type
            SalaryAlreadyPaidException: the month of adjustment_date is settled
        """
        actor_id = acting_user.id
        try:
            employee = await self.employees.get_accessible_employee(
                employee_id, acting_user, for_update=True,
            )
            if employee.status != EmploymentStatus.ACTIVE:
                raise EmployeeInactiveException(employee.id)
            adjustment_type = coerce_enum(AdjustmentType, adjustment_type, "type")
            amount = parse_amount(amount)

            salary_month = salary_month_of(adjustment_date)
            if await self._find_salary_payment(employee.id, salary_month):
                raise SalaryAlreadyPaidException(
                    employee.id,
                    salary_month,
                    message=(
                        f"Salary for {salary_month} has already been paid; "
                        "adjustments dated in that month can no longer be settled"
                    ),
                )

            transaction = None
            if adjustment_type == AdjustmentType.ADVANCE:
                note = f"Cash advance to {employee.name}"
                if description:
                    note = f"{note}: {description}"
                transaction = await self.ledger.record_expense(
                    branch_id=employee.branch_id,
                    category=TransactionCategory.EMPLOYEE_SALARIES,
                    amount=amount,
                    transaction_date=adjustment_date,
                    payment_method=PaymentMethod.CASH,
                    employee_id=employee.id,
                    notes=note,
                    acting_user=acting_user,
                    commit=False,
                )

            adjustment = EmployeeAdjustment(
                employee_id=employee.id,
                adjustment_type=adjustment_type,
                amount=amount,
                adjustment_date=adjustment_date,
                description=description,
                status=AdjustmentStatus.PENDING,
                transaction_id=transaction.id if transaction else None,
                created_by_id=actor_id,
            )
            self.db.add(adjustment)
            await self.db.flush()

            await self.audit.log_action(
                action=AuditAction.CREATE,
                target_entity_type="employee_adjustment",
                target_entity_id=str(adjustment.id),
                user_id=actor_id,
                branch_id=employee.branch_id,
                new_values=_adjustment_snapshot(adjustment),
            )

            await self.db.commit()
        except AppException as exc:
            await self.db.rollback()
            logger.warning(
                "Adjustment for employee %s rejected: %s", employee_id, exc.message,
            )
            raise
        except Exception:
            await self.db.rollback()
            logger.warning(
                "Adjustment for employee %s rolled back", employee_id, exc_info=True,
            )
            raise

        await self.db.refresh(adjustment)
        if transaction is not None:
            await self.db.refresh(transaction)

        logger.info(
            "Recorded %s of %s for employee %s (adjustment %s)",
            adjustment.adjustment_type.value, adjustment.amount, employee_id, adjustment.id,
        )
        return AdjustmentResult(adjustment=adjustment, transaction=transaction)

    async def list_adjustments(
        self,
        acting_user: User,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[AdjustmentStatus] = None,
        salary_month: Optional[str] = None,
        adjustment_type: Optional[AdjustmentType] = None,
    ) -> List[EmployeeAdjustment]:
        """List adjustments visible to the acting user, newest first."""
        query = select(EmployeeAdjustment)

        if employee_id is not None:
            await self.employees.get_accessible_employee(employee_id, acting_user)
            query = query.where(EmployeeAdjustment.employee_id == employee_id)
        else:
            scope = scope_for_user(acting_user)
            if isinstance(scope, BranchScope):
                query = query.join(Employee, Employee.id == EmployeeAdjustment.employee_id).where(
                    Employee.branch_id == scope.branch_id
                )

        if salary_month:
            period_start, period_end = parse_salary_month(salary_month)
            query = query.where(
                EmployeeAdjustment.adjustment_date >= period_start,
                EmployeeAdjustment.adjustment_date <= period_end,
            )
        if status:
            query = query.where(EmployeeAdjustment.status == status)
        if adjustment_type:
            query = query.where(EmployeeAdjustment.adjustment_type == adjustment_type)

        query = query.order_by(
            EmployeeAdjustment.adjustment_date.desc(),
            EmployeeAdjustment.created_at.desc(),
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # SALARY DETAILS
    # ===========================================

    async def get_salary_details(
        self,
        employee_id: uuid.UUID,
        salary_month: str,
        acting_user: User,
    ) -> SalarySummary:
        """
        Compute the salary an employee would receive for a month.

        Read only. Uses the employee's current base salary and allowance and
        the PENDING adjustments dated in the month. A negative net salary is
        returned as is.
        """
        employee = await self.employees.get_accessible_employee(employee_id, acting_user)
        period_start, period_end = parse_salary_month(salary_month)

        adjustments = await self._pending_adjustments(employee.id, period_start, period_end)
        summary = self._summarize(employee, salary_month, period_start, period_end, adjustments)
        summary.is_paid = await self._find_salary_payment(employee.id, salary_month) is not None
        return summary

    # ===========================================
    # SETTLEMENT
    # ===========================================

    async def pay_salary(
        self,
        employee_id: uuid.UUID,
        salary_month: str,
        acting_user: User,
        payment_method: Any = PaymentMethod.CASH,
        payment_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> SettlementResult:
        """
        Settle an employee's salary for a month.

        Steps, in one database transaction:
        1. lock the employee and read the month's PENDING adjustments
        2. compute the net salary from exactly those rows; reject net <= 0
        3. write the ledger expense for the net amount
        4. write the salary payment with the full breakdown
        5. flip the adjustments read in step 1 to PROCESSED
        6. write the audit entry
        7. commit

        Any failure rolls everything back.

        Raises:
            EmployeeNotFoundException, BranchAccessDeniedException
            InvalidSalaryMonthException, InvalidPaymentMethodException,
            EmployeeInactiveException, NonPositiveNetSalaryException
            SalaryAlreadyPaidException: month already settled
            SettlementConflictException: a concurrent request won the race
        """
        actor_id = acting_user.id
        payment_date = payment_date or date.today()

        try:
            employee = await self.employees.get_accessible_employee(
                employee_id, acting_user, for_update=True,
            )
            period_start, period_end = parse_salary_month(salary_month)
            payment_method = coerce_payment_method(payment_method)

            if employee.status != EmploymentStatus.ACTIVE:
                raise EmployeeInactiveException(employee.id)

            if await self._find_salary_payment(employee.id, salary_month):
                raise SalaryAlreadyPaidException(employee.id, salary_month)

            adjustments = await self._pending_adjustments(
                employee.id, period_start, period_end, for_update=True,
            )
            summary = self._summarize(
                employee, salary_month, period_start, period_end, adjustments,
            )
            if summary.net_salary <= 0:
                raise NonPositiveNetSalaryException(salary_month, summary.net_salary)

            ledger_note = f"Salary payment for {salary_month} - {employee.name}"
            if notes:
                ledger_note = f"{ledger_note}: {notes}"
            transaction = await self.ledger.record_expense(
                branch_id=employee.branch_id,
                category=TransactionCategory.EMPLOYEE_SALARIES,
                amount=summary.net_salary,
                transaction_date=payment_date,
                payment_method=payment_method,
                employee_id=employee.id,
                notes=ledger_note,
                reference=f"SALARY-{salary_month}",
                acting_user=acting_user,
                commit=False,
            )

            salary_payment = SalaryPayment(
                employee_id=employee.id,
                salary_month=salary_month,
                payment_date=payment_date,
                payment_method=payment_method,
                gross_salary=summary.gross_salary,
                total_bonuses=summary.total_bonuses,
                total_deductions=summary.total_deductions,
                total_advances=summary.total_advances,
                net_salary=summary.net_salary,
                transaction_id=transaction.id,
                notes=notes,
                created_by_id=actor_id,
            )
            self.db.add(salary_payment)
            await self.db.flush()

            processed_ids = [a.id for a in adjustments]
            if processed_ids:
                result = await self.db.execute(
                    update(EmployeeAdjustment)
                    .where(
                        EmployeeAdjustment.id.in_(processed_ids),
                        EmployeeAdjustment.status == AdjustmentStatus.PENDING,
                    )
                    .values(
                        status=AdjustmentStatus.PROCESSED,
                        salary_payment_id=salary_payment.id,
                    )
                    .execution_options(synchronize_session="evaluate")
                )
                if result.rowcount != len(processed_ids):
                    raise SettlementConflictException(
                        employee.id,
                        salary_month,
                        reason=(
                            f"expected to settle {len(processed_ids)} adjustments, "
                            f"{result.rowcount} were still pending"
                        ),
                    )

            await self.audit.log_action(
                action=AuditAction.CREATE,
                target_entity_type="salary_payment",
                target_entity_id=str(salary_payment.id),
                user_id=actor_id,
                branch_id=employee.branch_id,
                new_values={
                    "employee_id": str(employee.id),
                    "salary_month": salary_month,
                    "payment_date": payment_date.isoformat(),
                    "payment_method": payment_method.value,
                    "gross_salary": str(summary.gross_salary),
                    "total_bonuses": str(summary.total_bonuses),
                    "total_deductions": str(summary.total_deductions),
                    "total_advances": str(summary.total_advances),
                    "net_salary": str(summary.net_salary),
                    "transaction_id": str(transaction.id),
                    "adjustments_processed": len(processed_ids),
                    "processed_adjustment_ids": [str(i) for i in processed_ids],
                },
            )

            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if _is_duplicate_settlement(exc):
                logger.warning(
                    "Salary settlement for employee %s, %s lost a concurrent race",
                    employee_id, salary_month,
                )
                raise SettlementConflictException(
                    employee_id,
                    salary_month,
                    reason="a salary payment for this month was recorded concurrently",
                    original_error=exc,
                )
            logger.warning(
                "Salary settlement for employee %s, %s rolled back",
                employee_id, salary_month, exc_info=True,
            )
            raise
        except AppException as exc:
            await self.db.rollback()
            logger.warning(
                "Salary settlement for employee %s, %s rejected: %s",
                employee_id, salary_month, exc.message,
            )
            raise
        except Exception:
            await self.db.rollback()
            logger.warning(
                "Salary settlement for employee %s, %s rolled back",
                employee_id, salary_month, exc_info=True,
            )
            raise

        await self.db.refresh(salary_payment)
        await self.db.refresh(transaction)

        logger.info(
            "Paid salary %s for employee %s: net %s, %d adjustments processed (payment %s)",
            salary_month, employee_id, salary_payment.net_salary,
            len(processed_ids), salary_payment.id,
        )
        return SettlementResult(
            salary_payment=salary_payment,
            transaction=transaction,
            processed_adjustment_ids=processed_ids,
        )

    # ===========================================
    # HISTORY AND REPORTING
    # ===========================================

    async def list_salary_payments(
        self,
        acting_user: User,
        employee_id: Optional[uuid.UUID] = None,
        branch_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[SalaryPayment]:
        """List settled salaries visible to the acting user, newest first."""
        scope = scope_for_user(acting_user)
        query = select(SalaryPayment).join(Employee, Employee.id == SalaryPayment.employee_id)

        if employee_id is not None:
            await self.employees.get_accessible_employee(employee_id, acting_user)
            query = query.where(SalaryPayment.employee_id == employee_id)

        if branch_id is not None:
            ensure_branch_access(scope, branch_id, "Branch")
            query = query.where(Employee.branch_id == branch_id)
        elif isinstance(scope, BranchScope):
            query = query.where(Employee.branch_id == scope.branch_id)

        if start_date:
            query = query.where(SalaryPayment.payment_date >= start_date)
        if end_date:
            query = query.where(SalaryPayment.payment_date <= end_date)

        query = query.order_by(
            SalaryPayment.payment_date.desc(),
            SalaryPayment.created_at.desc(),
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_payroll_summary(
        self,
        branch_id: uuid.UUID,
        salary_month: str,
        acting_user: User,
    ) -> PayrollSummary:
        """
        Totals of the salaries settled for a branch and month, plus the
        active employees still waiting to be paid.
        """
        ensure_branch_access(scope_for_user(acting_user), branch_id, "Branch")
        branch = await self.db.get(Branch, branch_id)
        if not branch:
            raise BranchNotFoundException(branch_id)
        parse_salary_month(salary_month)

        totals = (
            await self.db.execute(
                select(
                    func.count(SalaryPayment.id),
                    func.coalesce(func.sum(SalaryPayment.gross_salary), 0),
                    func.coalesce(func.sum(SalaryPayment.total_bonuses), 0),
                    func.coalesce(func.sum(SalaryPayment.total_deductions), 0),
                    func.coalesce(func.sum(SalaryPayment.total_advances), 0),
                    func.coalesce(func.sum(SalaryPayment.net_salary), 0),
                )
                .join(Employee, Employee.id == SalaryPayment.employee_id)
                .where(
                    Employee.branch_id == branch_id,
                    SalaryPayment.salary_month == salary_month,
                )
            )
        ).one()

        paid_employee_ids = select(SalaryPayment.employee_id).where(
            SalaryPayment.salary_month == salary_month
        )
        unpaid = await self.db.execute(
            select(Employee)
            .where(
                Employee.branch_id == branch_id,
                Employee.status == EmploymentStatus.ACTIVE,
                Employee.id.not_in(paid_employee_ids),
            )
            .order_by(Employee.name)
        )

        return PayrollSummary(
            branch_id=branch_id,
            salary_month=salary_month,
            payments_count=totals[0],
            total_gross=to_money(totals[1]),
            total_bonuses=to_money(totals[2]),
            total_deductions=to_money(totals[3]),
            total_advances=to_money(totals[4]),
            total_net=to_money(totals[5]),
            unpaid_employees=list(unpaid.scalars().all()),
        )
