"""
Mataam Back Office - Ledger Service

Business logic for recording income and expense transactions per branch.

Ledger rows are immutable. Payroll writes its expenses through
record_transaction(commit=False) so the ledger row joins the payroll unit of
work and is rolled back with it.
"""

import logging
import uuid
from datetime import date
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditAction
from app.models.branch import Branch
from app.models.payroll import Employee, EmploymentStatus
from app.models.transaction import (
    Transaction,
    TransactionType,
    TransactionCategory,
    PaymentMethod,
    category_matches_type,
)
from app.models.user import User
from app.services.audit_service import AuditService
from app.utils.error_handling import (
    BranchNotFoundException,
    EmployeeInactiveException,
    EmployeeNotFoundException,
    InvalidCategoryException,
    InvalidPaymentMethodException,
    TransactionNotFoundException,
    ValidationException,
)
from app.utils.money import parse_amount
from app.utils.permissions import BranchScope, ensure_branch_access, scope_for_user


logger = logging.getLogger(__name__)


def coerce_payment_method(value: Any) -> PaymentMethod:
    """Accept a PaymentMethod or its (case-insensitive) name/value."""
    if isinstance(value, PaymentMethod):
        return value
    if isinstance(value, str):
        try:
            return PaymentMethod(value.lower())
        except ValueError:
            pass
    raise InvalidPaymentMethodException(value, [m.value for m in PaymentMethod])


def coerce_enum(enum_cls, value: Any, field: str):
    """Accept an enum member or its (case-insensitive) value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.lower())
        except ValueError:
            pass
    raise ValidationException(
        f"Invalid {field}: {value}",
        field=field,
        details={"allowed": [m.value for m in enum_cls]},
    )


class LedgerService:
    """Service for ledger transaction operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def record_transaction(
        self,
        branch_id: uuid.UUID,
        transaction_type: TransactionType,
        category: TransactionCategory,
        amount: Any,
        transaction_date: date,
        payment_method: Any = PaymentMethod.CASH,
        employee_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
        reference: Optional[str] = None,
        acting_user: Optional[User] = None,
        commit: bool = True,
    ) -> Transaction:
        """
        Record a ledger transaction.

        Args:
            branch_id: Branch the money belongs to
            transaction_type: INCOME or EXPENSE
            category: Category matching the type
            amount: Positive amount, at most 2 decimal places
            transaction_date: Business date of the movement
            payment_method: CASH or MASTER
            employee_id: Employee the money went to (salary expenses)
            notes: Free text
            reference: External reference
            acting_user: User recording the transaction
            commit: When False the row is only flushed and the caller owns
                the transaction boundary

        Returns:
            The created Transaction

        Raises:
            ValidationException: bad amount, category, payment method, or a
                salary expense for an inactive employee
            BranchNotFoundException / EmployeeNotFoundException
        """
        transaction_type = coerce_enum(TransactionType, transaction_type, "transaction_type")
        category = coerce_enum(TransactionCategory, category, "category")
        payment_method = coerce_payment_method(payment_method)
        amount = parse_amount(amount)

        if not category_matches_type(category, transaction_type):
            raise InvalidCategoryException(category.value, transaction_type.value)

        branch = await self.db.get(Branch, branch_id)
        if not branch:
            raise BranchNotFoundException(branch_id)
        if acting_user is not None:
            ensure_branch_access(scope_for_user(acting_user), branch_id, "Branch")

        if employee_id is not None:
            employee = await self.db.get(Employee, employee_id)
            if not employee:
                raise EmployeeNotFoundException(employee_id)
            if employee.branch_id != branch_id:
                raise ValidationException(
                    "Employee does not belong to this branch",
                    field="employee_id",
                    details={"employee_id": str(employee_id), "branch_id": str(branch_id)},
                )
            if (
                category == TransactionCategory.EMPLOYEE_SALARIES
                and employee.status == EmploymentStatus.INACTIVE
            ):
                raise EmployeeInactiveException(employee_id)

        transaction = Transaction(
            branch_id=branch_id,
            transaction_type=transaction_type,
            category=category,
            amount=amount,
            transaction_date=transaction_date,
            payment_method=payment_method,
            employee_id=employee_id,
            notes=notes,
            reference=reference,
            created_by_id=acting_user.id if acting_user else None,
        )
        self.db.add(transaction)
        await self.db.flush()

        if commit:
            await self.audit.log_action(
                action=AuditAction.CREATE,
                target_entity_type="transaction",
                target_entity_id=str(transaction.id),
                user_id=acting_user.id if acting_user else None,
                branch_id=branch_id,
                new_values={
                    "transaction_type": transaction_type.value,
                    "category": category.value,
                    "amount": str(amount),
                    "transaction_date": transaction_date.isoformat(),
                    "payment_method": payment_method.value,
                },
            )
            await self.db.commit()
            await self.db.refresh(transaction)
            logger.info(
                "Recorded %s %s of %s for branch %s",
                transaction_type.value, category.value, amount, branch_id,
            )

        return transaction

    async def record_expense(
        self,
        branch_id: uuid.UUID,
        category: TransactionCategory,
        amount: Any,
        transaction_date: date,
        **kwargs,
    ) -> Transaction:
        """Shortcut for record_transaction with transaction_type=EXPENSE."""
        return await self.record_transaction(
            branch_id=branch_id,
            transaction_type=TransactionType.EXPENSE,
            category=category,
            amount=amount,
            transaction_date=transaction_date,
            **kwargs,
        )

    async def get_transaction(
        self,
        transaction_id: uuid.UUID,
        acting_user: User,
    ) -> Transaction:
        """Get a transaction visible to the acting user."""
        transaction = await self.db.get(Transaction, transaction_id)
        if not transaction:
            raise TransactionNotFoundException(transaction_id)
        ensure_branch_access(scope_for_user(acting_user), transaction.branch_id, "Transaction")
        return transaction

    async def list_transactions(
        self,
        acting_user: User,
        branch_id: Optional[uuid.UUID] = None,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[TransactionCategory] = None,
        employee_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Transaction]:
        """
        List transactions visible to the acting user, newest first.

        A branch-scoped user asking for another branch gets FORBIDDEN rather
        than an empty list.
        """
        scope = scope_for_user(acting_user)
        query = select(Transaction)

        if branch_id is not None:
            ensure_branch_access(scope, branch_id, "Branch")
            query = query.where(Transaction.branch_id == branch_id)
        elif isinstance(scope, BranchScope):
            query = query.where(Transaction.branch_id == scope.branch_id)

        if transaction_type:
            query = query.where(Transaction.transaction_type == transaction_type)
        if category:
            query = query.where(Transaction.category == category)
        if employee_id:
            query = query.where(Transaction.employee_id == employee_id)
        if start_date:
            query = query.where(Transaction.transaction_date >= start_date)
        if end_date:
            query = query.where(Transaction.transaction_date <= end_date)

        query = query.order_by(
            Transaction.transaction_date.desc(),
            Transaction.created_at.desc(),
        ).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())
