"""
Mataam Back Office - Transaction Model

Ledger transactions: immutable income and expense records per branch.

Payroll writes an EXPENSE in the EMPLOYEE_SALARIES category whenever cash
leaves the till for an employee (advances and salary settlements).
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Numeric, String, Text, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, AuditMixin


class TransactionType(str, Enum):
    """Type of transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """How the money moved."""
    CASH = "cash"
    MASTER = "master"  # card terminal


class TransactionCategory(str, Enum):
    """Predefined transaction categories."""
    # Income
    SALES = "sales"
    SERVICES = "services"
    APP_PURCHASES = "app_purchases"
    OTHER_INCOME = "other_income"

    # Expense
    EMPLOYEE_SALARIES = "employee_salaries"
    WORKER_DAILY = "worker_daily"
    RENT = "rent"
    UTILITIES = "utilities"
    SUPPLIES = "supplies"
    MAINTENANCE = "maintenance"
    TRANSPORTATION = "transportation"
    INVENTORY = "inventory"
    OTHER_EXPENSE = "other_expense"


INCOME_CATEGORIES = frozenset({
    TransactionCategory.SALES,
    TransactionCategory.SERVICES,
    TransactionCategory.APP_PURCHASES,
    TransactionCategory.OTHER_INCOME,
})

EXPENSE_CATEGORIES = frozenset(set(TransactionCategory) - INCOME_CATEGORIES)


def category_matches_type(category: TransactionCategory, transaction_type: TransactionType) -> bool:
    """Check that a category belongs to the given transaction type."""
    if transaction_type == TransactionType.INCOME:
        return category in INCOME_CATEGORIES
    return category in EXPENSE_CATEGORIES


class Transaction(BaseModel, AuditMixin):
    """
    A ledger transaction.

    Rows are written once and never updated; corrections are new rows.
    """

    __tablename__ = "transactions"

    branch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType),
        nullable=False,
        index=True,
    )
    category: Mapped[TransactionCategory] = mapped_column(
        SQLEnum(TransactionCategory),
        nullable=False,
        index=True,
    )

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod),
        default=PaymentMethod.CASH,
        nullable=False,
    )

    # Set for salary and advance expenses
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, type={self.transaction_type}, amount={self.amount})>"
