"""
Mataam Back Office - Payroll Models

Restaurant payroll:
- employees: staff per branch with a monthly base salary and allowance
- employee_adjustments: bonuses, deductions and cash advances that feed the
  next salary settlement of the month they are dated in
- salary_payments: one settled salary per employee per month
- salary_increases: history of base salary raises

Adjustment lifecycle:
    PENDING --(salary settlement of its month)--> PROCESSED

PROCESSED is terminal. Adjustments and salary payments are financial
records and are never deleted.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import (
    Date, ForeignKey, Numeric, String, Text,
    Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.models.transaction import PaymentMethod

if TYPE_CHECKING:
    from app.models.branch import Branch


# ===========================================
# ENUMS
# ===========================================

class EmploymentStatus(str, Enum):
    """Employment status."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class AdjustmentType(str, Enum):
    """Kind of salary adjustment."""
    BONUS = "bonus"
    DEDUCTION = "deduction"
    ADVANCE = "advance"


class AdjustmentStatus(str, Enum):
    """Adjustment settlement status."""
    PENDING = "pending"
    PROCESSED = "processed"


# ===========================================
# EMPLOYEE
# ===========================================

class Employee(BaseModel, AuditMixin):
    """
    Employee of a branch.

    Salary figures are read at settlement time, so a raise applies to every
    month settled after it is recorded.
    """

    __tablename__ = "employees"

    branch_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str] = mapped_column(String(100), nullable=False)

    base_salary: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        comment="Monthly base salary",
    )
    allowance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        comment="Fixed monthly allowance",
    )

    status: Mapped[EmploymentStatus] = mapped_column(
        SQLEnum(EmploymentStatus),
        default=EmploymentStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    resignation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    branch: Mapped["Branch"] = relationship(
        "Branch",
        back_populates="employees",
    )
    adjustments: Mapped[List["EmployeeAdjustment"]] = relationship(
        "EmployeeAdjustment",
        back_populates="employee",
    )
    salary_payments: Mapped[List["SalaryPayment"]] = relationship(
        "SalaryPayment",
        back_populates="employee",
    )
    salary_increases: Mapped[List["SalaryIncrease"]] = relationship(
        "SalaryIncrease",
        back_populates="employee",
        order_by="SalaryIncrease.effective_date",
    )

    __table_args__ = (
        CheckConstraint("base_salary >= 0", name="base_salary_non_negative"),
        CheckConstraint("allowance >= 0", name="allowance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name={self.name}, branch_id={self.branch_id})>"


# ===========================================
# EMPLOYEE ADJUSTMENT
# ===========================================

class EmployeeAdjustment(BaseModel, AuditMixin):
    """
    A bonus, deduction or cash advance waiting for salary settlement.

    Advances are paid out immediately (a ledger expense is written when the
    adjustment is created) and are then recovered from the salary of the
    month they are dated in.
    """

    __tablename__ = "employee_adjustments"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    adjustment_type: Mapped[AdjustmentType] = mapped_column(
        SQLEnum(AdjustmentType),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
    )
    adjustment_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[AdjustmentStatus] = mapped_column(
        SQLEnum(AdjustmentStatus),
        default=AdjustmentStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Ledger row for the cash handed out (advances only)
    transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=True,
        unique=True,
    )

    # Settlement that consumed this adjustment
    salary_payment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("salary_payments.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="adjustments",
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="adjustment_amount_positive"),
        Index(
            "ix_employee_adjustments_employee_status_date",
            "employee_id", "status", "adjustment_date",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<EmployeeAdjustment(id={self.id}, type={self.adjustment_type}, "
            f"amount={self.amount}, status={self.status})>"
        )


# ===========================================
# SALARY PAYMENT
# ===========================================

class SalaryPayment(BaseModel, AuditMixin):
    """
    Settled salary for one employee and one month.

    The unique (employee_id, salary_month) constraint is the storage-level
    guard against paying the same month twice.
    """

    __tablename__ = "salary_payments"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    salary_month: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Settled month as YYYY-MM",
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod),
        nullable=False,
    )

    # Breakdown at settlement time
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    total_bonuses: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), default=Decimal("0.00"), nullable=False,
    )
    total_deductions: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), default=Decimal("0.00"), nullable=False,
    )
    total_advances: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), default=Decimal("0.00"), nullable=False,
    )
    net_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="salary_payments",
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "salary_month", name="uq_salary_payments_employee_month"),
        CheckConstraint("net_salary > 0", name="net_salary_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<SalaryPayment(id={self.id}, employee_id={self.employee_id}, "
            f"month={self.salary_month}, net={self.net_salary})>"
        )


# ===========================================
# SALARY INCREASE
# ===========================================

class SalaryIncrease(BaseModel, AuditMixin):
    """
    A raise of an employee's base salary.

    Rows are history only: the employee's base_salary already holds the new
    figure once the raise is recorded.
    """

    __tablename__ = "salary_increases"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    previous_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    new_salary: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    increase_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="salary_increases",
    )

    __table_args__ = (
        CheckConstraint("increase_amount > 0", name="increase_amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<SalaryIncrease(id={self.id}, employee_id={self.employee_id}, "
            f"{self.previous_salary} -> {self.new_salary})>"
        )
