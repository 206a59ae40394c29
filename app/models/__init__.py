"""
Mataam Back Office - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.models.branch import Branch
from app.models.user import User, UserRole
from app.models.transaction import (
    Transaction,
    TransactionType,
    TransactionCategory,
    PaymentMethod,
    INCOME_CATEGORIES,
    EXPENSE_CATEGORIES,
)
from app.models.payroll import (
    Employee,
    EmploymentStatus,
    EmployeeAdjustment,
    AdjustmentType,
    AdjustmentStatus,
    SalaryPayment,
    SalaryIncrease,
)
from app.models.audit import AuditLog, AuditAction


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    # Organization
    "Branch",
    "User",
    "UserRole",
    # Ledger
    "Transaction",
    "TransactionType",
    "TransactionCategory",
    "PaymentMethod",
    "INCOME_CATEGORIES",
    "EXPENSE_CATEGORIES",
    # Payroll
    "Employee",
    "EmploymentStatus",
    "EmployeeAdjustment",
    "AdjustmentType",
    "AdjustmentStatus",
    "SalaryPayment",
    "SalaryIncrease",
    # Audit
    "AuditLog",
    "AuditAction",
]
