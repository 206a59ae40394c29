"""
Mataam Back Office - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.base import CamelModel, EnumName
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeResign,
    SalaryIncreaseCreate,
    SalaryIncreaseResponse,
)
from app.schemas.transaction import TransactionCreate, TransactionResponse
from app.schemas.payroll import (
    AdjustmentCreate,
    AdjustmentResponse,
    AdjustmentCreateResponse,
    SalaryTotals,
    SalaryDetailsResponse,
    PaySalaryRequest,
    SalaryPaymentResponse,
    PaySalaryResponse,
    UnpaidEmployee,
    PayrollSummaryResponse,
)
from app.schemas.audit import AuditLogResponse


__all__ = [
    # Base
    "CamelModel",
    "EnumName",
    # Employees
    "EmployeeCreate",
    "EmployeeResponse",
    "EmployeeResign",
    "SalaryIncreaseCreate",
    "SalaryIncreaseResponse",
    # Ledger
    "TransactionCreate",
    "TransactionResponse",
    # Payroll
    "AdjustmentCreate",
    "AdjustmentResponse",
    "AdjustmentCreateResponse",
    "SalaryTotals",
    "SalaryDetailsResponse",
    "PaySalaryRequest",
    "SalaryPaymentResponse",
    "PaySalaryResponse",
    "UnpaidEmployee",
    "PayrollSummaryResponse",
    # Audit
    "AuditLogResponse",
]
