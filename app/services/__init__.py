"""
Mataam Back Office - Services Package

Business logic services.
"""

from app.services.audit_service import AuditService
from app.services.ledger_service import LedgerService
from app.services.employee_service import EmployeeService
from app.services.payroll_service import (
    PayrollService,
    AdjustmentResult,
    SalarySummary,
    SettlementResult,
    PayrollSummary,
)


__all__ = [
    "AuditService",
    "LedgerService",
    "EmployeeService",
    "PayrollService",
    "AdjustmentResult",
    "SalarySummary",
    "SettlementResult",
    "PayrollSummary",
]
