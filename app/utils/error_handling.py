"""
Error Handling Module for Mataam Back Office

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
- Payroll-specific business errors (already paid, settlement conflicts)
- Database error translation
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("mataam.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_SALARY_MONTH = "INVALID_SALARY_MONTH"
    INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    EMPLOYEE_INACTIVE = "EMPLOYEE_INACTIVE"
    NON_POSITIVE_NET_SALARY = "NON_POSITIVE_NET_SALARY"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    BRANCH_ACCESS_DENIED = "BRANCH_ACCESS_DENIED"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    BRANCH_NOT_FOUND = "BRANCH_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    ALREADY_PAID = "ALREADY_PAID"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            field=field,
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid amount: {amount}. Amount must be a positive number with at most 2 decimal places.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


class InvalidSalaryMonthException(ValidationException):
    """Salary month is not a YYYY-MM token"""

    def __init__(self, month: Any, field: str = "month"):
        super().__init__(
            message=f"Invalid salary month: {month}. Expected YYYY-MM.",
            field=field,
            code=ErrorCode.INVALID_SALARY_MONTH,
            details={"provided": str(month), "expected_format": "YYYY-MM"},
        )


class InvalidPaymentMethodException(ValidationException):
    """Unsupported payment method"""

    def __init__(self, payment_method: Any, allowed: list):
        super().__init__(
            message=f"Unsupported payment method: {payment_method}",
            field="payment_method",
            code=ErrorCode.INVALID_PAYMENT_METHOD,
            details={"provided": str(payment_method), "allowed": allowed},
        )


class InvalidCategoryException(ValidationException):
    """Category does not belong to the transaction type"""

    def __init__(self, category: Any, transaction_type: Any):
        super().__init__(
            message=f"Category '{category}' is not valid for {transaction_type} transactions",
            field="category",
            code=ErrorCode.INVALID_CATEGORY,
            details={"category": str(category), "transaction_type": str(transaction_type)},
        )


class EmployeeInactiveException(ValidationException):
    """Payroll entries cannot be recorded for an inactive employee"""

    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(
            message="Cannot record payroll entries for an inactive employee",
            field="employee_id",
            code=ErrorCode.EMPLOYEE_INACTIVE,
            details={"employee_id": str(employee_id)},
        )


class NonPositiveNetSalaryException(ValidationException):
    """Net salary for the month is zero or negative"""

    def __init__(self, salary_month: str, net_salary: Any):
        super().__init__(
            message=(
                f"Net salary for {salary_month} is {net_salary}; deductions and advances "
                "exceed gross pay and must be reconciled manually"
            ),
            field="salary_month",
            code=ErrorCode.NON_POSITIVE_NET_SALARY,
            details={"salary_month": salary_month, "net_salary": str(net_salary)},
        )


# ============================================================================
# Authorization Exceptions
# ============================================================================

class AuthorizationException(AppException):
    """Authorization denied exception"""

    def __init__(
        self,
        message: str = "Permission denied",
        required_permission: Optional[str] = None,
        code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if required_permission:
            _details["required_permission"] = required_permission
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=_details,
        )


class BranchAccessDeniedException(AuthorizationException):
    """Branch-scoped user reaching into another branch"""

    def __init__(self, resource_type: str, branch_id: Optional[Union[str, UUID]] = None):
        super().__init__(
            message=f"You do not have access to this {resource_type.lower()}",
            code=ErrorCode.BRANCH_ACCESS_DENIED,
            details={
                "resource_type": resource_type,
                "branch_id": str(branch_id) if branch_id else None,
            },
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class EmployeeNotFoundException(NotFoundException):
    """Employee not found"""

    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(
            resource_type="Employee",
            resource_id=employee_id,
            code=ErrorCode.EMPLOYEE_NOT_FOUND,
        )


class BranchNotFoundException(NotFoundException):
    """Branch not found"""

    def __init__(self, branch_id: Union[str, UUID]):
        super().__init__(
            resource_type="Branch",
            resource_id=branch_id,
            code=ErrorCode.BRANCH_NOT_FOUND,
        )


class TransactionNotFoundException(NotFoundException):
    """Transaction not found"""

    def __init__(self, transaction_id: Union[str, UUID]):
        super().__init__(
            resource_type="Transaction",
            resource_id=transaction_id,
            code=ErrorCode.TRANSACTION_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
            original_error=original_error,
        )


class SalaryAlreadyPaidException(ConflictException):
    """Salary for the month has already been settled"""

    def __init__(self, employee_id: Union[str, UUID], salary_month: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Salary for {salary_month} has already been paid",
            resource_type="SalaryPayment",
            code=ErrorCode.ALREADY_PAID,
            details={"employee_id": str(employee_id), "salary_month": salary_month},
        )


class SettlementConflictException(ConflictException):
    """A concurrent request changed the data the settlement was based on"""

    def __init__(
        self,
        employee_id: Union[str, UUID],
        salary_month: str,
        reason: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Salary settlement for {salary_month} conflicted with another request: {reason}",
            resource_type="SalaryPayment",
            details={"employee_id": str(employee_id), "salary_month": salary_month},
            original_error=original_error,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    # Map status codes to error codes
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    response = create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic request validation errors as 400 Bad Request"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"errors": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_message = "Data integrity constraint violated"
        error_code = ErrorCode.DATA_INTEGRITY_ERROR
        # Check for specific constraints
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_409_CONFLICT
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR
    elif isinstance(exc, DataError):
        error_message = "Invalid data format for database"
        status_code = status.HTTP_400_BAD_REQUEST

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    # Don't expose internal error details
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# Export all exceptions for easy importing
__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "InvalidAmountException",
    "InvalidSalaryMonthException",
    "InvalidPaymentMethodException",
    "InvalidCategoryException",
    "EmployeeInactiveException",
    "NonPositiveNetSalaryException",

    # Auth
    "AuthorizationException",
    "BranchAccessDeniedException",

    # Resource
    "NotFoundException",
    "EmployeeNotFoundException",
    "BranchNotFoundException",
    "TransactionNotFoundException",
    "ConflictException",
    "SalaryAlreadyPaidException",
    "SettlementConflictException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",
]
