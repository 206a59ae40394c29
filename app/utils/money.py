"""
Mataam Back Office - Money Helpers

All amounts are fixed-point decimals with two places. Floats never reach the
database or the salary arithmetic.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from app.utils.error_handling import InvalidAmountException


MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")

# Money columns are NUMERIC(15, 2): at most 13 digits before the point
MAX_INTEGER_DIGITS = 13


def _as_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidAmountException(value, field=field)
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        value = str(value)
    try:
        result = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountException(value, field=field)
    if not result.is_finite():
        raise InvalidAmountException(value, field=field)
    if result and result.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidAmountException(
            value, field=field,
            message=f"Amount {value} exceeds {MAX_INTEGER_DIGITS} integer digits",
        )
    return result


def _quantize(amount: Decimal, value: Any, field: str) -> Decimal:
    try:
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountException(value, field=field)


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a value to a 2-place Decimal.

    Rounds half up. Use for stored or computed figures, not for raw user input
    (see parse_amount).
    """
    return _quantize(_as_decimal(value, field), value, field)


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Validate a user-supplied monetary amount.

    The amount must be a finite number greater than zero with at most two
    decimal places and at most 13 digits before the point. Nothing is
    rounded: 10.005 is rejected rather than silently turned into 10.01.

    Raises:
        InvalidAmountException: if any of the above does not hold
    """
    amount = _as_decimal(value, field)
    if amount <= 0:
        raise InvalidAmountException(
            value, field=field, message=f"Amount must be greater than zero, got {value}",
        )
    quantized = _quantize(amount, value, field)
    if amount != quantized:
        raise InvalidAmountException(
            value, field=field, message=f"Amount {value} has more than 2 decimal places",
        )
    return quantized


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of money values; 0.00 for an empty iterable."""
    total = ZERO
    for value in values:
        total += value
    return total.quantize(MONEY_QUANTUM)
