"""
Mataam Back Office - Salary Month Helpers

A salary month is a "YYYY-MM" token covering every calendar day of that month.
"""

import calendar
import re
from datetime import date
from typing import Tuple

from app.utils.error_handling import InvalidSalaryMonthException


SALARY_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def parse_salary_month(salary_month: str, field: str = "month") -> Tuple[date, date]:
    """
    Resolve a salary month to its inclusive date range.

    Args:
        salary_month: Month token such as "2024-02"

    Returns:
        (first_day, last_day) of the month; February honors leap years

    Raises:
        InvalidSalaryMonthException: malformed token or month outside 1..12
    """
    if not isinstance(salary_month, str):
        raise InvalidSalaryMonthException(salary_month, field=field)

    match = SALARY_MONTH_PATTERN.match(salary_month)
    if not match:
        raise InvalidSalaryMonthException(salary_month, field=field)

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidSalaryMonthException(salary_month, field=field)

    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def salary_month_of(day: date) -> str:
    """Salary month token containing the given date."""
    return f"{day.year:04d}-{day.month:02d}"
