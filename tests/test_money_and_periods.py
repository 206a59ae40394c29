"""
Tests for money and salary month helpers.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.utils.error_handling import InvalidAmountException, InvalidSalaryMonthException
from app.utils.money import parse_amount, sum_money, to_money
from app.utils.periods import parse_salary_month, salary_month_of


class TestParseAmount:
    """Tests for user-supplied amounts."""

    def test_accepts_two_decimal_places(self):
        assert parse_amount("100.50") == Decimal("100.50")
        assert parse_amount(20) == Decimal("20.00")
        assert parse_amount(Decimal("0.01")) == Decimal("0.01")

    def test_float_is_read_through_its_text(self):
        assert parse_amount(0.1) == Decimal("0.10")

    def test_trailing_zeros_are_not_extra_precision(self):
        assert parse_amount("10.500") == Decimal("10.50")

    @pytest.mark.parametrize("value", [0, "0.00", -5, "-0.01"])
    def test_rejects_non_positive(self, value):
        with pytest.raises(InvalidAmountException):
            parse_amount(value)

    def test_rejects_more_than_two_places(self):
        with pytest.raises(InvalidAmountException) as exc_info:
            parse_amount("10.005")
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("value", ["abc", None, True, "NaN", "Infinity"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(InvalidAmountException):
            parse_amount(value)

    def test_largest_storable_amount(self):
        assert parse_amount("9999999999999.99") == Decimal("9999999999999.99")

    @pytest.mark.parametrize("value", ["1e30", "12345678901234567.00", "10000000000000"])
    def test_rejects_amounts_too_large_to_store(self, value):
        with pytest.raises(InvalidAmountException) as exc_info:
            parse_amount(value)
        assert "integer digits" in exc_info.value.message


class TestMoneyArithmetic:
    """Tests for rounding and sums."""

    def test_to_money_rounds_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("2.344") == Decimal("2.34")

    def test_to_money_rejects_huge_values(self):
        with pytest.raises(InvalidAmountException):
            to_money("1e30")

    def test_sum_is_exact(self):
        assert sum_money([Decimal("0.10"), Decimal("0.20")]) == Decimal("0.30")

    def test_empty_sum_is_zero(self):
        assert sum_money([]) == Decimal("0.00")


class TestSalaryMonth:
    """Tests for salary month tokens."""

    def test_regular_month(self):
        assert parse_salary_month("2024-03") == (date(2024, 3, 1), date(2024, 3, 31))

    def test_leap_february(self):
        assert parse_salary_month("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_common_february(self):
        assert parse_salary_month("2023-02") == (date(2023, 2, 1), date(2023, 2, 28))

    @pytest.mark.parametrize("value", ["2024-13", "2024-00", "2024-3", "03-2024", "abcd", "", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidSalaryMonthException):
            parse_salary_month(value)

    def test_month_of_date(self):
        assert salary_month_of(date(2024, 2, 29)) == "2024-02"
        assert salary_month_of(date(2024, 12, 1)) == "2024-12"
