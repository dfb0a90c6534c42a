"""
Date and amount helpers
"""

from datetime import date

import pytest

from fintrack.models import TransactionType
from fintrack.utils import add_month, add_months_clamped, clamp_day, format_month, parse_month, signed_amount


class TestMonthArithmetic:
    def test_add_month_wraps_years(self):
        assert add_month(2024, 12, 1) == (2025, 1)
        assert add_month(2024, 1, -1) == (2023, 12)
        assert add_month(2024, 6, 30) == (2026, 12)

    def test_clamp_day(self):
        assert clamp_day(2023, 2, 31) == date(2023, 2, 28)
        assert clamp_day(2024, 2, 31) == date(2024, 2, 29)
        assert clamp_day(2024, 4, 31) == date(2024, 4, 30)
        assert clamp_day(2024, 5, 31) == date(2024, 5, 31)

    def test_add_months_clamped_keeps_day(self):
        assert add_months_clamped(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months_clamped(date(2024, 2, 29), 1, day=31) == date(2024, 3, 31)


class TestMonthKeys:
    def test_round_trip(self):
        assert parse_month("2024-03") == (2024, 3)
        assert format_month(2024, 3) == "2024-03"

    @pytest.mark.parametrize("value", ["2024-3", "2024-00", "2024-13", "March", ""])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_month(value)


class TestSignedAmount:
    def test_expense_is_negative(self):
        assert signed_amount(TransactionType.EXPENSE, 5000) == -5000
        assert signed_amount(TransactionType.EXPENSE, -5000) == -5000

    def test_income_is_positive(self):
        assert signed_amount(TransactionType.INCOME, -5000) == 5000
        assert signed_amount("income", 5000) == 5000

    def test_transfer_keeps_sign(self):
        assert signed_amount(TransactionType.TRANSFER, -700) == -700
        assert signed_amount(TransactionType.TRANSFER, 700) == 700
