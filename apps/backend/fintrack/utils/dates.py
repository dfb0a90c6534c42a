"""
Calendar month arithmetic

Recurring rows, installments and credit cycles all step by calendar month and
pin a day-of-month that may not exist in every month.
"""

from __future__ import annotations

import calendar
import re
from datetime import date

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def add_month(year: int, month: int, delta: int) -> tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    new_year = total // 12
    new_month = total % 12 + 1
    return new_year, new_month


def clamp_day(year: int, month: int, day: int) -> date:
    """
    Build a date, clamping ``day`` to the last day of the month

    Example:
        >>> clamp_day(2025, 2, 31)
        datetime.date(2025, 2, 28)
        >>> clamp_day(2024, 2, 31)
        datetime.date(2024, 2, 29)
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(max(day, 1), last_day))


def add_months_clamped(base: date, delta: int, day: int | None = None) -> date:
    """
    Move ``delta`` calendar months from ``base`` keeping ``day`` (default: base.day)

    Never rolls over into the following month: Jan 31 + 1 month is Feb 28/29.
    """
    year, month = add_month(base.year, base.month, delta)
    return clamp_day(year, month, day if day is not None else base.day)


def parse_month(value: str) -> tuple[int, int]:
    """
    Parse a ``YYYY-MM`` month key

    Raises:
        ValueError: when the value is not a valid month key
    """
    match = _MONTH_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    return year, month


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
