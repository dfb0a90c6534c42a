"""Monthly expansion of fixed transactions and installment purchases."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Protocol
import datetime as dt

from fintrack.models import AccountType, TransactionStatus, TransactionType
from fintrack.utils.dates import add_months_clamped


class Definition(Protocol):
    id: str
    user_id: int
    description: str
    amount: int
    date: dt.date
    type: TransactionType
    account_id: str
    category_id: str | None


@dataclass(frozen=True)
class NewOccurrence:
    user_id: int
    description: str
    amount: int
    date: dt.date
    type: TransactionType
    account_id: str
    category_id: str | None
    parent_transaction_id: str
    status: TransactionStatus = TransactionStatus.PENDING
    is_fixed: bool = False

    def as_row(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class InstallmentSlice:
    number: int
    total: int
    amount: int
    date: dt.date
    status: TransactionStatus


def next_anchor(definition: Definition, existing_dates: Iterable[dt.date]) -> dt.date:
    """Date generation continues from: the latest child, or the definition itself."""
    latest = max(existing_dates, default=None)
    if latest is None or latest < definition.date:
        return definition.date
    return latest


def generate_occurrences(definition: Definition, from_date: dt.date, month_count: int) -> list[NewOccurrence]:
    """Materialize ``month_count`` pending occurrences after ``from_date``.

    Each step advances one calendar month from ``from_date`` and pins the
    definition's own day-of-month, clamped to the month length (day 31 becomes
    Feb 28/29, Apr 30, ...). Pass the latest existing child as ``from_date`` so
    repeated calls never cover a month twice.
    """
    if month_count < 0:
        raise ValueError("month_count must be >= 0")

    day = definition.date.day
    occurrences: list[NewOccurrence] = []
    for step in range(1, month_count + 1):
        occurrences.append(
            NewOccurrence(
                user_id=definition.user_id,
                description=definition.description,
                amount=definition.amount,
                date=add_months_clamped(from_date, step, day=day),
                type=definition.type,
                account_id=definition.account_id,
                category_id=definition.category_id,
                parent_transaction_id=definition.id,
            )
        )
    return occurrences


def initial_horizon_months(start: dt.date) -> int:
    """Children created with a new definition: the rest of its year plus the next one."""
    return (12 - start.month) + 12


def split_installments(total_amount: int, count: int) -> list[int]:
    """Split ``total_amount`` (cents, any sign) into ``count`` parts.

    The first part absorbs the remainder so the parts always sum to the total.
    """
    if count < 1:
        raise ValueError("count must be >= 1")
    magnitude = abs(int(total_amount))
    base, remainder = divmod(magnitude, count)
    sign = -1 if total_amount < 0 else 1
    parts = [base] * count
    parts[0] += remainder
    return [sign * part for part in parts]


def plan_installments(
    total_amount: int,
    count: int,
    start: dt.date,
    *,
    account_type: AccountType,
    requested_status: TransactionStatus,
    today: dt.date,
) -> list[InstallmentSlice]:
    """Installment rows for a purchase split over ``count`` months.

    Card purchases are on the bill already, so every slice is completed. For
    other accounts only slices dated up to ``today`` keep ``requested_status``;
    future ones are pending.
    """
    slices: list[InstallmentSlice] = []
    for index, amount in enumerate(split_installments(total_amount, count)):
        when = add_months_clamped(start, index)
        if account_type == AccountType.CREDIT:
            status = TransactionStatus.COMPLETED
        elif when <= today:
            status = requested_status
        else:
            status = TransactionStatus.PENDING
        slices.append(InstallmentSlice(number=index + 1, total=count, amount=amount, date=when, status=status))
    return slices
