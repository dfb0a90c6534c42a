"""Credit card invoice cycles.

An invoice is identified by its closing month (``YYYY-MM``): purchases made up
to the closing day belong to that month's invoice, later ones roll into the
next. The due date follows the closing date, in the same month when the due
day is after the closing day, otherwise in the following month.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence
import datetime as dt

from fintrack.models import TransactionStatus, TransactionType
from fintrack.utils.dates import add_month, clamp_day, format_month, parse_month


class CycleAccount(Protocol):
    closing_date: int | None
    due_date: int | None
    limit_amount: int | None


class BillRow(Protocol):
    id: str
    amount: int
    date: dt.date
    type: TransactionType
    status: TransactionStatus
    invoice_month: str | None
    invoice_month_overridden: bool


class PaymentRow(Protocol):
    amount: int


@dataclass(frozen=True)
class CreditCycle:
    reference_month: str
    closing_date: dt.date
    due_date: dt.date
    is_closed: bool
    is_paid: bool
    amount_due: int
    paid_amount: int


@dataclass
class BillDetails:
    reference_month: str
    current_bill_amount: int = 0
    # Charges on the reference invoice before any payment
    current_charges: int = 0
    next_bill_amount: int = 0
    total_balance: int = 0
    available_limit: int | None = None
    payments: list = field(default_factory=list)


def closing_day_of(account: CycleAccount) -> int:
    return account.closing_date or 1


def due_day_of(account: CycleAccount) -> int:
    return account.due_date or 1


def cycle_dates(account: CycleAccount, reference_month: str) -> tuple[dt.date, dt.date]:
    year, month = parse_month(reference_month)
    closing_day = closing_day_of(account)
    due_day = due_day_of(account)

    closing = clamp_day(year, month, closing_day)
    if due_day <= closing_day:
        due_year, due_month = add_month(year, month, 1)
    else:
        due_year, due_month = year, month
    return closing, clamp_day(due_year, due_month, due_day)


def compute_cycle(
    account: CycleAccount,
    reference_month: str,
    current_bill_amount: int,
    payments: Iterable[PaymentRow],
    now: dt.datetime | dt.date,
    charges: int | None = None,
) -> CreditCycle:
    """Closing/due dates and closed/paid status of one invoice.

    ``current_bill_amount`` is the bill net of ``payments``; nothing is due once it
    drops to zero. When the bill still has a balance, a closed invoice counts as
    paid only if ``payments`` cover ``charges`` (the gross amount billed, defaulting
    to ``current_bill_amount``), so payments are never counted twice.
    """
    closing, due = cycle_dates(account, reference_month)
    today = now.date() if isinstance(now, dt.datetime) else now

    # Closed from midnight of the closing day onwards
    is_closed = closing <= today
    net_due = max(0, int(current_bill_amount))
    amount_due = net_due if charges is None else max(0, int(charges))
    paid_amount = sum(abs(int(p.amount)) for p in payments)
    is_paid = net_due <= 0 or amount_due <= 0 or (is_closed and paid_amount >= amount_due)

    return CreditCycle(
        reference_month=reference_month,
        closing_date=closing,
        due_date=due,
        is_closed=is_closed,
        is_paid=is_paid,
        amount_due=amount_due,
        paid_amount=paid_amount,
    )


def invoice_month_for(row: BillRow, closing_day: int) -> str:
    if row.invoice_month_overridden and row.invoice_month:
        return row.invoice_month
    closing = clamp_day(row.date.year, row.date.month, closing_day)
    if row.date <= closing:
        return format_month(row.date.year, row.date.month)
    return format_month(*add_month(row.date.year, row.date.month, 1))


def calculate_bill_details(
    account: CycleAccount,
    transactions: Sequence[BillRow],
    reference_month: str,
) -> BillDetails:
    """Aggregate completed card rows into the reference invoice and the next one.

    Expenses raise the bill, incomes (payments, refunds) lower it and are
    reported as payments of the invoice they land in.
    """
    year, month = parse_month(reference_month)
    next_month = format_month(*add_month(year, month, 1))
    closing_day = closing_day_of(account)
    details = BillDetails(reference_month=reference_month)

    for row in transactions:
        if row.status != TransactionStatus.COMPLETED:
            continue
        magnitude = abs(int(row.amount))
        is_expense = row.type == TransactionType.EXPENSE or (row.type == TransactionType.TRANSFER and row.amount < 0)
        invoice = invoice_month_for(row, closing_day)

        if is_expense:
            details.total_balance += magnitude
            if invoice == reference_month:
                details.current_bill_amount += magnitude
                details.current_charges += magnitude
            elif invoice == next_month:
                details.next_bill_amount += magnitude
        else:
            details.total_balance -= magnitude
            if invoice == reference_month:
                details.current_bill_amount -= magnitude
                details.payments.append(row)

    if account.limit_amount is not None:
        details.available_limit = int(account.limit_amount) - details.total_balance
    return details
