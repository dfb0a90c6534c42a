from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from fintrack import models, schemas
from fintrack.core.clock import Clock
from fintrack.core.database import unit_of_work

from .credit_cycle import (
    BillDetails,
    CreditCycle,
    calculate_bill_details,
    closing_day_of,
    compute_cycle,
    invoice_month_for,
)
from .errors import DomainRuleError
from .series_service import TransactionSeriesService
from .transaction_service import load_account

logger = logging.getLogger(__name__)


@dataclass
class CreditCycleSummary:
    account: models.Account
    cycle: CreditCycle
    bill: BillDetails


class CreditCardService:
    """Invoice cycles, bill payments and payment reversal for credit accounts."""

    def __init__(self, db: Session, user_id: int, clock: Clock) -> None:
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.series = TransactionSeriesService(db, user_id, clock)
        self.repo = self.series.repo

    def _credit_account(self, account_id: str) -> models.Account:
        account = load_account(self.db, self.user_id, account_id)
        if account.type != models.AccountType.CREDIT:
            raise DomainRuleError("Account is not a credit card")
        return account

    def cycle_summary(self, account_id: str, reference_month: str) -> CreditCycleSummary:
        account = self._credit_account(account_id)
        completed = self.repo.find_by_status(models.TransactionStatus.COMPLETED, account_id=account.id)
        bill = calculate_bill_details(account, completed, reference_month)
        cycle = compute_cycle(
            account,
            reference_month,
            bill.current_bill_amount,
            bill.payments,
            self.clock.now(),
            charges=bill.current_charges,
        )
        return CreditCycleSummary(account=account, cycle=cycle, bill=bill)

    def pay_bill(self, account_id: str, payload: schemas.BillPaymentCreate) -> tuple[models.Transaction, models.Transaction]:
        """Move ``amount`` from a non-credit account onto the card's ``reference_month`` invoice."""
        card = self._credit_account(account_id)
        source = load_account(self.db, self.user_id, payload.from_account_id)
        if source.type == models.AccountType.CREDIT:
            raise DomainRuleError("Bills cannot be paid from a credit account")

        description = payload.description or f"Credit card bill payment - {card.name}"
        with unit_of_work(self.db):
            outgoing, incoming = self.series.create_linked_pair(
                source=source,
                destination=card,
                amount=payload.amount,
                when=payload.date,
                status=models.TransactionStatus.COMPLETED,
                outgoing_description=description,
                incoming_description=description,
                incoming_extra={
                    "invoice_month": payload.reference_month,
                    "invoice_month_overridden": True,
                },
            )
            self.series.balances.recalculate_many([source.id, card.id])

        logger.info("Paid %s on card %s invoice %s", payload.amount, card.id, payload.reference_month)
        self.db.refresh(outgoing)
        self.db.refresh(incoming)
        return outgoing, incoming

    def reverse_payments(self, account_id: str, reference_month: str) -> list[str]:
        """Delete every payment (both legs) credited to the card's ``reference_month`` invoice."""
        card = self._credit_account(account_id)
        closing_day = closing_day_of(card)

        leg_ids: list[str] = []
        accounts: set[str] = {card.id}
        for row in self.repo.find_for_account(card.id):
            if row.linked_transaction_id is None or row.type != models.TransactionType.INCOME:
                continue
            if invoice_month_for(row, closing_day) != reference_month:
                continue
            leg_ids.append(row.id)
            for partner in self.repo.find_linked(row):
                leg_ids.append(partner.id)
                accounts.add(partner.account_id)

        if not leg_ids:
            return []
        self.series.locks.ensure_unlocked(row.date for row in self.repo.get_many(leg_ids))
        with unit_of_work(self.db):
            self.repo.delete_many(leg_ids)
            self.series.balances.recalculate_many(accounts)

        logger.info("Reversed %d payment leg(s) on card %s invoice %s", len(leg_ids), card.id, reference_month)
        return leg_ids