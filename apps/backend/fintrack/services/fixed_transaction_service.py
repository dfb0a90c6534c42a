from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack import models, schemas
from fintrack.core.clock import Clock
from fintrack.core.config import settings
from fintrack.core.database import unit_of_work
from fintrack.utils.amounts import signed_amount

from .errors import DomainRuleError, DuplicateOccurrenceError, NotFoundError
from .recurrence import generate_occurrences, initial_horizon_months, next_anchor
from .scope_resolver import EditScope
from .series_service import DeleteOutcome, TransactionSeriesService
from .transaction_service import load_account

logger = logging.getLogger(__name__)


@dataclass
class FixedSeriesSummary:
    principal: models.Transaction
    pending_count: int
    completed_count: int
    last_generated_date: Optional[dt.date]


class FixedTransactionService:
    """Recurring ("fixed") transactions: a principal row plus monthly children."""

    def __init__(self, db: Session, user_id: int, clock: Clock) -> None:
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.series = TransactionSeriesService(db, user_id, clock)
        self.repo = self.series.repo

    def get_principal(self, principal_id: str) -> models.Transaction:
        principal = self.repo.get(principal_id)
        if principal is None or not principal.is_fixed or principal.parent_transaction_id is not None:
            raise NotFoundError(f"Fixed transaction {principal_id} not found")
        return principal

    def create(self, payload: schemas.FixedTransactionCreate) -> tuple[models.Transaction, list[models.Transaction]]:
        """Insert the principal and its children through the end of next year."""
        account = load_account(self.db, self.user_id, payload.account_id)
        self.series._check_category(payload.category_id)
        self.series.locks.ensure_unlocked([payload.date])

        principal_id = models.new_id()
        try:
            with unit_of_work(self.db):
                (principal,) = self.repo.insert_many(
                    [
                        {
                            "id": principal_id,
                            "description": payload.description,
                            "amount": signed_amount(payload.type, payload.amount),
                            "date": payload.date,
                            "type": payload.type,
                            "status": models.TransactionStatus.PENDING,
                            "account_id": account.id,
                            "category_id": payload.category_id,
                            "is_fixed": True,
                        }
                    ]
                )
                months = initial_horizon_months(payload.date)
                occurrences = generate_occurrences(principal, principal.date, months)
                self.series.locks.ensure_unlocked(occ.date for occ in occurrences)
                children = self.repo.insert_many(occ.as_row() for occ in occurrences)
                # Everything is pending, so balances do not move
        except IntegrityError as exc:
            raise DuplicateOccurrenceError("Fixed transaction could not be created") from exc

        logger.info("Created fixed transaction %s with %d children", principal_id, len(children))
        self.db.refresh(principal)
        return principal, self.repo.find_by_parent(principal_id)

    def _summarize(self, principal: models.Transaction) -> FixedSeriesSummary:
        children = self.repo.find_by_parent(principal.id)
        return FixedSeriesSummary(
            principal=principal,
            pending_count=sum(1 for c in children if c.status == models.TransactionStatus.PENDING),
            completed_count=sum(1 for c in children if c.status == models.TransactionStatus.COMPLETED),
            last_generated_date=max((c.date for c in children), default=None),
        )

    def list_series(self) -> list[FixedSeriesSummary]:
        return [self._summarize(principal) for principal in self.repo.find_principals()]

    def summary(self, principal_id: str) -> FixedSeriesSummary:
        return self._summarize(self.get_principal(principal_id))

    def generate_next(self, principal_id: str, months: Optional[int] = None) -> list[models.Transaction]:
        """Add ``months`` pending children after the latest existing one.

        Running it twice adds two consecutive horizons, never the same months
        twice; a concurrent duplicate trips the (parent, date) unique constraint.
        """
        principal = self.get_principal(principal_id)
        months = settings.FIXED_HORIZON_MONTHS if months is None else months
        if months < 1:
            raise DomainRuleError("months must be at least 1")

        try:
            with unit_of_work(self.db):
                created = self._generate(principal, months)
        except IntegrityError as exc:
            logger.warning("Duplicate generation rejected for fixed transaction %s", principal_id)
            raise DuplicateOccurrenceError("Some of these months were already generated") from exc

        logger.info("Generated %d occurrence(s) for fixed transaction %s", len(created), principal_id)
        return self.repo.get_many(row.id for row in created)

    def _generate(self, principal: models.Transaction, months: int) -> list[models.Transaction]:
        children = self.repo.find_by_parent(principal.id)
        anchor = next_anchor(principal, (c.date for c in children))
        occurrences = generate_occurrences(principal, anchor, months)
        self.series.locks.ensure_unlocked(occ.date for occ in occurrences)
        return self.repo.insert_many(occ.as_row() for occ in occurrences)

    def renew_all(self, months: Optional[int] = None) -> dict[str, int]:
        """Generate the next horizon for every fixed transaction of the user."""
        months = settings.FIXED_HORIZON_MONTHS if months is None else months
        if months < 1:
            raise DomainRuleError("months must be at least 1")

        created: dict[str, int] = {}
        try:
            with unit_of_work(self.db):
                for principal in self.repo.find_principals():
                    created[principal.id] = len(self._generate(principal, months))
        except IntegrityError as exc:
            raise DuplicateOccurrenceError("Some of these months were already generated") from exc

        logger.info("Renewed %d fixed transaction(s), %d row(s) created", len(created), sum(created.values()))
        return created

    def update_series(self, principal_id: str, patch: Mapping[str, Any]) -> list[models.Transaction]:
        """Edit the principal (when still pending) and every pending child.

        Completed rows are settled history and keep their values.
        """
        principal = self.get_principal(principal_id)
        pending = models.TransactionStatus.PENDING
        ids = [principal.id] if principal.status == pending else []
        ids += [child.id for child in self.repo.find_by_parent(principal.id) if child.status == pending]
        if not ids:
            return []
        # No row leaves its month, the principal included: one occurrence per month
        return self.series.edit_rows(None, ids, patch)

    def delete_series(self, principal_id: str) -> DeleteOutcome:
        """Delete every pending row of the series, whatever its date.

        A completed principal is detached instead; completed children stay.
        """
        principal = self.get_principal(principal_id)
        return self.series.delete(principal.id, EditScope.CURRENT_AND_REMAINING)
