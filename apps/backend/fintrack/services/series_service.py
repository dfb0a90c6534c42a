from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack import models, schemas
from fintrack.core.clock import Clock
from fintrack.core.config import settings
from fintrack.core.database import unit_of_work
from fintrack.utils.amounts import signed_amount
from fintrack.utils.dates import clamp_day

from .errors import DomainRuleError, DuplicateOccurrenceError, NotFoundError
from .period_lock import PeriodLockService
from .recurrence import plan_installments
from .scope_resolver import EditScope, ScopeAction, ScopeDecision, needs_siblings, resolve_scope
from .transaction_repository import TransactionRepository
from .transaction_service import AccountBalanceService, load_account

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "description",
    "amount",
    "date",
    "type",
    "category_id",
    "account_id",
    "status",
    "invoice_month",
)


@dataclass
class DeleteOutcome:
    deleted_ids: list[str] = field(default_factory=list)
    detached_ids: list[str] = field(default_factory=list)


class TransactionSeriesService:
    """Create, edit and delete transactions, propagating along their series.

    Every public mutation runs in a single unit of work and finishes by
    recalculating the balance of each account it touched.
    """

    def __init__(self, db: Session, user_id: int, clock: Clock) -> None:
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.repo = TransactionRepository(db, user_id)
        self.balances = AccountBalanceService(db)
        self.locks = PeriodLockService(db, user_id)

    # --- lookups -------------------------------------------------------------

    def get(self, txn_id: str) -> models.Transaction:
        txn = self.repo.get(txn_id)
        if txn is None:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return txn

    def resolve(self, txn_id: str, action: ScopeAction | str, scope: EditScope | str) -> tuple[models.Transaction, ScopeDecision]:
        target = self.get(txn_id)
        siblings = self.repo.find_series(target) if needs_siblings(target) else []
        return target, resolve_scope(action, target, siblings, scope)

    def _check_category(self, category_id: Optional[str]) -> None:
        if category_id is None:
            return
        exists = (
            self.db.query(models.Category.id)
            .filter(models.Category.id == category_id, models.Category.user_id == self.user_id)
            .first()
        )
        if not exists:
            raise NotFoundError(f"Category {category_id} not found")

    # --- create --------------------------------------------------------------

    def create(self, payload: schemas.TransactionCreate) -> list[models.Transaction]:
        """Create one transaction, or a whole installment series when ``installments >= 2``."""
        account = load_account(self.db, self.user_id, payload.account_id)
        self._check_category(payload.category_id)
        self.locks.ensure_unlocked([payload.date])

        base = {
            "type": payload.type,
            "account_id": account.id,
            "category_id": payload.category_id,
            "invoice_month": payload.invoice_month,
            "invoice_month_overridden": payload.invoice_month is not None,
        }

        with unit_of_work(self.db):
            if not payload.installments or payload.installments < 2:
                rows = self.repo.insert_many(
                    [
                        {
                            **base,
                            "description": payload.description,
                            "amount": signed_amount(payload.type, payload.amount),
                            "date": payload.date,
                            "status": payload.status,
                        }
                    ]
                )
            else:
                rows = self._insert_installments(payload, account, base)
            self.balances.recalculate(account.id)

        for row in rows:
            self.db.refresh(row)
        return rows

    def _insert_installments(
        self,
        payload: schemas.TransactionCreate,
        account: models.Account,
        base: Mapping[str, Any],
    ) -> list[models.Transaction]:
        count = int(payload.installments or 0)
        if count > settings.MAX_INSTALLMENTS:
            raise DomainRuleError(f"At most {settings.MAX_INSTALLMENTS} installments are allowed")
        plan = plan_installments(
            signed_amount(payload.type, payload.amount),
            count,
            payload.date,
            account_type=account.type,
            requested_status=payload.status,
            today=self.clock.today(),
        )
        self.locks.ensure_unlocked(part.date for part in plan)
        first_id = models.new_id()
        rows = [
            {
                **base,
                "id": first_id if part.number == 1 else models.new_id(),
                "description": f"{payload.description} ({part.number}/{part.total})",
                "amount": part.amount,
                "date": part.date,
                "status": part.status,
                "installments": part.total,
                "current_installment": part.number,
                "parent_transaction_id": first_id,
            }
            for part in plan
        ]
        created = self.repo.insert_many(rows)
        logger.info("Created %d installments for %s (series %s)", len(created), payload.description, first_id)
        return created

    def create_transfer(self, payload: schemas.TransferCreate) -> tuple[models.Transaction, models.Transaction]:
        if payload.from_account_id == payload.to_account_id:
            raise DomainRuleError("Source and destination accounts must be different")
        source = load_account(self.db, self.user_id, payload.from_account_id)
        destination = load_account(self.db, self.user_id, payload.to_account_id)

        with unit_of_work(self.db):
            outgoing, incoming = self.create_linked_pair(
                source=source,
                destination=destination,
                amount=payload.amount,
                when=payload.date,
                status=payload.status,
                outgoing_description=payload.outgoing_description or f"Transfer to {destination.name}",
                incoming_description=payload.incoming_description or f"Transfer from {source.name}",
            )
            self.balances.recalculate_many([source.id, destination.id])

        self.db.refresh(outgoing)
        self.db.refresh(incoming)
        return outgoing, incoming

    def create_linked_pair(
        self,
        *,
        source: models.Account,
        destination: models.Account,
        amount: int,
        when: dt.date,
        status: models.TransactionStatus,
        outgoing_description: str,
        incoming_description: str,
        incoming_extra: Optional[Mapping[str, Any]] = None,
    ) -> tuple[models.Transaction, models.Transaction]:
        """Insert an expense leg on ``source`` and an income leg on ``destination``, cross-linked.

        Must be called inside a unit of work.
        """
        self.locks.ensure_unlocked([when])
        outgoing, incoming = self.repo.insert_many(
            [
                {
                    "description": outgoing_description,
                    "amount": -abs(int(amount)),
                    "date": when,
                    "type": models.TransactionType.EXPENSE,
                    "status": status,
                    "account_id": source.id,
                    "to_account_id": destination.id,
                },
                {
                    "description": incoming_description,
                    "amount": abs(int(amount)),
                    "date": when,
                    "type": models.TransactionType.INCOME,
                    "status": status,
                    "account_id": destination.id,
                    **dict(incoming_extra or {}),
                },
            ]
        )
        outgoing.linked_transaction_id = incoming.id
        incoming.linked_transaction_id = outgoing.id
        self.db.flush()
        return outgoing, incoming

    # --- edit ----------------------------------------------------------------

    def edit(self, txn_id: str, patch: Mapping[str, Any], scope: EditScope | str) -> list[models.Transaction]:
        """Apply ``patch`` to the rows ``scope`` selects around ``txn_id``.

        The target takes the patch as-is. Other rows take it too, except that a
        new date only moves them to the new day-of-month within their own month.
        """
        target, decision = self.resolve(txn_id, ScopeAction.EDIT, scope)
        rows = self.edit_rows(target.id, decision.ids_to_mutate, patch)
        logger.info("Edited %d transaction(s) from %s with scope %s", len(rows), txn_id, EditScope(scope).value)
        return rows

    def edit_rows(
        self,
        target_id: Optional[str],
        ids: Sequence[str],
        patch: Mapping[str, Any],
    ) -> list[models.Transaction]:
        """Patch ``ids`` in one unit of work.

        ``target_id`` (if any) takes a new date verbatim; the other rows only take
        its day-of-month.
        """
        patch = {k: v for k, v in patch.items() if k in _EDITABLE_FIELDS}
        rows = self.repo.get_many(ids)
        target = next((row for row in rows if row.id == target_id), None)
        if target is not None and target.is_transfer_like and "type" in patch and patch["type"] != target.type:
            raise DomainRuleError("Transfer legs cannot change type")
        if "account_id" in patch:
            load_account(self.db, self.user_id, patch["account_id"])
        if "category_id" in patch:
            self._check_category(patch["category_id"])

        partners = self.repo.find_linked(target) if target is not None and target.is_transfer_like else []
        self.locks.ensure_unlocked(row.date for row in [*rows, *partners])

        touched_accounts: set[str] = {row.account_id for row in rows}
        try:
            with unit_of_work(self.db):
                for row in rows:
                    self._apply_patch(row, patch, is_target=row.id == target_id)
                # Moving a row into a locked period is a change to that period too
                self.locks.ensure_unlocked(row.date for row in rows)
                for partner in partners:
                    touched_accounts.add(partner.account_id)
                    self._mirror_transfer_leg(partner, target)
                self.db.flush()
                touched_accounts.update(row.account_id for row in rows)
                self.balances.recalculate_many(touched_accounts)
        except IntegrityError as exc:
            raise DuplicateOccurrenceError("Another occurrence of this series already exists on that date") from exc

        return self.repo.get_many(ids)

    def _apply_patch(self, row: models.Transaction, patch: Mapping[str, Any], *, is_target: bool) -> None:
        for key, value in patch.items():
            if key in ("amount", "type", "date", "invoice_month"):
                continue
            setattr(row, key, value)

        if "date" in patch and patch["date"] is not None:
            new_date = patch["date"]
            row.date = new_date if is_target else clamp_day(row.date.year, row.date.month, new_date.day)

        new_type = patch.get("type") or row.type
        if "amount" in patch and patch["amount"] is not None:
            row.amount = signed_amount(new_type, patch["amount"])
        elif new_type != row.type:
            row.amount = signed_amount(new_type, row.amount)
        row.type = new_type

        if "invoice_month" in patch:
            row.invoice_month = patch["invoice_month"]
            row.invoice_month_overridden = patch["invoice_month"] is not None

    @staticmethod
    def _mirror_transfer_leg(partner: models.Transaction, leg: models.Transaction) -> None:
        partner.date = leg.date
        partner.status = leg.status
        magnitude = abs(int(leg.amount))
        partner.amount = -magnitude if partner.amount < 0 else magnitude

    # --- delete --------------------------------------------------------------

    def delete(self, txn_id: str, scope: EditScope | str) -> DeleteOutcome:
        target, decision = self.resolve(txn_id, ScopeAction.DELETE, scope)
        if target.is_transfer_like:
            # Both legs go, whatever the scope
            legs = [target, *self.repo.find_linked(target)]
            decision = ScopeDecision(ids_to_delete_outright=tuple(leg.id for leg in legs))
        affected = self.repo.get_many(decision.affected_ids)
        # Detaching only clears is_fixed; amounts and dates in a locked period stay put
        self.locks.ensure_unlocked(row.date for row in affected if row.id in decision.ids_to_delete_outright)
        accounts = {row.account_id for row in affected}

        with unit_of_work(self.db):
            outcome = self.apply_delete_decision(decision)
            self.balances.recalculate_many(accounts)

        logger.info(
            "Deleted %d and detached %d transaction(s) from %s with scope %s",
            len(outcome.deleted_ids),
            len(outcome.detached_ids),
            txn_id,
            EditScope(scope).value,
        )
        return outcome

    def apply_delete_decision(self, decision: ScopeDecision) -> DeleteOutcome:
        """Detach then delete as decided. Must be called inside a unit of work."""
        if decision.ids_to_detach:
            self.repo.update_many(decision.ids_to_detach, {"is_fixed": False})
        if decision.ids_to_delete_outright:
            self.repo.delete_many(decision.ids_to_delete_outright)
        return DeleteOutcome(
            deleted_ids=list(decision.ids_to_delete_outright),
            detached_ids=list(decision.ids_to_detach),
        )
