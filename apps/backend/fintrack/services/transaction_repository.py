from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from fintrack import models

logger = logging.getLogger(__name__)


class TransactionRepository:
    """User-scoped persistence for transactions.

    Only flushes; committing is the caller's job (see ``unit_of_work``).
    """

    def __init__(self, db: Session, user_id: int) -> None:
        self.db = db
        self.user_id = user_id

    def _query(self):
        return self.db.query(models.Transaction).filter(models.Transaction.user_id == self.user_id)

    @staticmethod
    def _ordered(query):
        return query.order_by(models.Transaction.date.asc(), models.Transaction.id.asc())

    # --- reads ---------------------------------------------------------------

    def get(self, txn_id: str) -> Optional[models.Transaction]:
        return self._query().filter(models.Transaction.id == txn_id).first()

    def get_many(self, ids: Iterable[str]) -> list[models.Transaction]:
        ids = list(ids)
        if not ids:
            return []
        return self._ordered(self._query().filter(models.Transaction.id.in_(ids))).all()

    def find_by_parent(self, parent_id: str) -> list[models.Transaction]:
        return self._ordered(self._query().filter(models.Transaction.parent_transaction_id == parent_id)).all()

    def find_by_status(
        self,
        status: models.TransactionStatus,
        account_id: Optional[str] = None,
    ) -> list[models.Transaction]:
        q = self._query().filter(models.Transaction.status == status)
        if account_id is not None:
            q = q.filter(models.Transaction.account_id == account_id)
        return self._ordered(q).all()

    def find_for_account(self, account_id: str) -> list[models.Transaction]:
        return self._ordered(self._query().filter(models.Transaction.account_id == account_id)).all()

    def find_principals(self) -> list[models.Transaction]:
        q = self._query().filter(
            models.Transaction.is_fixed.is_(True),
            models.Transaction.parent_transaction_id.is_(None),
        )
        return self._ordered(q).all()

    def find_linked(self, txn: models.Transaction) -> list[models.Transaction]:
        """The other leg(s) of a transfer or bill payment."""
        clauses = [models.Transaction.linked_transaction_id == txn.id]
        if txn.linked_transaction_id:
            clauses.append(models.Transaction.id == txn.linked_transaction_id)
        return self._query().filter(or_(*clauses), models.Transaction.id != txn.id).all()

    def find_series(self, target: models.Transaction) -> list[models.Transaction]:
        """Every row sharing ``target``'s principal, the principal included.

        A parent id pointing at a missing row yields whatever children still
        reference it; the principal is simply absent.
        """
        principal_id = target.parent_transaction_id or target.id
        rows = {row.id: row for row in self.find_by_parent(principal_id)}
        if principal_id not in rows:
            principal = self.get(principal_id)
            if principal is not None:
                rows[principal.id] = principal
            elif target.parent_transaction_id:
                logger.warning(
                    "Transaction %s references missing parent %s; treating as standalone",
                    target.id,
                    principal_id,
                )
        rows.pop(target.id, None)
        return sorted(rows.values(), key=lambda r: (r.date, r.id))

    # --- writes --------------------------------------------------------------

    def insert_many(self, rows: Iterable[Mapping[str, Any]]) -> list[models.Transaction]:
        created = [models.Transaction(user_id=self.user_id, **{k: v for k, v in row.items() if k != "user_id"}) for row in rows]
        self.db.add_all(created)
        self.db.flush()
        return created

    def update_one(self, txn_id: str, patch: Mapping[str, Any]) -> Optional[models.Transaction]:
        txn = self.get(txn_id)
        if txn is None:
            return None
        for key, value in patch.items():
            setattr(txn, key, value)
        self.db.flush()
        return txn

    def update_many(self, ids: Sequence[str], patch: Mapping[str, Any]) -> int:
        rows = self.get_many(ids)
        for txn in rows:
            for key, value in patch.items():
                setattr(txn, key, value)
        self.db.flush()
        return len(rows)

    def delete_many(self, ids: Sequence[str]) -> int:
        ids = list(dict.fromkeys(ids))
        if not ids:
            return 0
        self.db.flush()
        # Survivors pointing at deleted rows become standalone
        (
            self._query()
            .filter(models.Transaction.parent_transaction_id.in_(ids), models.Transaction.id.notin_(ids))
            .update({models.Transaction.parent_transaction_id: None}, synchronize_session=False)
        )
        (
            self._query()
            .filter(models.Transaction.linked_transaction_id.in_(ids), models.Transaction.id.notin_(ids))
            .update({models.Transaction.linked_transaction_id: None}, synchronize_session=False)
        )
        # Break references inside the deleted set so row order does not matter
        (
            self._query()
            .filter(models.Transaction.id.in_(ids))
            .update(
                {
                    models.Transaction.parent_transaction_id: None,
                    models.Transaction.linked_transaction_id: None,
                },
                synchronize_session=False,
            )
        )
        removed = self._query().filter(models.Transaction.id.in_(ids)).delete(synchronize_session=False)
        # Drop stale instances so later reads in this session go back to the DB
        self.db.expire_all()
        return int(removed or 0)
