from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fintrack import models
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class AccountBalanceService:
    """Keep ``Account.balance`` in line with the completed transactions on it.

    Balance = initial balance + sum of completed amounts (signed cents). Pending
    rows never count; they only move money once marked completed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def completed_total(self, account_id: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(models.Transaction.amount), 0))
            .filter(
                models.Transaction.account_id == account_id,
                models.Transaction.status == models.TransactionStatus.COMPLETED,
            )
            .scalar()
        )
        return int(total or 0)

    def recalculate(self, account_id: Optional[str]) -> Optional[models.Account]:
        if account_id is None:
            return None
        account = self.db.query(models.Account).filter(models.Account.id == account_id).first()
        if not account:
            return None
        self.db.flush()
        new_balance = int(account.initial_balance or 0) + self.completed_total(account_id)
        if new_balance != account.balance:
            logger.debug("Account %s balance %s -> %s", account_id, account.balance, new_balance)
        account.balance = new_balance
        return account

    def recalculate_many(self, account_ids: Iterable[Optional[str]]) -> None:
        for account_id in sorted({a for a in account_ids if a}):
            self.recalculate(account_id)


def load_account(db: Session, user_id: int, account_id: Optional[str]) -> models.Account:
    account = (
        db.query(models.Account)
        .filter(models.Account.id == account_id, models.Account.user_id == user_id)
        .first()
    )
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account
