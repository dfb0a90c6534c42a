"""Transaction handlers.

Edits and deletes take a ``scope`` query parameter (``current`` by default):
``current-and-remaining`` and ``all`` propagate along fixed and installment
series. ``/scope-preview`` returns the same decision without applying it.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from fintrack import models
from fintrack.api.errors import http_errors
from fintrack.core.clock import Clock
from fintrack.core.database import get_db
from fintrack.core.deps import get_clock, get_current_user
from fintrack.schemas import (
    ScopeDecisionOut,
    TransactionCreate,
    TransactionDeleteResult,
    TransactionOut,
    TransactionUpdate,
    TransferCreate,
    TransferOut,
)
from fintrack.services import TransactionSeriesService
from fintrack.services.scope_resolver import EditScope, ScopeAction


def _service(db: Session, user: models.User, clock: Clock) -> TransactionSeriesService:
    return TransactionSeriesService(db, user.id, clock)


def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> list[models.Transaction]:
    with http_errors():
        return _service(db, user, clock).create(payload)


def list_transactions(
    account_id: Optional[str] = Query(default=None),
    status: Optional[models.TransactionStatus] = Query(default=None),
    parent_id: Optional[str] = Query(default=None),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Transaction]:
    q = db.query(models.Transaction).filter(models.Transaction.user_id == user.id)
    if account_id:
        q = q.filter(models.Transaction.account_id == account_id)
    if status is not None:
        q = q.filter(models.Transaction.status == status)
    if parent_id:
        q = q.filter(models.Transaction.parent_transaction_id == parent_id)
    if start:
        q = q.filter(models.Transaction.date >= start)
    if end:
        q = q.filter(models.Transaction.date <= end)
    return q.order_by(models.Transaction.date.asc(), models.Transaction.id.asc()).all()


def get_transaction(
    txn_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> models.Transaction:
    with http_errors():
        return _service(db, user, clock).get(txn_id)


def preview_scope(
    txn_id: str,
    action: ScopeAction = Query(...),
    scope: EditScope = Query(default=EditScope.CURRENT),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> ScopeDecisionOut:
    with http_errors():
        _, decision = _service(db, user, clock).resolve(txn_id, action, scope)
    return ScopeDecisionOut.model_validate(decision)


def update_transaction(
    txn_id: str,
    payload: TransactionUpdate,
    scope: EditScope = Query(default=EditScope.CURRENT),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> list[models.Transaction]:
    with http_errors():
        return _service(db, user, clock).edit(txn_id, payload.to_patch(), scope)


def delete_transaction(
    txn_id: str,
    scope: EditScope = Query(default=EditScope.CURRENT),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> TransactionDeleteResult:
    with http_errors():
        outcome = _service(db, user, clock).delete(txn_id, scope)
    return TransactionDeleteResult.model_validate(outcome)


def create_transfer(
    payload: TransferCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> TransferOut:
    with http_errors():
        outgoing, incoming = _service(db, user, clock).create_transfer(payload)
    return TransferOut(
        outgoing=TransactionOut.model_validate(outgoing),
        incoming=TransactionOut.model_validate(incoming),
    )
