"""Fixed (recurring) transaction handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from fintrack import models
from fintrack.api.errors import http_errors
from fintrack.core.clock import Clock
from fintrack.core.database import get_db
from fintrack.core.deps import get_clock, get_current_user
from fintrack.schemas import (
    FixedTransactionCreate,
    FixedTransactionCreated,
    FixedTransactionOut,
    FixedTransactionUpdate,
    RenewResult,
    TransactionDeleteResult,
    TransactionOut,
)
from fintrack.services import FixedTransactionService
from fintrack.services.fixed_transaction_service import FixedSeriesSummary


def _service(db: Session, user: models.User, clock: Clock) -> FixedTransactionService:
    return FixedTransactionService(db, user.id, clock)


def _summary_out(summary: FixedSeriesSummary) -> FixedTransactionOut:
    return FixedTransactionOut(
        principal=TransactionOut.model_validate(summary.principal),
        pending_count=summary.pending_count,
        completed_count=summary.completed_count,
        last_generated_date=summary.last_generated_date,
    )


def create_fixed_transaction(
    payload: FixedTransactionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> FixedTransactionCreated:
    with http_errors():
        principal, children = _service(db, user, clock).create(payload)
    return FixedTransactionCreated(
        principal=TransactionOut.model_validate(principal),
        children=[TransactionOut.model_validate(c) for c in children],
    )


def list_fixed_transactions(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> list[FixedTransactionOut]:
    return [_summary_out(s) for s in _service(db, user, clock).list_series()]


def get_fixed_transaction(
    principal_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> FixedTransactionOut:
    with http_errors():
        return _summary_out(_service(db, user, clock).summary(principal_id))


def update_fixed_transaction(
    principal_id: str,
    payload: FixedTransactionUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> list[models.Transaction]:
    with http_errors():
        return _service(db, user, clock).update_series(principal_id, payload.to_patch())


def delete_fixed_transaction(
    principal_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> TransactionDeleteResult:
    with http_errors():
        outcome = _service(db, user, clock).delete_series(principal_id)
    return TransactionDeleteResult.model_validate(outcome)


def generate_occurrences(
    principal_id: str,
    months: Optional[int] = Query(default=None, ge=1, le=120),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> list[models.Transaction]:
    with http_errors():
        return _service(db, user, clock).generate_next(principal_id, months)


def renew_fixed_transactions(
    months: Optional[int] = Query(default=None, ge=1, le=120),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> RenewResult:
    with http_errors():
        created = _service(db, user, clock).renew_all(months)
    return RenewResult(created=created)
