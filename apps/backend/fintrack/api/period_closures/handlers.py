"""Period closure handlers: close, lock, unlock and reopen accounting periods."""

from __future__ import annotations

from fastapi import Depends, Response
from sqlalchemy.orm import Session

from fintrack import models
from fintrack.api.errors import http_errors
from fintrack.core.clock import Clock
from fintrack.core.database import get_db
from fintrack.core.deps import get_clock, get_current_user
from fintrack.schemas import PeriodClosureCreate
from fintrack.services.period_lock import PeriodLockService


def close_period(
    payload: PeriodClosureCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.PeriodClosure:
    with http_errors():
        return PeriodLockService(db, user.id).close(payload)


def list_period_closures(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.PeriodClosure]:
    return PeriodLockService(db, user.id).list_closures()


def unlock_period(
    closure_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> models.PeriodClosure:
    with http_errors():
        return PeriodLockService(db, user.id).set_locked(closure_id, False, clock.now())


def lock_period(
    closure_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> models.PeriodClosure:
    with http_errors():
        return PeriodLockService(db, user.id).set_locked(closure_id, True, clock.now())


def delete_period_closure(
    closure_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    with http_errors():
        PeriodLockService(db, user.id).delete(closure_id)
    return Response(status_code=204)
