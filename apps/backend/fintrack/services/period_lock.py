from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack import models, schemas
from fintrack.core.database import unit_of_work

from .errors import DomainRuleError, NotFoundError, PeriodLockedError

logger = logging.getLogger(__name__)


class PeriodLockService:
    """Period closures: while a closure is locked, nothing dated inside it may change."""

    def __init__(self, db: Session, user_id: int) -> None:
        self.db = db
        self.user_id = user_id

    def _query(self):
        return self.db.query(models.PeriodClosure).filter(models.PeriodClosure.user_id == self.user_id)

    def locked_closure_for(self, day: dt.date) -> models.PeriodClosure | None:
        return (
            self._query()
            .filter(
                models.PeriodClosure.is_locked.is_(True),
                models.PeriodClosure.period_start <= day,
                models.PeriodClosure.period_end >= day,
            )
            .order_by(models.PeriodClosure.period_start)
            .first()
        )

    def is_locked(self, day: dt.date) -> bool:
        return self.locked_closure_for(day) is not None

    def ensure_unlocked(self, days: Iterable[dt.date | None]) -> None:
        for day in sorted({d for d in days if d is not None}):
            closure = self.locked_closure_for(day)
            if closure is not None:
                raise PeriodLockedError(
                    f"{day.isoformat()} is in a locked period "
                    f"({closure.period_start.isoformat()} to {closure.period_end.isoformat()})"
                )

    # --- closures ------------------------------------------------------------

    def get(self, closure_id: str) -> models.PeriodClosure:
        closure = self._query().filter(models.PeriodClosure.id == closure_id).first()
        if closure is None:
            raise NotFoundError(f"Period closure {closure_id} not found")
        return closure

    def list_closures(self) -> list[models.PeriodClosure]:
        return self._query().order_by(models.PeriodClosure.period_start, models.PeriodClosure.id).all()

    def close(self, payload: schemas.PeriodClosureCreate) -> models.PeriodClosure:
        closure = models.PeriodClosure(
            user_id=self.user_id,
            period_start=payload.period_start,
            period_end=payload.period_end,
            closure_type=payload.closure_type,
            notes=payload.notes,
        )
        try:
            with unit_of_work(self.db):
                self.db.add(closure)
        except IntegrityError as exc:
            raise DomainRuleError("This period is already closed") from exc
        self.db.refresh(closure)
        logger.info("Closed period %s to %s for user %s", closure.period_start, closure.period_end, self.user_id)
        return closure

    def set_locked(self, closure_id: str, locked: bool, now: dt.datetime) -> models.PeriodClosure:
        closure = self.get(closure_id)
        with unit_of_work(self.db):
            closure.is_locked = locked
            closure.unlocked_at = None if locked else now
        self.db.refresh(closure)
        logger.info("%s period closure %s", "Locked" if locked else "Unlocked", closure_id)
        return closure

    def delete(self, closure_id: str) -> None:
        closure = self.get(closure_id)
        with unit_of_work(self.db):
            self.db.delete(closure)
