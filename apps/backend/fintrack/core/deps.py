from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from fintrack.core.clock import Clock, SystemClock
from fintrack.core.database import get_db
from fintrack import models

_system_clock = SystemClock()


def get_current_user(db: Session = Depends(get_db)) -> models.User:
    """Very lightweight current user resolver.

    For now, returns the first user (creates a demo if none). Tests may override
    this dependency to simulate different users.
    """
    user = db.query(models.User).order_by(models.User.id).first()
    if not user:
        user = models.User(email="demo@example.com", display_name="Demo", is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def get_clock() -> Clock:
    return _system_clock
