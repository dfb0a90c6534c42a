"""Map service-layer errors onto HTTP responses."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from fintrack.services.errors import (
    DomainRuleError,
    DuplicateOccurrenceError,
    FintrackError,
    NotFoundError,
)


@contextmanager
def http_errors() -> Iterator[None]:
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DuplicateOccurrenceError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Conflicting data") from exc
    except (DomainRuleError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except FintrackError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
