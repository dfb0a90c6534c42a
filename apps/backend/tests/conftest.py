from __future__ import annotations

import os
import tempfile
from datetime import datetime
from typing import Generator, Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from fintrack.core.clock import FixedClock
from fintrack.core.database import Base, get_db
from fintrack.core.deps import get_clock
from fintrack.main import app
from fintrack import models

# "Now" for every test unless a test moves the clock
FROZEN_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # Temporary file SQLite so the developer DB is never touched
    fd, path = tempfile.mkstemp(prefix="fintrack_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_engine(test_db_url, connect_args={"check_same_thread": False})

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_connection, connection_record):  # type: ignore[override]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # Seed: demo user (id 1)
    session.add(models.User(email="demo@example.com", display_name="Demo", is_active=True))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        # Clear every table (SQLAlchemy 2.x style)
        with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture()
def user(db_session) -> models.User:
    return db_session.query(models.User).order_by(models.User.id).first()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(FROZEN_NOW)


@pytest.fixture(autouse=True)
def override_dependency(db_session, clock):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    app.dependency_overrides[get_clock] = lambda: clock
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
