"""Test configuration and fixtures for the user management API."""

from __future__ import annotations

import os

# Must be set before the application modules build their engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_AUTO_MIGRATE", "false")

from collections.abc import Callable, Generator  # noqa: E402
from datetime import date, datetime, timedelta, timezone  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import StaticPool, create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from user_management.core.database import Base  # noqa: E402
from user_management.dependencies import get_db  # noqa: E402
from user_management.main import app  # noqa: E402
from user_management.models import User  # noqa: E402


def _years_ago(years: int) -> date:
    return date(date.today().year - years, 1, 1)


@pytest.fixture
def years_ago() -> Callable[[int], date]:
    """Birth date factory whose computed age is exactly ``years`` on any day."""
    return _years_ago


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Create a fresh in-memory database session for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    testing_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    db = testing_session()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        engine.dispose()


@pytest.fixture
def make_user(session: Session) -> Callable[..., User]:
    """Insert a user row directly, bypassing the service rules."""
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make_user(**overrides: Any) -> User:
        counter["n"] += 1
        n = counter["n"]
        values: dict[str, Any] = {
            "name": f"User {n:02d}",
            "email": f"user{n:02d}@example.com",
            "date_of_birth": _years_ago(30),
            "phone": None,
            "address": None,
            "created_at": base_time + timedelta(minutes=n),
            "updated_at": base_time + timedelta(minutes=n),
        }
        values.update(overrides)
        user = User(**values)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def client(session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests share the test session."""

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
