"""Shared fixtures: an in-memory SQLite store and an API client bound to it."""

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.api.dependencies import get_clock, get_store
from app.core.db import Base, Store, get_engine
from main import app

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Fresh in-memory database with all tables."""
    engine = get_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(engine: Engine) -> Iterator[Store]:
    """Store over the in-memory database."""
    store = Store(sessionmaker(bind=engine, autoflush=False)())
    yield store
    store.close()


@pytest.fixture
def api_client(engine: Engine) -> Iterator[TestClient]:
    """API client whose requests use the in-memory database and a fixed clock."""
    session_factory = sessionmaker(bind=engine, autoflush=False)

    def override_store() -> Iterator[Store]:
        request_store = Store(session_factory())
        try:
            yield request_store
        finally:
            request_store.close()

    app.dependency_overrides[get_store] = override_store
    app.dependency_overrides[get_clock] = lambda: lambda: FIXED_NOW
    yield TestClient(app)
    app.dependency_overrides.clear()
