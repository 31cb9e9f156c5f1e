"""
Pytest fixtures. SQL tests run against an in-memory SQLite database that is
thrown away after each test.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from alice_skill.db.database import make_engine
from alice_skill.db.memory_store import MemoryStore
from alice_skill.db.sql_store import SQLStore
from alice_skill.main import create_app


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    """A freshly bootstrapped SQL store."""
    store = SQLStore(engine)
    store.bootstrap()
    return store


@pytest.fixture
def memory_store():
    store = MemoryStore()
    store.bootstrap()
    return store


@pytest.fixture(params=["sql", "memory"])
def store(request):
    """Every store implementation, for tests of the shared contract."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def client(memory_store):
    return TestClient(create_app(store=memory_store))


@pytest.fixture
def sql_client(sql_store):
    return TestClient(create_app(store=sql_store))
