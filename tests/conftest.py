from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import database
import models  # noqa: F401
from main import create_app
from store import TaskStore


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture()
def engine():
    eng = _memory_engine()
    database.Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine):
    return TaskStore(database.make_session_factory(engine))


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def client(store, clock):
    with TestClient(create_app(store=store, clock=clock)) as c:
        yield c


@pytest.fixture()
def broken_client():
    """Client whose database has no tasks table, so every statement fails."""
    eng = _memory_engine()
    app = create_app(store=TaskStore(database.make_session_factory(eng)), clock=TickingClock())
    with TestClient(app) as c:
        yield c
    eng.dispose()
