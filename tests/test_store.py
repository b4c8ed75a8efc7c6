from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

import database
import models
from errors import InternalError, NotFoundError
from main import parse_task_id
from store import TaskStore

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _task(title="A", due=datetime(2024, 6, 1, tzinfo=timezone.utc)):
    return models.Task(title=title, description="d", due_date=due, created_at=T0, updated_at=T0)


def test_insert_assigns_id_and_round_trips(store):
    stored = store.insert(_task())
    assert stored.id > 0

    fetched = store.fetch_one(stored.id)
    assert fetched == stored
    assert fetched.due_date.tzinfo is not None
    assert fetched.created_at == T0


def test_naive_due_date_is_read_as_utc(store):
    stored = store.insert(_task(due=datetime(2024, 6, 1, 8, 0)))
    assert store.fetch_one(stored.id).due_date == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def test_fetch_all_ordered(store):
    first = store.insert(_task("first"))
    second = store.insert(_task("second"))
    assert [t.id for t in store.fetch_all()] == [first.id, second.id]


def test_fetch_one_missing(store):
    with pytest.raises(NotFoundError):
        store.fetch_one(42)


def test_update_and_delete_report_affected_rows(store):
    stored = store.insert(_task())
    later = datetime(2024, 5, 2, tzinfo=timezone.utc)

    assert store.update_one(stored.id, title="B", description="", due_date=later, updated_at=later) == 1
    assert store.update_one(stored.id + 100, title="B", description="", due_date=later, updated_at=later) == 0

    updated = store.fetch_one(stored.id)
    assert updated.title == "B"
    assert updated.created_at == T0
    assert updated.updated_at == later

    assert store.delete_one(stored.id) == 1
    assert store.delete_one(stored.id) == 0


def test_title_is_bound_as_a_parameter(store):
    title = "x'); DROP TABLE tasks; --"
    stored = store.insert(_task(title))
    assert store.fetch_one(stored.id).title == title
    assert len(store.fetch_all()) == 1


def test_store_errors_are_internal_errors():
    # No schema on this engine, so every statement fails.
    eng = create_engine("sqlite://")
    store = TaskStore(database.make_session_factory(eng))
    with pytest.raises(InternalError):
        store.fetch_all()
    with pytest.raises(InternalError):
        store.insert(_task())
    eng.dispose()


@pytest.mark.parametrize("raw,expected", [("1", 1), ("+7", 7), ("-3", -3), ("2147483647", 2147483647)])
def test_parse_task_id(raw, expected):
    assert parse_task_id(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "1e3", " 1", "2147483648", "١٢"])
def test_parse_task_id_rejects(raw):
    with pytest.raises(NotFoundError):
        parse_task_id(raw)
