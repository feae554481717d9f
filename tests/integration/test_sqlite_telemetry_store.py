import sqlite3

import pytest

from src.adapters.sqlite_db import SQLiteTelemetryEventStore
from src.components.telemetry import (
    TelemetryAggregator,
    TelemetryEvent,
    TelemetryRecorder,
    TelemetryStorageError,
)
from tests.doubles import MockTimePort


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "telemetry.db")


@pytest.fixture
def sqlite_store(db_path):
    store = SQLiteTelemetryEventStore(db_path)
    store.ensure_schema()
    return store


def test_ensure_schema_idempotent(sqlite_store):
    sqlite_store.ensure_schema()
    sqlite_store.ping()


def test_append_and_query(sqlite_store):
    sqlite_store.append(TelemetryEvent("home", "2024-06-15T14:30:45.123Z", "2024-06-15T14:30:00.000Z"))
    sqlite_store.append(TelemetryEvent("user", "2024-06-15T13:00:01.000Z", "2024-06-15T13:00:00.000Z"))

    events = sqlite_store.query_since("2024-06-15T13:30:00.000Z")
    assert events == [
        TelemetryEvent("home", "2024-06-15T14:30:45.123Z", "2024-06-15T14:30:00.000Z")
    ]


def test_query_page_filter(sqlite_store):
    for page in ("home", "user", "home"):
        sqlite_store.append(TelemetryEvent(page, "t", "2024-06-15T14:30:00.000Z"))

    assert len(sqlite_store.query_since("2024-06-15T00:00:00.000Z", page="home")) == 2
    assert len(sqlite_store.query_since("2024-06-15T00:00:00.000Z", page="missing")) == 0
    assert len(sqlite_store.query_since("2024-06-15T00:00:00.000Z")) == 3


def test_query_ordered_by_minute(sqlite_store):
    sqlite_store.append(TelemetryEvent("home", "t", "2024-06-15T14:31:00.000Z"))
    sqlite_store.append(TelemetryEvent("home", "t", "2024-06-15T14:30:00.000Z"))
    keys = [e.minute_timestamp for e in sqlite_store.query_since("2024-06-15T00:00:00.000Z")]
    assert keys == sorted(keys)


def test_external_connection(db_path, sqlite_store):
    conn = sqlite3.connect(db_path)
    try:
        store = SQLiteTelemetryEventStore(db_path, connection=conn)
        store.append(TelemetryEvent("home", "t", "2024-06-15T14:30:00.000Z"))
        assert len(store.query_since("2024-06-15T00:00:00.000Z")) == 1
    finally:
        conn.close()


def test_in_memory_database_with_shared_connection():
    conn = sqlite3.connect(":memory:")
    try:
        store = SQLiteTelemetryEventStore(":memory:", connection=conn)
        store.ensure_schema()
        store.append(TelemetryEvent("home", "t", "2024-06-15T14:30:00.000Z"))
        assert store.query_since("2024-06-15T00:00:00.000Z") == [
            TelemetryEvent("home", "t", "2024-06-15T14:30:00.000Z")
        ]
    finally:
        conn.close()


def test_missing_table_raises_storage_error(tmp_path):
    store = SQLiteTelemetryEventStore(str(tmp_path / "empty.db"))
    with pytest.raises(TelemetryStorageError) as exc_info:
        store.query_since("2024-06-15T00:00:00.000Z")
    assert exc_info.value.operation == "query"

    with pytest.raises(TelemetryStorageError) as exc_info:
        store.append(TelemetryEvent("home", "t", "m"))
    assert exc_info.value.operation == "append"


def test_record_then_query_round_trip(sqlite_store, time_port: MockTimePort):
    recorder = TelemetryRecorder(sqlite_store, time_port)
    aggregator = TelemetryAggregator(sqlite_store, time_port)

    recorder.record("home")
    time_port.advance(60)
    recorder.record("home")
    recorder.record("developer")

    series = aggregator.query("hour", "home")
    assert len(series) == 61
    assert [b.count for b in series[-2:]] == [1, 1]

    week = aggregator.query("week")
    assert week[-1].count == 3
