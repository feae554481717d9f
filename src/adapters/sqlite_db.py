"""
SQLite telemetry event store.

Append-only table of page-visit records with an index on the minute key.
Designed to be Postgres-compatible (uses standard SQL patterns).
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from src.components.telemetry import TelemetryEvent, TelemetryStorageError

SCHEMA = """
CREATE TABLE IF NOT EXISTS telemetry_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    minute_timestamp TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_telemetry_events_minute
    ON telemetry_events (minute_timestamp);
"""

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Telemetry Event Store
# -----------------------------------------------------------------------------


class SQLiteTelemetryEventStore(SQLiteRepoBase):
    """
    SQLite implementation of TelemetryEventStorePort.

    Opens a connection per call unless one is passed in. A ":memory:"
    database only persists across calls when given as `connection=`.
    """

    def ensure_schema(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise TelemetryStorageError("schema", str(e)) from e
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error as e:
            raise TelemetryStorageError("schema", str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def append(self, event: TelemetryEvent) -> None:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise TelemetryStorageError("append", str(e)) from e
        try:
            conn.execute(
                """
                INSERT INTO telemetry_events (page, timestamp, minute_timestamp)
                VALUES (?, ?, ?)
                """,
                (event.page, event.timestamp, event.minute_timestamp),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise TelemetryStorageError("append", str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def query_since(self, minute_timestamp: str, page: str | None = None) -> list[TelemetryEvent]:
        sql = (
            "SELECT page, timestamp, minute_timestamp FROM telemetry_events "
            "WHERE minute_timestamp >= ?"
        )
        params: tuple[str, ...] = (minute_timestamp,)
        if page is not None:
            sql += " AND page = ?"
            params += (page,)
        sql += " ORDER BY minute_timestamp"

        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise TelemetryStorageError("query", str(e)) from e
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._map_row(r) for r in rows]
        except sqlite3.Error as e:
            raise TelemetryStorageError("query", str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def ping(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute("SELECT 1 FROM telemetry_events LIMIT 1").fetchall()
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any] | tuple[Any, ...]) -> TelemetryEvent:
        if isinstance(row, dict):
            return TelemetryEvent(
                page=row["page"],
                timestamp=row["timestamp"],
                minute_timestamp=row["minute_timestamp"],
            )
        return TelemetryEvent(page=row[0], timestamp=row[1], minute_timestamp=row[2])
