"""
Telemetry component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import TelemetryEvent


class TelemetryEventStorePort(Protocol):
    """Append-only store for raw page-visit events."""

    def append(self, event: TelemetryEvent) -> None:
        """Append one immutable record. Raises TelemetryStorageError on failure."""
        ...

    def query_since(self, minute_timestamp: str, page: str | None = None) -> list[TelemetryEvent]:
        """Return records with minute_timestamp >= the given key, optionally for one page."""
        ...

    def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
