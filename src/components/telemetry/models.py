"""
Telemetry component input/output models.

Event records, aggregated buckets and the error taxonomy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

# --- Enums ---


RangeName = Literal["hour", "day", "week"]


# --- Records ---


@dataclass(frozen=True)
class TelemetryEvent:
    """Immutable page-visit record as stored."""

    page: str
    timestamp: str
    minute_timestamp: str


@dataclass(frozen=True)
class TelemetryBucket:
    """Single point in a gap-filled series."""

    timestamp: str
    count: int

    def to_dict(self) -> dict[str, str | int]:
        return {"timestamp": self.timestamp, "count": self.count}


@dataclass(frozen=True)
class TelemetrySummary:
    """Headline figures for a series."""

    current: int
    average: float
    peak: int


# --- Input Models ---


@dataclass(frozen=True)
class RecordEventInput:
    """Input for recording a page visit."""

    page: str | None
    timestamp: str | datetime | None = None


@dataclass(frozen=True)
class QueryStatsInput:
    """Input for querying a bucketed series."""

    range: str = "hour"
    page: str | None = None


@dataclass(frozen=True)
class SummaryInput:
    """Input for summarising a bucketed series."""

    range: str = "hour"
    page: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class RecordEventOutput:
    """Output for a recorded event."""

    event: TelemetryEvent
    success: bool = True


@dataclass(frozen=True)
class QueryStatsOutput:
    """Output for a series query."""

    range: RangeName
    buckets: tuple[TelemetryBucket, ...] = field(default_factory=tuple)
    success: bool = True


@dataclass(frozen=True)
class SummaryOutput:
    """Output for a series summary."""

    range: RangeName
    summary: TelemetrySummary
    success: bool = True


# --- Error Types ---


class TelemetryError(Exception):
    """Base telemetry error."""

    pass


class TelemetryValidationError(TelemetryError):
    """Caller supplied missing or malformed input."""

    def __init__(self, message: str, field_name: str | None = None) -> None:
        self.field_name = field_name
        super().__init__(message)


class TelemetryStorageError(TelemetryError):
    """Event store unreachable or returned an error."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Telemetry store {operation} failed: {reason}")


class DataQualityError(TelemetryError):
    """Stored timestamp could not be parsed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Malformed timestamp: {value!r}")
