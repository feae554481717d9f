"""
Telemetry recorder and stats aggregator.

Key behaviors:
- Recorder validates the page id, stamps the event and appends it
- No dedup: every call appends a new record
- Aggregator counts stored minute keys per bucket and gap-fills the window
- Records with unparseable stored keys are skipped, not fatal
- Store failures surface as TelemetryStorageError, never as a partial series
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from ._buckets import (
    TimeRange,
    bucket_key,
    format_timestamp,
    iter_bucket_keys,
    minute_key,
    normalize_range,
    parse_timestamp,
    resolve_range,
    to_utc,
)
from .models import (
    DataQualityError,
    TelemetryBucket,
    TelemetryError,
    TelemetryEvent,
    TelemetryStorageError,
    TelemetrySummary,
    TelemetryValidationError,
)
from .ports import TelemetryEventStorePort, TimePort

logger = logging.getLogger(__name__)

ALL_PAGES = "all"

_ONE_DECIMAL = Decimal("0.1")


# --- Default Implementations ---


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        return datetime.now(UTC)


class InMemoryEventStore:
    """In-memory event store for testing/dev."""

    def __init__(self) -> None:
        self._events: list[TelemetryEvent] = []

    def append(self, event: TelemetryEvent) -> None:
        """Append an event."""
        self._events.append(event)

    def query_since(self, minute_timestamp: str, page: str | None = None) -> list[TelemetryEvent]:
        """Range scan on the stored minute key."""
        return [
            e
            for e in self._events
            if e.minute_timestamp >= minute_timestamp and (page is None or e.page == page)
        ]

    def ping(self) -> None:
        return None

    def get_all(self) -> list[TelemetryEvent]:
        """Get all stored events (for testing)."""
        return list(self._events)


# --- Recorder ---


class TelemetryRecorder:
    """
    Records page visits to the event store.

    Always fails loudly; callers that want fire-and-forget semantics
    should go through record_best_effort.
    """

    def __init__(
        self,
        store: TelemetryEventStorePort,
        time_port: TimePort | None = None,
    ) -> None:
        self._store = store
        self._time_port = time_port or DefaultTimePort()

    def record(
        self,
        page: str | None,
        timestamp: str | datetime | None = None,
    ) -> TelemetryEvent:
        """
        Append one visit record.

        Raises:
            TelemetryValidationError: page missing/blank or timestamp unparseable.
            TelemetryStorageError: the store rejected the append.
        """
        if not isinstance(page, str) or not page.strip():
            raise TelemetryValidationError("Page is required", field_name="page")

        if timestamp is None:
            ts = to_utc(self._time_port.now_utc())
        else:
            try:
                ts = parse_timestamp(timestamp)
            except DataQualityError as e:
                raise TelemetryValidationError(
                    f"Invalid timestamp: {timestamp!r}", field_name="timestamp"
                ) from e

        event = TelemetryEvent(
            page=page,
            timestamp=format_timestamp(ts),
            minute_timestamp=minute_key(ts),
        )

        try:
            self._store.append(event)
        except TelemetryStorageError:
            raise
        except Exception as e:
            raise TelemetryStorageError("append", str(e)) from e

        logger.debug("Recorded visit to %s at %s", event.page, event.timestamp)
        return event


def record_best_effort(
    recorder: TelemetryRecorder,
    page: str | None,
    timestamp: str | datetime | None = None,
) -> TelemetryEvent | None:
    """Record a visit, logging and discarding any failure."""
    try:
        return recorder.record(page, timestamp)
    except TelemetryError:
        logger.exception("Telemetry record for page %r failed", page)
        return None


# --- Aggregator ---


def count_by_bucket(events: Iterable[TelemetryEvent], time_range: TimeRange) -> dict[str, int]:
    """
    Count events per bucket key using each record's stored minute key.

    Records whose minute key cannot be parsed are skipped.
    """
    counts: dict[str, int] = {}
    for event in events:
        try:
            minute = parse_timestamp(event.minute_timestamp)
        except DataQualityError as e:
            logger.warning("Skipping telemetry record for page %r: %s", event.page, e)
            continue
        key = bucket_key(minute, time_range)
        counts[key] = counts.get(key, 0) + 1
    return counts


def fill_series(
    counts: dict[str, int],
    start: datetime,
    end: datetime,
    time_range: TimeRange,
) -> list[TelemetryBucket]:
    """One bucket per step from start to end inclusive, zero where empty."""
    return [
        TelemetryBucket(timestamp=key, count=counts.get(key, 0))
        for key in iter_bucket_keys(start, end, time_range)
    ]


def summarize(series: Sequence[TelemetryBucket]) -> TelemetrySummary:
    """
    Current (last bucket), average and peak counts.

    The average is rounded half-up to one decimal, so 0.25 shows as 0.3.
    """
    if not series:
        return TelemetrySummary(current=0, average=0.0, peak=0)
    total = sum(b.count for b in series)
    average = (Decimal(total) / len(series)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
    return TelemetrySummary(
        current=series[-1].count,
        average=float(average),
        peak=max(b.count for b in series),
    )


class TelemetryAggregator:
    """Builds gap-filled page-view series from raw events."""

    def __init__(
        self,
        store: TelemetryEventStorePort,
        time_port: TimePort | None = None,
        all_pages_sentinel: str = ALL_PAGES,
    ) -> None:
        self._store = store
        self._time_port = time_port or DefaultTimePort()
        self._all_pages = all_pages_sentinel

    def _page_filter(self, page: str | None) -> str | None:
        if not page or page == self._all_pages:
            return None
        return page

    def query(
        self,
        time_range: TimeRange | str | None = None,
        page: str | None = None,
    ) -> list[TelemetryBucket]:
        """
        Gap-filled, ascending series for the window ending now.

        Raises:
            TelemetryStorageError: the store read failed.
        """
        tr = normalize_range(time_range)
        start, end = resolve_range(tr, self._time_port.now_utc())

        try:
            events = self._store.query_since(bucket_key(start, tr), self._page_filter(page))
        except TelemetryStorageError:
            raise
        except Exception as e:
            raise TelemetryStorageError("query", str(e)) from e

        return fill_series(count_by_bucket(events, tr), start, end, tr)

    def summarize(self, series: Sequence[TelemetryBucket]) -> TelemetrySummary:
        return summarize(series)


# --- Factories ---


def create_telemetry_recorder(
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
) -> TelemetryRecorder:
    """Create a TelemetryRecorder."""
    return TelemetryRecorder(store=store, time_port=time_port)


def create_telemetry_aggregator(
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
    all_pages_sentinel: str = ALL_PAGES,
) -> TelemetryAggregator:
    """Create a TelemetryAggregator."""
    return TelemetryAggregator(
        store=store,
        time_port=time_port,
        all_pages_sentinel=all_pages_sentinel,
    )
