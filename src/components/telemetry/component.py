"""
Telemetry component - Page-visit recording and time-bucketed stats.

Records raw page-visit events into an append-only store and serves
gap-filled, ascending page-view series for charting.

Invariants:
- I1: minute_timestamp is the minute floor of timestamp
- I2: A series holds exactly one bucket per step in [start, end]
- I3: Bucket counts equal the stored records whose key maps to the bucket
- I4: Store failures abort the operation; no partial series
"""

from __future__ import annotations

from ._buckets import normalize_range
from ._impl import ALL_PAGES, TelemetryAggregator, TelemetryRecorder
from .models import (
    QueryStatsInput,
    QueryStatsOutput,
    RecordEventInput,
    RecordEventOutput,
    SummaryInput,
    SummaryOutput,
)
from .ports import TelemetryEventStorePort, TimePort

# --- Component Entry Points ---


def run_record(
    inp: RecordEventInput,
    *,
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
) -> RecordEventOutput:
    """
    Record a page visit.

    Args:
        inp: Page id and optional ISO timestamp.
        store: Event store port.
        time_port: Optional time port.

    Returns:
        RecordEventOutput with the stored event.

    Raises:
        TelemetryValidationError: page missing or timestamp malformed.
        TelemetryStorageError: store append failed.
    """
    recorder = TelemetryRecorder(store=store, time_port=time_port)
    event = recorder.record(inp.page, inp.timestamp)
    return RecordEventOutput(event=event)


def run_query(
    inp: QueryStatsInput,
    *,
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
    all_pages_sentinel: str = ALL_PAGES,
) -> QueryStatsOutput:
    """
    Query a gap-filled series for a range.

    Args:
        inp: Range selector and optional page filter.
        store: Event store port.
        time_port: Optional time port.
        all_pages_sentinel: Page value meaning "no filter".

    Returns:
        QueryStatsOutput with ascending buckets.
    """
    aggregator = TelemetryAggregator(
        store=store,
        time_port=time_port,
        all_pages_sentinel=all_pages_sentinel,
    )
    time_range = normalize_range(inp.range)
    buckets = aggregator.query(time_range, inp.page)
    return QueryStatsOutput(range=time_range.value, buckets=tuple(buckets))


def run_summary(
    inp: SummaryInput,
    *,
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
    all_pages_sentinel: str = ALL_PAGES,
) -> SummaryOutput:
    """Current rate, average and peak for a range."""
    aggregator = TelemetryAggregator(
        store=store,
        time_port=time_port,
        all_pages_sentinel=all_pages_sentinel,
    )
    time_range = normalize_range(inp.range)
    series = aggregator.query(time_range, inp.page)
    return SummaryOutput(range=time_range.value, summary=aggregator.summarize(series))


def run(
    inp: RecordEventInput | QueryStatsInput | SummaryInput,
    *,
    store: TelemetryEventStorePort,
    time_port: TimePort | None = None,
    all_pages_sentinel: str = ALL_PAGES,
) -> RecordEventOutput | QueryStatsOutput | SummaryOutput:
    """
    Main entry point for the telemetry component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, RecordEventInput):
        return run_record(inp, store=store, time_port=time_port)
    elif isinstance(inp, QueryStatsInput):
        return run_query(
            inp, store=store, time_port=time_port, all_pages_sentinel=all_pages_sentinel
        )
    elif isinstance(inp, SummaryInput):
        return run_summary(
            inp, store=store, time_port=time_port, all_pages_sentinel=all_pages_sentinel
        )
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
