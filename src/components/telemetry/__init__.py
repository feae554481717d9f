"""
Telemetry component - Page-visit recording and time-bucketed stats.
"""

from ._buckets import (
    DEFAULT_RANGE,
    TimeRange,
    bucket_key,
    bucket_step,
    calculate_bucket_start,
    format_timestamp,
    iter_bucket_keys,
    minute_key,
    normalize_range,
    parse_timestamp,
    resolve_range,
)
from ._impl import (
    ALL_PAGES,
    DefaultTimePort,
    InMemoryEventStore,
    TelemetryAggregator,
    TelemetryRecorder,
    count_by_bucket,
    create_telemetry_aggregator,
    create_telemetry_recorder,
    fill_series,
    record_best_effort,
    summarize,
)
from .component import (
    run,
    run_query,
    run_record,
    run_summary,
)
from .models import (
    DataQualityError,
    QueryStatsInput,
    QueryStatsOutput,
    RecordEventInput,
    RecordEventOutput,
    SummaryInput,
    SummaryOutput,
    TelemetryBucket,
    TelemetryError,
    TelemetryEvent,
    TelemetryStorageError,
    TelemetrySummary,
    TelemetryValidationError,
)
from .ports import (
    TelemetryEventStorePort,
    TimePort,
)

__all__ = [
    # Entry points
    "run",
    "run_query",
    "run_record",
    "run_summary",
    # Input models
    "QueryStatsInput",
    "RecordEventInput",
    "SummaryInput",
    # Output models
    "QueryStatsOutput",
    "RecordEventOutput",
    "SummaryOutput",
    "TelemetryBucket",
    "TelemetryEvent",
    "TelemetrySummary",
    # Errors
    "DataQualityError",
    "TelemetryError",
    "TelemetryStorageError",
    "TelemetryValidationError",
    # Ports
    "TelemetryEventStorePort",
    "TimePort",
    # Services
    "ALL_PAGES",
    "DefaultTimePort",
    "InMemoryEventStore",
    "TelemetryAggregator",
    "TelemetryRecorder",
    "count_by_bucket",
    "create_telemetry_aggregator",
    "create_telemetry_recorder",
    "fill_series",
    "record_best_effort",
    "summarize",
    # Bucketing
    "DEFAULT_RANGE",
    "TimeRange",
    "bucket_key",
    "bucket_step",
    "calculate_bucket_start",
    "format_timestamp",
    "iter_bucket_keys",
    "minute_key",
    "normalize_range",
    "parse_timestamp",
    "resolve_range",
]
