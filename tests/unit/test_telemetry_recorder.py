"""
Tests for the telemetry recorder.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from src.components.telemetry import (
    InMemoryEventStore,
    RecordEventInput,
    TelemetryRecorder,
    TelemetryStorageError,
    TelemetryValidationError,
    create_telemetry_recorder,
    record_best_effort,
    run,
    run_record,
)
from tests.doubles import FailingEventStore, MockTimePort


@pytest.fixture
def recorder(store: InMemoryEventStore, time_port: MockTimePort) -> TelemetryRecorder:
    return TelemetryRecorder(store=store, time_port=time_port)


class TestRecordValidation:
    """Page id is required."""

    @pytest.mark.parametrize("page", [None, "", "   "])
    def test_missing_page_rejected(
        self, recorder: TelemetryRecorder, store: InMemoryEventStore, page: str | None
    ) -> None:
        with pytest.raises(TelemetryValidationError) as exc_info:
            recorder.record(page)
        assert exc_info.value.field_name == "page"
        assert store.get_all() == []

    def test_malformed_timestamp_rejected(
        self, recorder: TelemetryRecorder, store: InMemoryEventStore
    ) -> None:
        with pytest.raises(TelemetryValidationError) as exc_info:
            recorder.record("home", "yesterday-ish")
        assert exc_info.value.field_name == "timestamp"
        assert store.get_all() == []


class TestRecordAppend:
    """Events are stamped and appended."""

    def test_defaults_to_now(self, recorder: TelemetryRecorder) -> None:
        event = recorder.record("home")
        assert event.page == "home"
        assert event.timestamp == "2024-06-15T14:30:45.123Z"
        assert event.minute_timestamp == "2024-06-15T14:30:00.000Z"

    def test_explicit_timestamp(self, recorder: TelemetryRecorder) -> None:
        event = recorder.record("developer", "2024-06-10T08:05:59.999Z")
        assert event.timestamp == "2024-06-10T08:05:59.999Z"
        assert event.minute_timestamp == "2024-06-10T08:05:00.000Z"

    def test_datetime_timestamp(self, recorder: TelemetryRecorder) -> None:
        event = recorder.record("user", datetime(2024, 6, 10, 8, 5, 30, tzinfo=UTC))
        assert event.minute_timestamp == "2024-06-10T08:05:00.000Z"

    def test_minute_key_not_after_timestamp(self, recorder: TelemetryRecorder) -> None:
        event = recorder.record("home")
        assert event.minute_timestamp <= event.timestamp

    def test_appends_to_store(
        self, recorder: TelemetryRecorder, store: InMemoryEventStore
    ) -> None:
        event = recorder.record("home")
        assert store.get_all() == [event]

    def test_duplicates_not_deduplicated(
        self, recorder: TelemetryRecorder, store: InMemoryEventStore
    ) -> None:
        recorder.record("home")
        recorder.record("home")
        assert len(store.get_all()) == 2


class TestRecordStorageFailure:
    """Store errors propagate as TelemetryStorageError."""

    def test_generic_error_wrapped(self, time_port: MockTimePort) -> None:
        recorder = TelemetryRecorder(store=FailingEventStore(), time_port=time_port)
        with pytest.raises(TelemetryStorageError) as exc_info:
            recorder.record("home")
        assert exc_info.value.operation == "append"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_storage_error_passed_through(self, time_port: MockTimePort) -> None:
        original = TelemetryStorageError("append", "throttled")
        recorder = TelemetryRecorder(store=FailingEventStore(original), time_port=time_port)
        with pytest.raises(TelemetryStorageError) as exc_info:
            recorder.record("home")
        assert exc_info.value is original


class TestBestEffort:
    """Fire-and-forget wrapper logs instead of raising."""

    def test_success_returns_event(self, recorder: TelemetryRecorder) -> None:
        assert record_best_effort(recorder, "home") is not None

    def test_failure_logged_and_swallowed(
        self, time_port: MockTimePort, caplog: pytest.LogCaptureFixture
    ) -> None:
        recorder = TelemetryRecorder(store=FailingEventStore(), time_port=time_port)
        with caplog.at_level(logging.ERROR):
            assert record_best_effort(recorder, "home") is None
        assert "Telemetry record for page 'home' failed" in caplog.text

    def test_validation_failure_logged(
        self, recorder: TelemetryRecorder, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            assert record_best_effort(recorder, "") is None
        assert "failed" in caplog.text


class TestComponentEntryPoints:
    """run_record / run dispatch."""

    def test_run_record(self, store: InMemoryEventStore, time_port: MockTimePort) -> None:
        result = run_record(RecordEventInput(page="home"), store=store, time_port=time_port)
        assert result.success is True
        assert result.event.page == "home"

    def test_run_dispatches_record(
        self, store: InMemoryEventStore, time_port: MockTimePort
    ) -> None:
        result = run(RecordEventInput(page="home"), store=store, time_port=time_port)
        assert result.event.page == "home"  # type: ignore[union-attr]

    def test_run_unknown_input(self, store: InMemoryEventStore) -> None:
        with pytest.raises(ValueError):
            run(object(), store=store)  # type: ignore[arg-type]

    def test_factory(self, store: InMemoryEventStore) -> None:
        assert isinstance(create_telemetry_recorder(store), TelemetryRecorder)
