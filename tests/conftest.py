from datetime import UTC, datetime

import pytest

from src.components.telemetry import InMemoryEventStore
from tests.doubles import FailingEventStore, MockTimePort


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 15, 14, 30, 45, 123000, tzinfo=UTC)


@pytest.fixture
def time_port(now: datetime) -> MockTimePort:
    return MockTimePort(now)


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def failing_store() -> FailingEventStore:
    return FailingEventStore()
