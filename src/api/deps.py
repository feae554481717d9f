import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.dynamodb_store import DEFAULT_REGION, DynamoDBTelemetryEventStore
from src.adapters.sqlite_db import SQLiteTelemetryEventStore
from src.components.telemetry import (
    DefaultTimePort,
    InMemoryEventStore,
    TelemetryAggregator,
    TelemetryEventStorePort,
    TelemetryRecorder,
    TimePort,
)
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("TELEMETRY_DATA_DIR", "./data"))
        self.rules_path = Path(
            os.environ.get("TELEMETRY_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.dynamodb_table = os.environ.get("DYNAMODB_TELEMETRY_TABLE")
        self.aws_region = os.environ.get("AWS_REGION", DEFAULT_REGION)
        self.log_level = os.environ.get("LOG_LEVEL", "INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Store ---
@lru_cache
def build_event_store(settings: Settings) -> TelemetryEventStorePort:
    """One store handle per process, chosen by the rules file."""
    rules = get_rules(settings)
    backend = rules.telemetry.store
    if backend == "dynamodb":
        return DynamoDBTelemetryEventStore(
            table_name=settings.dynamodb_table or rules.telemetry.table_name,
            region_name=settings.aws_region,
        )
    if backend == "memory":
        return InMemoryEventStore()

    store = SQLiteTelemetryEventStore(str(settings.data_dir / rules.telemetry.sqlite_filename))
    store.ensure_schema()
    return store


def get_event_store(settings: Settings = Depends(get_settings)) -> TelemetryEventStorePort:
    return build_event_store(settings)


def get_time_port() -> TimePort:
    return DefaultTimePort()


# --- Component Services ---
def get_recorder(
    store: TelemetryEventStorePort = Depends(get_event_store),
    time_port: TimePort = Depends(get_time_port),
) -> TelemetryRecorder:
    """Get telemetry recorder."""
    return TelemetryRecorder(store=store, time_port=time_port)


def get_aggregator(
    store: TelemetryEventStorePort = Depends(get_event_store),
    time_port: TimePort = Depends(get_time_port),
    rules: Rules = Depends(get_rules),
) -> TelemetryAggregator:
    """Get telemetry aggregator."""
    return TelemetryAggregator(
        store=store,
        time_port=time_port,
        all_pages_sentinel=rules.telemetry.all_pages_sentinel,
    )
