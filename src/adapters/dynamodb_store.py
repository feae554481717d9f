"""
DynamoDB telemetry event store.

Items carry the attribute names used by the existing telemetry table
(page, timestamp, minuteTimestamp) plus a generated id hash key.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from src.components.telemetry import TelemetryEvent, TelemetryStorageError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "metakeep-telemetry"
DEFAULT_REGION = "us-east-1"


class DynamoDBTelemetryEventStore:
    """DynamoDB implementation of TelemetryEventStorePort."""

    def __init__(
        self,
        table_name: str = DEFAULT_TABLE_NAME,
        region_name: str = DEFAULT_REGION,
        table: Any = None,
    ) -> None:
        self.table_name = table_name
        self.region_name = region_name
        self._table = table

    def _get_table(self) -> Any:
        if self._table is None:
            resource = boto3.resource("dynamodb", region_name=self.region_name)
            self._table = resource.Table(self.table_name)
        return self._table

    def append(self, event: TelemetryEvent) -> None:
        try:
            self._get_table().put_item(
                Item={
                    "id": str(uuid4()),
                    "page": event.page,
                    "timestamp": event.timestamp,
                    "minuteTimestamp": event.minute_timestamp,
                }
            )
        except (BotoCoreError, ClientError) as e:
            raise TelemetryStorageError("append", str(e)) from e

    def query_since(self, minute_timestamp: str, page: str | None = None) -> list[TelemetryEvent]:
        condition = Attr("minuteTimestamp").gte(minute_timestamp)
        if page is not None:
            condition = condition & Attr("page").eq(page)

        items: list[dict[str, Any]] = []
        try:
            table = self._get_table()
            response = table.scan(FilterExpression=condition)
            items.extend(response.get("Items", []))

            # Handle pagination
            while "LastEvaluatedKey" in response:
                response = table.scan(
                    FilterExpression=condition,
                    ExclusiveStartKey=response["LastEvaluatedKey"],
                )
                items.extend(response.get("Items", []))
        except (BotoCoreError, ClientError) as e:
            raise TelemetryStorageError("query", str(e)) from e

        logger.debug("Scanned %d telemetry items since %s", len(items), minute_timestamp)
        return [self._map_item(item) for item in items]

    def ping(self) -> None:
        self._get_table().load()

    def _map_item(self, item: dict[str, Any]) -> TelemetryEvent:
        return TelemetryEvent(
            page=str(item.get("page", "")),
            timestamp=str(item.get("timestamp", "")),
            minute_timestamp=item.get("minuteTimestamp"),  # type: ignore[arg-type]
        )
