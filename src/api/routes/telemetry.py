"""
Telemetry API Routes.

Page-visit recording and time-bucketed page-view stats for the dashboard.

Key behaviors:
- POST /            records one visit, fails loudly
- POST /beacon      records in the background, failures are only logged
- GET  /stats       gap-filled {timestamp, count} series
- GET  /summary     current/average/peak for the same series
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.api.deps import get_aggregator, get_recorder
from src.components.telemetry import (
    TelemetryAggregator,
    TelemetryRecorder,
    TelemetryStorageError,
    TelemetryValidationError,
    normalize_range,
    record_best_effort,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class RecordRequest(BaseModel):
    """Page visit request."""

    page: Any = Field(None, description="Visited page identifier")
    timestamp: Any = Field(None, description="Visit time (ISO-8601), defaults to now")


class RecordResponse(BaseModel):
    """Success response."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Error response."""

    message: str


class StatsPoint(BaseModel):
    """Single bucket in the series."""

    timestamp: str
    count: int


class SummaryResponse(BaseModel):
    """Series headline figures."""

    range: str
    current: int
    average: float
    peak: int


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def read_record_body(request: Request) -> RecordRequest:
    """
    Read the visit body leniently.

    Malformed JSON or wrongly-typed fields are passed through to the
    recorder so they come back as a 400 with a message, not a 422.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}
    return RecordRequest(page=payload.get("page"), timestamp=payload.get("timestamp"))


# --- Routes ---


@router.post(
    "",
    response_model=RecordResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def record_visit(
    body: RecordRequest = Depends(read_record_body),
    recorder: TelemetryRecorder = Depends(get_recorder),
) -> Any:
    """Record a page visit."""
    try:
        recorder.record(body.page, body.timestamp)
    except TelemetryValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except TelemetryStorageError:
        logger.exception("Error recording telemetry")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to record telemetry")
    return RecordResponse(success=True)


@router.post(
    "/beacon",
    response_model=RecordResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def record_visit_beacon(
    background_tasks: BackgroundTasks,
    body: RecordRequest = Depends(read_record_body),
    recorder: TelemetryRecorder = Depends(get_recorder),
) -> RecordResponse:
    """
    Fire-and-forget visit recording.

    Always accepted; the write happens after the response and any
    failure is logged.
    """
    background_tasks.add_task(record_best_effort, recorder, body.page, body.timestamp)
    return RecordResponse(success=True)


@router.get(
    "/stats",
    response_model=list[StatsPoint],
    responses={500: {"model": ErrorResponse}},
)
def get_stats(
    range: str = Query("hour", description="Time range: hour, day, week"),
    page: str = Query("all", description="Page filter, 'all' for every page"),
    aggregator: TelemetryAggregator = Depends(get_aggregator),
) -> Any:
    """Gap-filled page-view series for the requested range."""
    try:
        series = aggregator.query(normalize_range(range), page)
    except TelemetryStorageError:
        logger.exception("Error fetching telemetry stats")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch telemetry stats")
    return [StatsPoint(timestamp=b.timestamp, count=b.count) for b in series]


@router.get(
    "/summary",
    response_model=SummaryResponse,
    responses={500: {"model": ErrorResponse}},
)
def get_summary(
    range: str = Query("hour", description="Time range: hour, day, week"),
    page: str = Query("all", description="Page filter, 'all' for every page"),
    aggregator: TelemetryAggregator = Depends(get_aggregator),
) -> Any:
    """Current rate, average and peak page views for the requested range."""
    time_range = normalize_range(range)
    try:
        series = aggregator.query(time_range, page)
    except TelemetryStorageError:
        logger.exception("Error fetching telemetry summary")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch telemetry stats")

    summary = aggregator.summarize(series)
    return SummaryResponse(
        range=time_range.value,
        current=summary.current,
        average=summary.average,
        peak=summary.peak,
    )
