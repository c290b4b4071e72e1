from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest
import pytz
import structlog

from run_report.store import (
    ActivityType,
    Quantity,
    QuantityType,
    Statistics,
    WorkoutRecord,
    run_query,
)

DATA = Path(__file__).parent / "data"
UTC = pytz.UTC


class FakeStore:
    """In-memory HealthStore; records calls for assertions."""

    def __init__(self, records=(), available=True, auth_error=None, query_error=None):
        self.records = list(records)
        self.available = available
        self.auth_error = auth_error
        self.query_error = query_error
        self.auth_calls: list[tuple[set, set]] = []
        self.queries: list[tuple] = []

    def is_health_data_available(self) -> bool:
        return self.available

    async def request_authorization(self, share, read) -> None:
        self.auth_calls.append((share, read))
        if self.auth_error:
            raise self.auth_error

    async def query(self, sample_type, predicate, limit, sort):
        self.queries.append((sample_type, predicate, limit, sort))
        if self.query_error:
            raise self.query_error
        return run_query(self.records, predicate, limit, sort)


def workout(
    start: dt.datetime,
    duration: float,
    distance_m: float | None = None,
    total_distance_m: float | None = None,
    activity: ActivityType = ActivityType.RUNNING,
) -> WorkoutRecord:
    stats = {}
    if distance_m is not None:
        q = QuantityType.DISTANCE_WALKING_RUNNING
        stats[q] = Statistics(q, Quantity(distance_m, "m"))
    return WorkoutRecord(
        activity_type=activity,
        start_date=start,
        end_date=start + dt.timedelta(seconds=duration),
        duration=duration,
        total_distance=Quantity(total_distance_m, "m") if total_distance_m is not None else None,
        stats=stats,
    )


@pytest.fixture
def export_xml() -> Path:
    return DATA / "export.xml"


@pytest.fixture
def march_clock():
    now = dt.datetime(2025, 3, 25, 12, 0, tzinfo=UTC)
    return lambda: now


@pytest.fixture(autouse=True)
def _reset_structlog():
    # configure_logging() binds the current stderr; don't leak it across tests
    yield
    structlog.reset_defaults()
