# sources/apple_health.py
from __future__ import annotations

import asyncio
import datetime as dt
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterator, Optional, Sequence

import structlog

from ..config import get_settings
from ..store import (
    ActivityType,
    AuthorizationError,
    HealthStoreError,
    Predicate,
    Quantity,
    QuantityType,
    SampleType,
    SortDescriptor,
    Statistics,
    WorkoutRecord,
    run_query,
)
from ..utils import normalize_workout_type

logger = structlog.get_logger()

# Export: Health app > profile > Export All Health Data -> export.zip/apple_health_export/export.xml
DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

QUANTITY_IDENTIFIERS = {
    "HKQuantityTypeIdentifierDistanceWalkingRunning": QuantityType.DISTANCE_WALKING_RUNNING,
    "HKQuantityTypeIdentifierRunningPower": QuantityType.RUNNING_POWER,
    "HKQuantityTypeIdentifierRunningSpeed": QuantityType.RUNNING_SPEED,
    "HKQuantityTypeIdentifierRunningStrideLength": QuantityType.RUNNING_STRIDE_LENGTH,
    "HKQuantityTypeIdentifierRunningVerticalOscillation": QuantityType.RUNNING_VERTICAL_OSCILLATION,
    "HKQuantityTypeIdentifierRunningGroundContactTime": QuantityType.RUNNING_GROUND_CONTACT_TIME,
    "HKQuantityTypeIdentifierHeartRate": QuantityType.HEART_RATE,
}

# --------------------------- Helpers ---------------------------

def _parse_date(value: Optional[str]) -> dt.datetime:
    if not value:
        raise ValueError("missing date")
    return dt.datetime.strptime(value, DATE_FORMAT)


def _quantity(value: Optional[str], unit: Optional[str]) -> Optional[Quantity]:
    if value is None or not unit:
        return None
    return Quantity(float(value), unit)


def _length(q: Optional[Quantity]) -> Optional[Quantity]:
    if q is not None:
        q.value_in("m")  # ValueError on non-length units
    return q


def _duration_seconds(elem: ET.Element) -> float:
    q = _quantity(elem.get("duration"), elem.get("durationUnit") or "min")
    if q is None:
        raise ValueError("missing duration")
    return q.value_in("s")


def _statistics(elem: ET.Element) -> dict[QuantityType, Statistics]:
    stats: dict[QuantityType, Statistics] = {}
    for child in elem.iter("WorkoutStatistics"):
        qtype = QUANTITY_IDENTIFIERS.get(child.get("type", ""))
        if qtype is None:
            continue
        total = _quantity(child.get("sum"), child.get("unit"))
        if qtype is QuantityType.DISTANCE_WALKING_RUNNING:
            total = _length(total)
        stats[qtype] = Statistics(qtype, total)
    return stats


def parse_workout(elem: ET.Element) -> WorkoutRecord:
    """Build a WorkoutRecord from a <Workout> element (ValueError if malformed)."""
    return WorkoutRecord(
        activity_type=ActivityType.parse(normalize_workout_type(elem.get("workoutActivityType"))),
        start_date=_parse_date(elem.get("startDate")),
        end_date=_parse_date(elem.get("endDate")),
        duration=_duration_seconds(elem),
        total_distance=_length(_quantity(elem.get("totalDistance"), elem.get("totalDistanceUnit"))),
        stats=_statistics(elem),
        source_name=elem.get("sourceName"),
    )


# --------------------------- Store ---------------------------

class AppleHealthExportStore:
    """Read-only HealthStore over an Apple Health export.xml."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path or get_settings().HEALTH_EXPORT_PATH)
        self._authorized = False

    def is_health_data_available(self) -> bool:
        return self.path.is_file()

    async def request_authorization(self, share, read) -> None:
        if share:
            raise AuthorizationError("Export store is read-only; share access cannot be granted")
        if not os.access(self.path, os.R_OK):
            raise AuthorizationError(f"Cannot read health export at {self.path}")
        logger.info("apple_health_authorized", path=str(self.path), read=sorted(str(t.value) for t in read))
        self._authorized = True

    async def query(
        self,
        sample_type: SampleType,
        predicate: Optional[Predicate],
        limit: int,
        sort: Sequence[SortDescriptor],
    ) -> list[WorkoutRecord]:
        if not self._authorized:
            raise HealthStoreError("Authorization not granted")
        if sample_type != SampleType.WORKOUT:
            raise HealthStoreError(f"Unsupported sample type: {sample_type}")
        return await asyncio.to_thread(
            lambda: run_query(self.iter_workouts(), predicate, limit, sort)
        )

    def iter_workouts(self) -> Iterator[WorkoutRecord]:
        try:
            root = None
            depth = 0
            for event, elem in ET.iterparse(self.path, events=("start", "end")):
                if event == "start":
                    if root is None:
                        root = elem
                    depth += 1
                    continue
                depth -= 1
                if elem.tag == "Workout":
                    try:
                        record = parse_workout(elem)
                    except ValueError as e:
                        logger.warning(
                            "workout_skipped",
                            start=elem.get("startDate"),
                            type=elem.get("workoutActivityType"),
                            error=str(e),
                        )
                    else:
                        yield record
                if depth == 1:
                    # direct child of <HealthData>; drop it from the root as well
                    elem.clear()
                    root.clear()
        except (ET.ParseError, OSError) as e:
            raise HealthStoreError(f"Cannot parse health export {self.path}: {e}") from e
