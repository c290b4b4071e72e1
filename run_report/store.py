# run_report/store.py
"""
Health-data store interface.

A store hands out read access to workout records after the user grants
authorization. Queries take a sample type, a predicate, a result limit and
a sort descriptor, the way a platform health database does.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional, Protocol, Sequence, runtime_checkable

QUERY_NO_LIMIT = 0


class HealthStoreError(Exception):
    """Provider-reported failure (authorization or query)."""


class AuthorizationError(HealthStoreError):
    pass


class HealthDataUnavailable(HealthStoreError):
    pass


class SampleType(str, Enum):
    WORKOUT = "workout"
    ACTIVITY_SUMMARY = "activity_summary"


class QuantityType(str, Enum):
    DISTANCE_WALKING_RUNNING = "distance_walking_running"
    RUNNING_POWER = "running_power"
    RUNNING_SPEED = "running_speed"
    RUNNING_STRIDE_LENGTH = "running_stride_length"
    RUNNING_VERTICAL_OSCILLATION = "running_vertical_oscillation"
    RUNNING_GROUND_CONTACT_TIME = "running_ground_contact_time"
    HEART_RATE = "heart_rate"


class ActivityType(str, Enum):
    RUNNING = "running"
    WALKING = "walking"
    HIKING = "hiking"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ActivityType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


# --------------------------- Quantities ---------------------------

# factor to the base unit (meters / seconds)
_LENGTH_UNITS = {
    "m": 1.0,
    "cm": 0.01,
    "km": 1000.0,
    "ft": 0.3048,
    "yd": 0.9144,
    "mi": 1609.344,
}
_TIME_UNITS = {
    "s": 1.0,
    "min": 60.0,
    "hr": 3600.0,
}


def _unit_family(unit: str) -> dict[str, float]:
    for family in (_LENGTH_UNITS, _TIME_UNITS):
        if unit in family:
            return family
    raise ValueError(f"unknown unit: {unit!r}")


@dataclass(frozen=True)
class Quantity:
    value: float
    unit: str

    def value_in(self, unit: str) -> float:
        family = _unit_family(self.unit)
        if unit not in family:
            raise ValueError(f"cannot convert {self.unit!r} to {unit!r}")
        return self.value * family[self.unit] / family[unit]


@dataclass(frozen=True)
class Statistics:
    quantity_type: QuantityType
    sum: Optional[Quantity] = None

    def sum_quantity(self) -> Optional[Quantity]:
        return self.sum


# --------------------------- Records ---------------------------

@dataclass(frozen=True)
class WorkoutRecord:
    activity_type: ActivityType
    start_date: dt.datetime
    end_date: dt.datetime
    duration: float  # seconds
    total_distance: Optional[Quantity] = None
    stats: Mapping[QuantityType, Statistics] = field(default_factory=dict)
    source_name: Optional[str] = None

    def statistics(self, quantity_type: QuantityType) -> Optional[Statistics]:
        return self.stats.get(quantity_type)


# --------------------------- Predicates ---------------------------

class Predicate(Protocol):
    def matches(self, record: WorkoutRecord) -> bool: ...


@dataclass(frozen=True)
class DatePredicate:
    """Samples inside [start, end]. With strict_start only the start date counts."""
    start: dt.datetime
    end: dt.datetime
    strict_start: bool = True

    def matches(self, record: WorkoutRecord) -> bool:
        if self.strict_start:
            return self.start <= record.start_date <= self.end
        # overlap
        return record.start_date <= self.end and record.end_date >= self.start


@dataclass(frozen=True)
class ActivityPredicate:
    activity_type: ActivityType

    def matches(self, record: WorkoutRecord) -> bool:
        return record.activity_type == self.activity_type


class AndPredicate:
    def __init__(self, *subpredicates: Predicate) -> None:
        self.subpredicates = tuple(subpredicates)

    def matches(self, record: WorkoutRecord) -> bool:
        return all(p.matches(record) for p in self.subpredicates)

    def __repr__(self) -> str:
        return f"AndPredicate{self.subpredicates!r}"


@dataclass(frozen=True)
class SortDescriptor:
    key: str = "start_date"
    ascending: bool = False

    def apply(self, records: Iterable[WorkoutRecord]) -> list[WorkoutRecord]:
        return sorted(records, key=lambda r: getattr(r, self.key), reverse=not self.ascending)


# --------------------------- Store ---------------------------

@runtime_checkable
class HealthStore(Protocol):
    def is_health_data_available(self) -> bool: ...

    async def request_authorization(
        self,
        share: set[SampleType | QuantityType],
        read: set[SampleType | QuantityType],
    ) -> None: ...

    async def query(
        self,
        sample_type: SampleType,
        predicate: Optional[Predicate],
        limit: int,
        sort: Sequence[SortDescriptor],
    ) -> list[WorkoutRecord]: ...


def run_query(
    records: Iterable[WorkoutRecord],
    predicate: Optional[Predicate],
    limit: int,
    sort: Sequence[SortDescriptor],
) -> list[WorkoutRecord]:
    """Filter, sort and cap records the way store queries do."""
    out = [r for r in records if predicate is None or predicate.matches(r)]
    # apply descriptors last-to-first so the first one is the primary key
    for descriptor in reversed(sort):
        out = descriptor.apply(out)
    if limit != QUERY_NO_LIMIT:
        out = out[:limit]
    return out
