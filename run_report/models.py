from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Union

from . import REPORT_HEADER
from .utils import format_date, format_distance, format_duration, meters_to_km


@dataclass(frozen=True)
class RunningWorkout:
    date: dt.datetime
    distance: float  # meters
    duration: float  # seconds
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.distance < 0 or self.duration < 0:
            raise ValueError("distance and duration must be non-negative")

    @property
    def formatted_distance(self) -> str:
        return format_distance(self.distance)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)

    @property
    def formatted_date(self) -> str:
        return format_date(self.date)

    @staticmethod
    def headers() -> List[str]:
        return REPORT_HEADER

    def as_row(self) -> List[Any]:
        # must match headers()
        return [
            self.formatted_date,
            self.formatted_distance,
            self.formatted_duration,
            meters_to_km(self.distance),
        ]


# --------------------------- Authorization status ---------------------------

@dataclass(frozen=True)
class NotStarted:
    @property
    def request_disabled(self) -> bool:
        return False


@dataclass(frozen=True)
class InProgress:
    @property
    def request_disabled(self) -> bool:
        return True


@dataclass(frozen=True)
class Authorized:
    @property
    def request_disabled(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    reason: str

    @property
    def request_disabled(self) -> bool:
        return True


AuthStatus = Union[NotStarted, InProgress, Authorized, Failed]
