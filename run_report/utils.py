from __future__ import annotations

import calendar
import datetime as dt
import logging
import re
import sys
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import pytz
import structlog

from .config import get_settings


def get_tz() -> pytz.BaseTzInfo:
    return pytz.timezone(get_settings().TZ)


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or get_settings().LOG_LEVEL).upper()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, name, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _localize(tz: dt.tzinfo, naive: dt.datetime) -> dt.datetime:
    # pytz zones need localize() to pick the right DST offset
    localize = getattr(tz, "localize", None)
    if localize is not None:
        return localize(naive)
    return naive.replace(tzinfo=tz)


def month_window(now: dt.datetime, tz: dt.tzinfo) -> tuple[dt.datetime, dt.datetime]:
    """
    Inclusive window of the calendar month containing ``now``:
    first day 00:00:00 .. last day 23:59:59, in the local calendar ``tz``.
    Naive ``now`` is taken as already local.
    """
    local = now.astimezone(tz) if now.tzinfo else now
    last_day = calendar.monthrange(local.year, local.month)[1]
    start = _localize(tz, dt.datetime(local.year, local.month, 1))
    end = _localize(tz, dt.datetime(local.year, local.month, last_day, 23, 59, 59))
    return start, end


def round_2dp(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    q = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(q)


def meters_to_km(value_meters: Optional[float]) -> Optional[float]:
    if value_meters is None:
        return None
    return round_2dp(value_meters / 1000.0)


def format_distance(meters: float) -> str:
    """5000.0 -> '5,000 m', 3210.456 -> '3,210.46 m'."""
    text = f"{meters:,.2f}".rstrip("0").rstrip(".")
    return f"{text} m"


def format_duration(seconds: float) -> str:
    total = int(seconds)
    hours = total // 3600
    minutes = total // 60 % 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_date(value: dt.datetime) -> str:
    """Medium date, short time: 'Mar 5, 2025 at 7:00 AM'."""
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {value.year} at {hour}:{value:%M} {value:%p}"


_ACTIVITY_PREFIX = "HKWorkoutActivityType"
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def normalize_workout_type(value: Optional[str]) -> Optional[str]:
    """HKWorkoutActivityTypeTraditionalStrengthTraining -> traditional_strength_training"""
    if not value:
        return None
    raw = value.strip()
    if raw.startswith(_ACTIVITY_PREFIX):
        raw = raw[len(_ACTIVITY_PREFIX):]
    raw = _CAMEL_RE.sub("_", raw) if not raw.islower() else raw
    return raw.replace("-", "_").replace(" ", "_").lower() or None
