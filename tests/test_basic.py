import datetime as dt

import pytest

from run_report import REPORT_HEADER
from run_report.models import Authorized, Failed, InProgress, NotStarted, RunningWorkout


def test_report_header_order_and_length():
    assert REPORT_HEADER[0] == "date"
    assert REPORT_HEADER[1] == "distance"
    assert len(REPORT_HEADER) == 4


def test_running_workout_row_length_matches_header():
    w = RunningWorkout(date=dt.datetime(2025, 3, 5, 7, 0), distance=5000.0, duration=1500.0)
    assert len(w.as_row()) == len(REPORT_HEADER)
    assert w.as_row() == ["Mar 5, 2025 at 7:00 AM", "5,000 m", "25:00", 5.0]


def test_running_workout_ids_are_fresh():
    when = dt.datetime(2025, 3, 5, 7, 0)
    a = RunningWorkout(date=when, distance=1.0, duration=1.0)
    b = RunningWorkout(date=when, distance=1.0, duration=1.0)
    assert a.id != b.id


def test_running_workout_rejects_negative_values():
    with pytest.raises(ValueError):
        RunningWorkout(date=dt.datetime(2025, 3, 5), distance=-1.0, duration=10.0)


def test_auth_status_request_disabled():
    assert NotStarted().request_disabled is False
    assert InProgress().request_disabled is True
    assert Authorized().request_disabled is True
    assert Failed("nope").request_disabled is True
    assert Failed("nope") == Failed("nope")
    assert Failed("nope").reason == "nope"
