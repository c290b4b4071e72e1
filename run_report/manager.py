# run_report/manager.py
"""
Authorization gate and running-workout retriever.

``HealthDataManager`` owns the state a presentation layer observes:
the authorization status, the published list of runs for the current
month and a loading flag. State changes are handed to ``dispatch`` so a
UI can have them applied on its own thread or loop.
"""
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Callable, Optional

import structlog

from .models import AuthStatus, Authorized, Failed, InProgress, NotStarted, RunningWorkout
from .store import (
    QUERY_NO_LIMIT,
    ActivityPredicate,
    ActivityType,
    AndPredicate,
    DatePredicate,
    HealthStore,
    HealthStoreError,
    QuantityType,
    SampleType,
    SortDescriptor,
    WorkoutRecord,
)
from .utils import get_tz, month_window

log = structlog.get_logger()

NOT_AVAILABLE_MESSAGE = "Health Data not available on this device"

READ_TYPES: frozenset[SampleType | QuantityType] = frozenset({
    SampleType.WORKOUT,
    SampleType.ACTIVITY_SUMMARY,
    QuantityType.RUNNING_POWER,
    QuantityType.RUNNING_SPEED,
    QuantityType.RUNNING_STRIDE_LENGTH,
    QuantityType.RUNNING_VERTICAL_OSCILLATION,
    QuantityType.RUNNING_GROUND_CONTACT_TIME,
    QuantityType.HEART_RATE,
})

Dispatch = Callable[[Callable[[], None]], None]
Listener = Callable[["HealthDataManager"], None]


def immediate_dispatch(fn: Callable[[], None]) -> None:
    fn()


def loop_dispatcher(loop: asyncio.AbstractEventLoop) -> Dispatch:
    """Apply state changes on ``loop`` (e.g. the loop driving the UI)."""
    def dispatch(fn: Callable[[], None]) -> None:
        loop.call_soon_threadsafe(fn)
    return dispatch


def to_running_workout(record: WorkoutRecord) -> Optional[RunningWorkout]:
    """
    Map a raw record to a RunningWorkout.
    Distance: walking+running distance statistic sum -> record total distance.
    Records with neither are dropped (None).
    """
    distance: Optional[float] = None
    stats = record.statistics(QuantityType.DISTANCE_WALKING_RUNNING)
    total = stats.sum_quantity() if stats else None
    if total is not None:
        distance = total.value_in("m")
    elif record.total_distance is not None:
        distance = record.total_distance.value_in("m")

    if distance is None:
        return None

    return RunningWorkout(
        date=record.start_date,
        distance=distance,
        duration=record.duration,
    )


class HealthDataManager:
    def __init__(
        self,
        store: HealthStore,
        dispatch: Optional[Dispatch] = None,
        tz: Optional[dt.tzinfo] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ) -> None:
        self._store = store
        self._dispatch = dispatch or immediate_dispatch
        self._tz = tz
        self._clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))
        self._listeners: list[Listener] = []

        self._auth_status: AuthStatus = NotStarted()
        self._running_workouts: tuple[RunningWorkout, ...] = ()
        self._is_loading_workouts = False
        self._last_fetch_error: Optional[str] = None

    # ---------- observable state ----------

    @property
    def auth_status(self) -> AuthStatus:
        return self._auth_status

    @property
    def running_workouts(self) -> tuple[RunningWorkout, ...]:
        return self._running_workouts

    @property
    def is_loading_workouts(self) -> bool:
        return self._is_loading_workouts

    @property
    def last_fetch_error(self) -> Optional[str]:
        """Message of the last failed query; None once a fetch succeeds."""
        return self._last_fetch_error

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _set_auth_status(self, status: AuthStatus) -> None:
        self._auth_status = status
        self._notify()

    def _set_loading(self, value: bool) -> None:
        self._is_loading_workouts = value
        self._notify()

    def _publish(self, workouts: list[RunningWorkout]) -> None:
        def apply() -> None:
            self._running_workouts = tuple(workouts)
            self._notify()
        self._dispatch(apply)

    # ---------- entry points ----------

    async def request_authorization(self) -> None:
        self._set_auth_status(InProgress())
        if not self._store.is_health_data_available():
            self._set_auth_status(Failed(NOT_AVAILABLE_MESSAGE))
            return

        try:
            await self._store.request_authorization(share=set(), read=set(READ_TYPES))
        except HealthStoreError as e:
            log.warning("authorization_failed", error=str(e))
            self._set_auth_status(Failed(str(e)))
            return
        self._set_auth_status(Authorized())

    async def fetch_running_workouts(self) -> None:
        if not isinstance(self._auth_status, Authorized):
            return

        self._set_loading(True)
        try:
            tz = self._tz or get_tz()
            start, end = month_window(self._clock(), tz)
            predicate = AndPredicate(
                DatePredicate(start, end, strict_start=True),
                ActivityPredicate(ActivityType.RUNNING),
            )
            try:
                records = await self._store.query(
                    SampleType.WORKOUT,
                    predicate,
                    QUERY_NO_LIMIT,
                    [SortDescriptor("start_date", ascending=False)],
                )
            except HealthStoreError as e:
                log.error("workout_query_failed", error=str(e))
                self._last_fetch_error = str(e)
                return

            workouts = [w for w in (to_running_workout(r) for r in records) if w is not None]
            log.info(
                "workouts_fetched",
                start=start.isoformat(),
                end=end.isoformat(),
                records=len(records),
                runs=len(workouts),
            )
            self._last_fetch_error = None
            self._publish(workouts)
        finally:
            self._set_loading(False)
