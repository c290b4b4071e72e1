# run_report/cli.py
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Callable, Optional, Sequence

import typer
import structlog

from .config import get_settings
from .manager import HealthDataManager
from .models import Failed, RunningWorkout
from .sources.apple_health import AppleHealthExportStore
from .utils import configure_logging, format_distance, format_duration, get_tz

app = typer.Typer(no_args_is_help=True, help="run-report CLI")
log = structlog.get_logger()


# ---------- helpers ----------

def _parse_month(month: str) -> dt.datetime:
    """'2025-03' -> naive local datetime inside that month."""
    try:
        parsed = dt.datetime.strptime(month.strip(), "%Y-%m")
    except ValueError:
        raise typer.BadParameter("month must be YYYY-MM")
    return parsed.replace(day=15, hour=12)


def _month_clock(month: Optional[str]) -> Optional[Callable[[], dt.datetime]]:
    if not month:
        return None
    now = _parse_month(month)
    return lambda: now


def _render(workouts: Sequence[RunningWorkout]) -> list[str]:
    header = RunningWorkout.headers()
    rows = [[str(v) for v in w.as_row()] for w in workouts]
    widths = [max(len(str(c)) for c in col) for col in zip(header, *rows)]
    lines = ["  ".join(str(c).ljust(w) for c, w in zip(r, widths)).rstrip() for r in [header, *rows]]
    total_m = sum(w.distance for w in workouts)
    total_s = sum(w.duration for w in workouts)
    lines.append(f"{len(workouts)} runs, {format_distance(total_m)}, {format_duration(total_s)}")
    return lines


async def _authorize_and_fetch(manager: HealthDataManager) -> None:
    await manager.request_authorization()
    await manager.fetch_running_workouts()


# ---------- commands ----------

@app.command()
def runs(
    export: Optional[str] = typer.Option(
        None,
        help="Path to Apple Health export.xml (default: HEALTH_EXPORT_PATH)",
    ),
    month: Optional[str] = typer.Option(
        None,
        help="Month to report as YYYY-MM (default: current month)",
    ),
) -> None:
    """Show running workouts of the month, newest first."""
    configure_logging()
    manager = HealthDataManager(
        AppleHealthExportStore(export),
        tz=get_tz(),
        clock=_month_clock(month),
    )
    asyncio.run(_authorize_and_fetch(manager))

    status = manager.auth_status
    if isinstance(status, Failed):
        log.error("authorization_failed", reason=status.reason)
        typer.echo(f"[ERR] {status.reason}")
        raise typer.Exit(code=1)

    if manager.last_fetch_error:
        log.error("runs_failed", error=manager.last_fetch_error)
        typer.echo(f"[ERR] {manager.last_fetch_error}")
        raise typer.Exit(code=1)

    if not manager.running_workouts:
        typer.echo("No runs this month.")
        return
    for line in _render(manager.running_workouts):
        typer.echo(line)


@app.command("diag")
def diag() -> None:
    """Quick diagnostics (.env, export file, timezone)."""
    settings = get_settings()
    store = AppleHealthExportStore(settings.HEALTH_EXPORT_PATH)
    typer.echo(f"TZ: {settings.TZ}")
    typer.echo(f"LOG_LEVEL: {settings.LOG_LEVEL}")
    typer.echo(f"HEALTH_EXPORT_PATH: {store.path}  (exists={store.is_health_data_available()})")


if __name__ == "__main__":
    app()
