"""Classify wall-clock time into the scheduled taxi compliance runs."""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from .. import config
from ..models.compliance import RunType

# (weekday, hour) in league-local time; Monday == 0
RUN_WINDOWS = {
    (2, 17): RunType.WED_WARN,
    (3, 15): RunType.THU_WARN,
    (6, 11): RunType.SUN_AM_WARN,
    (6, 20): RunType.SUN_PM_OFFICIAL,  # Sunday night kickoff
}


def pick_run_type(
    now: datetime,
    tz: str = config.LEAGUE_TIMEZONE,
    grace_minutes: int = config.RUN_WINDOW_GRACE_MINUTES,
    default: Optional[RunType] = None,
) -> Optional[RunType]:
    """
    Return the run type whose window contains ``now``, or ``default``.

    A window opens at the top of its hour and stays open for
    ``grace_minutes`` to absorb scheduler jitter. Naive datetimes are read as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(tz))
    if 0 <= local.minute <= grace_minutes:
        run_type = RUN_WINDOWS.get((local.weekday(), local.hour))
        if run_type is not None:
            return run_type
    return default


def is_enforcing(run_type: Optional[RunType]) -> bool:
    return run_type == RunType.SUN_PM_OFFICIAL
