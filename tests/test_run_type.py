from datetime import datetime, timezone

import pytest

from commish.models.compliance import RunType
from commish.services.run_type import is_enforcing, pick_run_type


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize("now, expected", [
    (utc(2026, 10, 14, 21, 0), RunType.WED_WARN),  # Wed 17:00 EDT
    (utc(2026, 10, 14, 21, 5), RunType.WED_WARN),
    (utc(2026, 10, 14, 21, 6), None),
    (utc(2026, 10, 14, 20, 59), None),
    (utc(2026, 10, 15, 19, 3), RunType.THU_WARN),  # Thu 15:03 EDT
    (utc(2026, 10, 18, 15, 0), RunType.SUN_AM_WARN),  # Sun 11:00 EDT
    (utc(2026, 10, 19, 0, 0), RunType.SUN_PM_OFFICIAL),  # Sun 20:00 EDT
    (utc(2026, 12, 14, 1, 2), RunType.SUN_PM_OFFICIAL),  # Sun 20:02 EST
    (utc(2026, 12, 14, 0, 2), None),  # Sun 19:02 EST
    (utc(2026, 10, 13, 21, 0), None),  # Tuesday
])
def test_pick_run_type_windows(now, expected):
    assert pick_run_type(now) == expected


def test_naive_datetimes_are_utc():
    assert pick_run_type(datetime(2026, 10, 19, 0, 1)) == RunType.SUN_PM_OFFICIAL


def test_default_outside_windows():
    assert pick_run_type(utc(2026, 10, 13, 12, 0), default=RunType.ADMIN_RERUN) == RunType.ADMIN_RERUN


def test_custom_grace():
    assert pick_run_type(utc(2026, 10, 14, 21, 9), grace_minutes=10) == RunType.WED_WARN


def test_only_sunday_night_enforces():
    assert is_enforcing(RunType.SUN_PM_OFFICIAL)
    for run_type in (RunType.WED_WARN, RunType.THU_WARN, RunType.SUN_AM_WARN, RunType.ADMIN_RERUN, None):
        assert not is_enforcing(run_type)
