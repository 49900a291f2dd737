"""
Timezone utilities for SwimDesk.

Session instants are stored in UTC. Schedules (session start times, weekly
availability, blockouts) are expressed in the studio's wall-clock zone.
"""

from datetime import date, datetime, time, timezone

import pytz


def get_studio_timezone(tz_name: str) -> pytz.BaseTzInfo:
    return pytz.timezone(tz_name)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def studio_to_utc(day: date, at: time, tz_name: str) -> datetime:
    """
    Convert a studio wall-clock date and time to an aware UTC datetime.

    Args:
        day: Calendar date in the studio zone
        at: Wall-clock time in the studio zone
        tz_name: IANA zone name

    Returns:
        Timezone-aware datetime in UTC
    """
    tz = get_studio_timezone(tz_name)
    local = tz.localize(datetime.combine(day, at.replace(tzinfo=None)))
    return local.astimezone(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def day_of_week(day: date) -> int:
    """Weekday number with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7
