# swimdesk/domain/scheduling_rules.py
"""
Scheduling rules for instructor sessions.

All times here are studio wall-clock values. A session occupies the
half-open interval [start, end); blockouts reject any overlap with it, and
availability is satisfied only by a single weekly window that contains it
entirely. Blockouts are checked first and cannot be overridden.
"""

from dataclasses import dataclass
import datetime as dt
from typing import Iterable, Optional

from ..core.exceptions import BlockedTimeException, UnavailableWarning
from ..core.timezone_utils import day_of_week
from ..schemas.availability import Availability, Blockout


@dataclass(frozen=True)
class SlotRequest:
    """A proposed session in studio local time."""

    instructor_id: str
    start: dt.datetime
    duration_minutes: int

    @property
    def end(self) -> dt.datetime:
        return self.start + dt.timedelta(minutes=self.duration_minutes)

    @property
    def dates(self) -> tuple[dt.date, ...]:
        """Calendar dates the slot touches (two when it runs past midnight)."""
        last = (self.end - dt.timedelta(microseconds=1)).date()
        if last == self.start.date():
            return (self.start.date(),)
        return (self.start.date(), last)

    def describe(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def overlaps(
    start_a: dt.datetime, end_a: dt.datetime, start_b: dt.datetime, end_b: dt.datetime
) -> bool:
    return start_a < end_b and start_b < end_a


def find_blocking_blockout(slot: SlotRequest, blockouts: Iterable[Blockout]) -> Optional[Blockout]:
    for blockout in blockouts:
        if blockout.instructor_id != slot.instructor_id:
            continue
        window_start = dt.datetime.combine(blockout.date, blockout.start_time)
        window_end = dt.datetime.combine(blockout.date, blockout.end_time)
        if overlaps(slot.start, slot.end, window_start, window_end):
            return blockout
    return None


def is_within_availability(slot: SlotRequest, availability: Iterable[Availability]) -> bool:
    day = slot.start.date()
    weekday = day_of_week(day)
    for window in availability:
        if window.instructor_id != slot.instructor_id or window.day_of_week != weekday:
            continue
        window_start = dt.datetime.combine(day, window.start_time)
        window_end = dt.datetime.combine(day, window.end_time)
        if window_start <= slot.start and slot.end <= window_end:
            return True
    return False


def check_slot(
    slot: SlotRequest,
    availability: Iterable[Availability],
    blockouts: Iterable[Blockout],
    override_unavailable: bool = False,
) -> None:
    """
    Validate a proposed session.

    Raises:
        BlockedTimeException: If the slot overlaps a blockout
        UnavailableWarning: If no availability window covers the slot and
            the caller has not confirmed the override
    """
    blocking = find_blocking_blockout(slot, blockouts)
    if blocking is not None:
        raise BlockedTimeException(
            instructor_id=slot.instructor_id,
            blockout_id=blocking.id,
            date=slot.start.date().isoformat(),
            window=slot.describe(),
            reason=blocking.reason,
        )
    if not override_unavailable and not is_within_availability(slot, availability):
        raise UnavailableWarning(
            instructor_id=slot.instructor_id,
            date=slot.start.date().isoformat(),
            window=slot.describe(),
        )
