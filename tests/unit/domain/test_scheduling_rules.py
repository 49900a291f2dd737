# tests/unit/domain/test_scheduling_rules.py
"""
Unit tests for the blockout and availability checks.

2025-01-06 is a Monday (weekday 1 with Sunday as 0).
"""

from datetime import date, datetime, time

import pytest

from swimdesk.core.exceptions import BlockedTimeException, UnavailableWarning
from swimdesk.domain.scheduling_rules import (
    SlotRequest,
    check_slot,
    find_blocking_blockout,
    is_within_availability,
)
from swimdesk.schemas.availability import Availability, Blockout

MONDAY = date(2025, 1, 6)


def _window(start: time, end: time, day_of_week: int = 1, instructor_id: str = "i1") -> Availability:
    return Availability(
        instructor_id=instructor_id, day_of_week=day_of_week, start_time=start, end_time=end
    )


def _blockout(start: time, end: time, on: date = MONDAY, instructor_id: str = "i1") -> Blockout:
    return Blockout(
        instructor_id=instructor_id, date=on, start_time=start, end_time=end, reason="Dentist"
    )


def _slot(at: time, minutes: int = 45, on: date = MONDAY) -> SlotRequest:
    return SlotRequest(instructor_id="i1", start=datetime.combine(on, at), duration_minutes=minutes)


class TestSlotRequest:
    def test_end_and_description(self):
        slot = _slot(time(9, 30))

        assert slot.end == datetime(2025, 1, 6, 10, 15)
        assert slot.describe() == "09:30-10:15"

    def test_dates_for_a_slot_running_past_midnight(self):
        slot = _slot(time(23, 30), minutes=60)

        assert slot.dates == (MONDAY, date(2025, 1, 7))

    def test_slot_ending_exactly_at_midnight_touches_one_date(self):
        slot = _slot(time(23, 0), minutes=60)

        assert slot.dates == (MONDAY,)


class TestAvailability:
    def test_slot_inside_window(self):
        assert is_within_availability(_slot(time(9, 0)), [_window(time(9), time(17))])

    def test_window_on_another_weekday_does_not_count(self):
        assert not is_within_availability(_slot(time(9, 0)), [_window(time(9), time(17), day_of_week=2)])

    def test_minutes_are_respected(self):
        """A 45 minute lesson at 09:30 overruns a window closing at 10:00."""
        assert not is_within_availability(_slot(time(9, 30)), [_window(time(9), time(10))])

    def test_slot_must_fit_in_a_single_window(self):
        windows = [_window(time(9), time(10)), _window(time(10), time(11))]

        assert not is_within_availability(_slot(time(9, 30)), windows)

    def test_other_instructors_windows_are_ignored(self):
        assert not is_within_availability(
            _slot(time(9, 0)), [_window(time(9), time(17), instructor_id="i2")]
        )


class TestBlockouts:
    def test_overlap_is_found(self):
        blockout = _blockout(time(10), time(11))

        assert find_blocking_blockout(_slot(time(9, 30)), [blockout]) == blockout

    def test_touching_edges_do_not_overlap(self):
        assert find_blocking_blockout(_slot(time(10, 0)), [_blockout(time(9), time(10))]) is None
        assert find_blocking_blockout(_slot(time(9, 15)), [_blockout(time(10), time(11))]) is None

    def test_blockout_on_another_date_is_ignored(self):
        blockout = _blockout(time(9), time(12), on=date(2025, 1, 7))

        assert find_blocking_blockout(_slot(time(9, 30)), [blockout]) is None


class TestCheckSlot:
    def test_available_slot_passes(self):
        check_slot(_slot(time(9, 0)), [_window(time(9), time(17))], [])

    def test_unavailable_slot_warns_with_details(self):
        with pytest.raises(UnavailableWarning) as exc_info:
            check_slot(_slot(time(18, 0)), [_window(time(9), time(17))], [])

        assert exc_info.value.code == "INSTRUCTOR_UNAVAILABLE"
        assert exc_info.value.details["date"] == "2025-01-06"
        assert exc_info.value.details["window"] == "18:00-18:45"

    def test_override_accepts_unavailable_slot(self):
        check_slot(_slot(time(18, 0)), [], [], override_unavailable=True)

    def test_blockout_wins_over_availability_and_override(self):
        with pytest.raises(BlockedTimeException) as exc_info:
            check_slot(
                _slot(time(9, 0)),
                [_window(time(9), time(17))],
                [_blockout(time(9), time(12))],
                override_unavailable=True,
            )

        assert exc_info.value.code == "BLOCKED_TIME"
        assert exc_info.value.details["reason"] == "Dentist"
