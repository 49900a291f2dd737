# tests/unit/services/test_scheduling_service.py
"""
Tests for SchedulingService.

2030-01-07 is a Monday; the demo instructor is available on Mondays from
09:00 to 17:00 studio time.
"""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from swimdesk.core.enums import UserRole
from swimdesk.core.exceptions import (
    BlockedTimeException,
    NotFoundException,
    UnavailableWarning,
    ValidationException,
)
from swimdesk.core.ulid_helper import generate_ulid
from swimdesk.schemas.availability import Availability, Blockout
from swimdesk.schemas.session import ScheduleSessionRequest, SeriesRequest
from swimdesk.services import scheduling_service
from swimdesk.services.enrollment_service import EnrollmentService
from swimdesk.services.scheduling_service import SchedulingService
from tests.conftest import make_settings
from tests.factories import create_class_type, create_session, create_user

MONDAY = date(2030, 1, 7)


@pytest.fixture
def calendar(store):
    instructor = create_user(store, "i1", role=UserRole.INSTRUCTOR)
    create_user(store, "u1", credits=3)
    class_type = create_class_type(store, "c1", duration_minutes=45)
    with store.transaction():
        store.availability.create(
            Availability(instructor_id="i1", day_of_week=1, start_time=time(9), end_time=time(17))
        )
    return instructor, class_type


@pytest.fixture
def service(store, settings, query_cache, calendar):
    return SchedulingService(store, settings, query_cache)


def _request(**overrides) -> ScheduleSessionRequest:
    values = {
        "class_type_id": "c1",
        "instructor_id": "i1",
        "date": MONDAY,
        "start_time": time(10, 0),
    }
    values.update(overrides)
    return ScheduleSessionRequest(**values)


def _block(store, on: date, start: time, end: time) -> None:
    with store.transaction():
        store.blockouts.create(
            Blockout(instructor_id="i1", date=on, start_time=start, end_time=end, reason="Training")
        )


class TestScheduleSession:
    def test_inside_availability(self, service):
        session = service.schedule_session(_request())

        assert session.start_time == datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)
        assert session.end_time == datetime(2030, 1, 7, 10, 45, tzinfo=timezone.utc)
        assert session.capacity == 25
        assert session.enrolled_user_ids == []
        assert [s.id for s in service.list_sessions()] == [session.id]

    def test_outside_availability_needs_override(self, store, service):
        with pytest.raises(UnavailableWarning) as exc_info:
            service.schedule_session(_request(start_time=time(16, 30)))

        assert exc_info.value.details["window"] == "16:30-17:15"
        assert store.sessions.list() == []

        session = service.schedule_session(_request(start_time=time(16, 30), override_unavailable=True))
        assert session.start_time.hour == 16

    def test_blockout_always_rejects(self, store, service):
        _block(store, MONDAY, time(10, 30), time(11, 0))

        with pytest.raises(BlockedTimeException):
            service.schedule_session(_request(override_unavailable=True))

        assert store.sessions.list() == []

    def test_blockout_minutes_are_respected(self, store, service):
        """A blockout ending at 10:00 leaves a 10:00 start free."""
        _block(store, MONDAY, time(9, 0), time(10, 0))

        assert service.schedule_session(_request()).start_time.minute == 0

    def test_explicit_capacity_and_pool_limit(self, service):
        assert service.schedule_session(_request(capacity=6)).capacity == 6

        with pytest.raises(ValidationException) as exc_info:
            service.schedule_session(_request(capacity=26, start_time=time(12)))

        assert exc_info.value.code == "CAPACITY_EXCEEDS_POOL"

    def test_class_capacity_is_the_default(self, store, settings, query_cache, calendar):
        create_class_type(store, "c2", capacity=8)
        service = SchedulingService(store, settings, query_cache)

        assert service.schedule_session(_request(class_type_id="c2")).capacity == 8

    def test_unknown_references(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            service.schedule_session(_request(class_type_id="missing"))
        assert exc_info.value.code == "CLASS_TYPE_NOT_FOUND"

        with pytest.raises(NotFoundException) as exc_info:
            service.schedule_session(_request(instructor_id="u1"))
        assert exc_info.value.code == "INSTRUCTOR_NOT_FOUND"

    def test_studio_time_is_stored_as_utc(self, store, query_cache, calendar):
        service = SchedulingService(store, make_settings(studio_timezone="America/New_York"), query_cache)

        session = service.schedule_session(_request())

        assert session.start_time == datetime(2030, 1, 7, 15, 0, tzinfo=timezone.utc)


    def test_blockout_added_while_scheduling_is_honoured(self, store, service, monkeypatch):
        build = service._build_session

        def build_after_blockout(*args, **kwargs):
            _block(store, MONDAY, time(9), time(11))
            return build(*args, **kwargs)

        monkeypatch.setattr(service, "_build_session", build_after_blockout)

        with pytest.raises(BlockedTimeException):
            service.schedule_session(_request())

        assert store.sessions.list() == []


class TestWeeklySeries:
    def test_creates_linked_weekly_sessions(self, service):
        result = service.schedule_weekly_series(SeriesRequest(**_request().model_dump(), occurrences=3))

        starts = [s.start_time for s in result.sessions]
        assert len(result.sessions) == 3
        assert starts[1] - starts[0] == timedelta(weeks=1)
        assert {s.recurring_group_id for s in result.sessions} == {result.recurring_group_id}
        assert len(service.list_recurring_group(result.recurring_group_id)) == 3

    def test_one_blocked_week_rejects_the_series(self, store, service):
        _block(store, MONDAY + timedelta(weeks=1), time(8), time(12))

        with pytest.raises(BlockedTimeException):
            service.schedule_weekly_series(SeriesRequest(**_request().model_dump(), occurrences=3))

        assert store.sessions.list() == []

    def test_unavailable_weeks_are_reported_together(self, store, service):
        request = SeriesRequest(**_request(start_time=time(18)).model_dump(), occurrences=2)

        with pytest.raises(UnavailableWarning) as exc_info:
            service.schedule_weekly_series(request)

        assert [o["date"] for o in exc_info.value.details["occurrences"]] == [
            "2030-01-07",
            "2030-01-14",
        ]
        assert store.sessions.list() == []

    def test_blockout_added_while_scheduling_a_series_is_honoured(self, store, service, monkeypatch):
        def ulid_after_blockout():
            _block(store, MONDAY + timedelta(weeks=2), time(9), time(11))
            return generate_ulid()

        monkeypatch.setattr(scheduling_service, "generate_ulid", ulid_after_blockout)

        with pytest.raises(BlockedTimeException):
            service.schedule_weekly_series(SeriesRequest(**_request().model_dump(), occurrences=3))

        assert store.sessions.list() == []


class TestReschedule:
    def test_moves_session_and_keeps_roster(self, store, service, calendar):
        instructor, class_type = calendar
        session = create_session(
            store,
            class_type,
            instructor,
            start=datetime(2030, 1, 7, 10, tzinfo=timezone.utc),
            enrolled=["u1"],
        )

        moved = service.reschedule_session(session.id, _request(start_time=time(13)))

        assert moved.start_time.hour == 13
        assert moved.enrolled_user_ids == ["u1"]

    def test_capacity_cannot_drop_below_roster(self, store, service, calendar):
        instructor, class_type = calendar
        create_user(store, "u2")
        session = create_session(store, class_type, instructor, enrolled=["u1", "u2"])

        with pytest.raises(ValidationException) as exc_info:
            service.reschedule_session(session.id, _request(capacity=1))

        assert exc_info.value.code == "CAPACITY_BELOW_ENROLLMENT"

    def test_booking_made_during_the_move_keeps_its_seat(self, store, service, calendar, monkeypatch):
        instructor, class_type = calendar
        create_user(store, "u2", credits=2)
        session = create_session(store, class_type, instructor, enrolled=["u1"])
        enrollment_service = EnrollmentService(store, settings_service=service.settings_service)
        check = service._check

        def check_then_book(slot, override_unavailable):
            check(slot, override_unavailable)
            enrollment_service.enroll_in_transaction(session.id, "u2")

        monkeypatch.setattr(service, "_check", check_then_book)

        moved = service.reschedule_session(session.id, _request(start_time=time(13)))

        assert moved.enrolled_user_ids == ["u1", "u2"]
        assert store.sessions.get_by_id(session.id).enrolled_user_ids == ["u1", "u2"]
        assert store.sessions.get_enrollment(session.id, "u2").credit_used is True
        assert store.users.get_by_id("u2").package_credits == 1

    def test_capacity_is_checked_against_the_current_roster(
        self, store, service, calendar, monkeypatch
    ):
        instructor, class_type = calendar
        create_user(store, "u2", credits=2)
        session = create_session(store, class_type, instructor, enrolled=["u1"])
        enrollment_service = EnrollmentService(store, settings_service=service.settings_service)
        get_session = service.get_session

        def read_then_book(session_id):
            found = get_session(session_id)
            enrollment_service.enroll(session_id, "u2")
            return found

        monkeypatch.setattr(service, "get_session", read_then_book)

        with pytest.raises(ValidationException) as exc_info:
            service.reschedule_session(session.id, _request(capacity=1))

        assert exc_info.value.details == {"capacity": 1, "enrolled": 2}
        assert store.sessions.get_by_id(session.id).capacity == 4
        assert store.sessions.get_by_id(session.id).enrolled_user_ids == ["u1", "u2"]


class TestReads:
    def test_bookable_sessions_are_future_and_not_full(self, store, service, calendar):
        instructor, class_type = calendar
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        past = create_session(store, class_type, instructor, start=now - timedelta(days=1))
        full = create_session(
            store, class_type, instructor, start=now + timedelta(days=1), capacity=1, enrolled=["u1"]
        )
        open_seat = create_session(store, class_type, instructor, start=now + timedelta(days=2))

        bookable = service.list_bookable("c1", now=now)

        assert [s.id for s in bookable] == [open_seat.id]
        assert past.id not in [s.id for s in bookable]
        assert full.id not in [s.id for s in bookable]

    def test_cached_listing_sees_cancellation(self, store, settings, query_cache, service, calendar):
        session = service.schedule_session(_request())
        assert len(service.list_sessions()) == 1

        EnrollmentService(store, query_cache).cancel_session(session.id)

        assert service.list_sessions() == []
        assert service.find_session(session.id) is None
        with pytest.raises(NotFoundException):
            service.get_session(session.id)
