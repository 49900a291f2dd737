# swimdesk/services/scheduling_service.py
"""
Scheduling Service for SwimDesk

Puts sessions on the calendar. A proposed session is checked against the
instructor's blockouts (hard stop) and weekly availability (confirmable
warning) in studio wall-clock time, then stored with UTC instants.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Dict, Iterable, List, Optional

from ..core.config import Settings
from ..core.enums import UserRole
from ..core.exceptions import (
    BlockedTimeException,
    NotFoundException,
    UnavailableWarning,
    ValidationException,
)
from ..core.timezone_utils import studio_to_utc, utc_now
from ..core.ulid_helper import generate_ulid
from ..domain.scheduling_rules import SlotRequest, check_slot
from ..repositories.contracts import DataStore
from ..schemas.availability import Blockout
from ..schemas.catalog import ClassType
from ..schemas.session import (
    LessonSession,
    ScheduleSessionRequest,
    SeriesRequest,
    SeriesResponse,
)
from ..schemas.user import User
from .base import BaseService
from .query_cache import QueryCache, QueryKeys
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


class SchedulingService(BaseService):
    """Creates, edits and lists lesson sessions."""

    def __init__(
        self,
        store: DataStore,
        config: Settings,
        cache: Optional[QueryCache] = None,
        settings_service: Optional[SettingsService] = None,
    ):
        super().__init__(store, cache)
        self.config = config
        self.settings_service = settings_service or SettingsService(store, cache)

    # ==========================================
    # Scheduling
    # ==========================================

    @BaseService.measure_operation("schedule_session")
    def schedule_session(self, request: ScheduleSessionRequest) -> LessonSession:
        """
        Schedule a single session.

        Raises:
            NotFoundException: Unknown class type or instructor
            BlockedTimeException: The slot overlaps a blockout
            UnavailableWarning: The slot is outside availability and
                ``override_unavailable`` is not set
            ValidationException: Capacity above the pool capacity
        """
        class_type = self._require_class_type(request.class_type_id)
        self._require_instructor(request.instructor_id)
        capacity = self.settings_service.resolve_capacity(class_type, request.capacity)

        slot = self._slot(request.instructor_id, request.date, request.start_time, class_type)
        session = self._build_session(request, request.date, class_type, capacity)
        with self.transaction():
            self._require_instructor(request.instructor_id, lock=True)
            self._check(slot, request.override_unavailable)
            created = self.store.sessions.create(session)
        self.logger.info(
            f"Scheduled session {created.id} for instructor {created.instructor_id} "
            f"at {created.start_time.isoformat()}"
        )
        self.invalidate_after_schedule_change(created.instructor_id)
        return created

    @BaseService.measure_operation("schedule_weekly_series")
    def schedule_weekly_series(self, request: SeriesRequest) -> SeriesResponse:
        """
        Schedule ``occurrences`` sessions one week apart.

        Every occurrence is validated before anything is stored. Any blocked
        occurrence rejects the whole series; unavailable occurrences are
        reported together and need the override.
        """
        class_type = self._require_class_type(request.class_type_id)
        self._require_instructor(request.instructor_id)
        capacity = self.settings_service.resolve_capacity(class_type, request.capacity)

        dates = [request.date + timedelta(weeks=week) for week in range(request.occurrences)]
        slots = [self._slot(request.instructor_id, day, request.start_time, class_type) for day in dates]

        group_id = generate_ulid()
        created: List[LessonSession] = []
        with self.transaction():
            self._require_instructor(request.instructor_id, lock=True)
            self._check_series(request.instructor_id, slots, dates, request.override_unavailable)
            for day in dates:
                session = self._build_session(request, day, class_type, capacity, group_id)
                created.append(self.store.sessions.create(session))
        self.logger.info(
            f"Scheduled series {group_id}: {len(created)} sessions for instructor {request.instructor_id}"
        )
        self.invalidate_after_schedule_change(request.instructor_id)
        return SeriesResponse(recurring_group_id=group_id, sessions=created)

    @BaseService.measure_operation("reschedule_session")
    def reschedule_session(self, session_id: str, request: ScheduleSessionRequest) -> LessonSession:
        """
        Move or resize an existing session, keeping its roster.

        The new slot is validated like a new session; the capacity may not drop
        below the number of enrolled clients. The session is re-read under a
        lock, so a booking that lands while the request is in flight is
        counted against the new capacity and keeps its seat.
        """
        self.get_session(session_id)
        class_type = self._require_class_type(request.class_type_id)
        self._require_instructor(request.instructor_id)
        slot = self._slot(request.instructor_id, request.date, request.start_time, class_type)
        start = studio_to_utc(request.date, request.start_time, self.config.studio_timezone)

        with self.transaction():
            existing = self.store.sessions.get_for_update(session_id)
            if existing is None:
                raise NotFoundException(
                    "Session not found", code="SESSION_NOT_FOUND", details={"id": session_id}
                )
            capacity = self.settings_service.resolve_capacity(
                class_type, request.capacity or existing.capacity
            )
            enrolled = len(existing.enrolled_user_ids)
            if capacity < enrolled:
                raise ValidationException(
                    "Capacity cannot be lower than the number of enrolled clients",
                    code="CAPACITY_BELOW_ENROLLMENT",
                    details={"capacity": capacity, "enrolled": enrolled},
                )
            self._require_instructor(request.instructor_id, lock=True)
            self._check(slot, request.override_unavailable)
            saved = self.store.sessions.update(
                existing.model_copy(
                    update={
                        "class_type_id": class_type.id,
                        "instructor_id": request.instructor_id,
                        "start_time": start,
                        "end_time": start + timedelta(minutes=class_type.duration_minutes),
                        "capacity": capacity,
                    }
                )
            )
        self.logger.info(f"Rescheduled session {session_id} to {saved.start_time.isoformat()}")
        self.invalidate_after_schedule_change(existing.instructor_id, saved.instructor_id)
        self.invalidate_pattern(QueryKeys.all_users())
        return saved

    # ==========================================
    # Reads
    # ==========================================

    @BaseService.measure_operation("list_sessions")
    def list_sessions(self) -> List[LessonSession]:
        return self.cached_query(QueryKeys.SESSIONS, self.store.sessions.list)

    def find_session(self, session_id: str) -> Optional[LessonSession]:
        return self.store.sessions.get_by_id(session_id)

    def get_session(self, session_id: str) -> LessonSession:
        session = self.find_session(session_id)
        if session is None:
            raise NotFoundException(
                "Session not found", code="SESSION_NOT_FOUND", details={"id": session_id}
            )
        return session

    @BaseService.measure_operation("list_bookable")
    def list_bookable(self, class_type_id: str, now: Optional[datetime] = None) -> List[LessonSession]:
        """Future sessions of a class type that still have a free seat."""
        self._require_class_type(class_type_id)
        cutoff = now or utc_now()
        sessions = self.store.sessions.list_for_class_type(class_type_id, starting_after=cutoff)
        return [session for session in sessions if not session.is_full]

    def list_for_instructor(self, instructor_id: str) -> List[LessonSession]:
        return self.cached_query(
            QueryKeys.instructor(instructor_id, "sessions"),
            lambda: self.store.sessions.list_for_instructor(instructor_id),
        )

    def list_for_user(self, user_id: str) -> List[LessonSession]:
        return self.cached_query(
            QueryKeys.user(user_id, "sessions"),
            lambda: self.store.sessions.list_for_user(user_id),
        )

    def list_recurring_group(self, recurring_group_id: str) -> List[LessonSession]:
        return [s for s in self.list_sessions() if s.recurring_group_id == recurring_group_id]

    # ==========================================
    # Helpers
    # ==========================================

    def invalidate_after_schedule_change(self, *instructor_ids: str) -> None:
        self.invalidate_cache(QueryKeys.SESSIONS)
        for instructor_id in set(instructor_ids):
            self.invalidate_cache(QueryKeys.instructor(instructor_id))
            self.invalidate_pattern(QueryKeys.instructor(instructor_id, "*"))

    def _check(self, slot: SlotRequest, override_unavailable: bool) -> None:
        availability = self.store.availability.list_for_instructor(slot.instructor_id)
        blockouts = self._blockouts_for(slot.instructor_id, slot.dates)
        try:
            check_slot(slot, availability, blockouts, override_unavailable)
        except BlockedTimeException:
            self.logger.info(f"Rejected {slot.describe()} on {slot.start.date()}: blocked out")
            raise

    def _check_series(
        self,
        instructor_id: str,
        slots: List[SlotRequest],
        dates: List[date],
        override_unavailable: bool,
    ) -> None:
        """Blocked occurrences fail first; unavailable ones are reported together."""
        availability = self.store.availability.list_for_instructor(instructor_id)
        blockouts = self._blockouts_for(instructor_id, dates)

        for slot in slots:
            check_slot(slot, availability, blockouts, override_unavailable=True)
        if override_unavailable:
            return

        unavailable: List[Dict[str, str]] = []
        for slot in slots:
            try:
                check_slot(slot, availability, blockouts)
            except UnavailableWarning as warning:
                unavailable.append(
                    {"date": warning.details["date"], "window": warning.details["window"]}
                )
        if unavailable:
            warning = UnavailableWarning(
                instructor_id=instructor_id,
                date=unavailable[0]["date"],
                window=unavailable[0]["window"],
            )
            warning.details["occurrences"] = unavailable
            raise warning

    def _blockouts_for(self, instructor_id: str, dates: Iterable[date]) -> List[Blockout]:
        blockouts: List[Blockout] = []
        for day in sorted(set(dates)):
            blockouts.extend(self.store.blockouts.list_for_instructor(instructor_id, on_date=day))
        return blockouts

    @staticmethod
    def _slot(instructor_id: str, day: date, start: time, class_type: ClassType) -> SlotRequest:
        return SlotRequest(
            instructor_id=instructor_id,
            start=datetime.combine(day, start.replace(tzinfo=None)),
            duration_minutes=class_type.duration_minutes,
        )

    def _build_session(
        self,
        request: ScheduleSessionRequest,
        day: date,
        class_type: ClassType,
        capacity: int,
        recurring_group_id: Optional[str] = None,
    ) -> LessonSession:
        start = studio_to_utc(day, request.start_time, self.config.studio_timezone)
        return LessonSession(
            class_type_id=class_type.id,
            instructor_id=request.instructor_id,
            start_time=start,
            end_time=start + timedelta(minutes=class_type.duration_minutes),
            capacity=capacity,
            recurring_group_id=recurring_group_id,
        )

    def _require_class_type(self, class_type_id: str) -> ClassType:
        class_type = self.store.class_types.get_by_id(class_type_id)
        if class_type is None:
            raise NotFoundException(
                "Class type not found", code="CLASS_TYPE_NOT_FOUND", details={"id": class_type_id}
            )
        return class_type

    def _require_instructor(self, instructor_id: str, lock: bool = False) -> User:
        """With ``lock``, holds the instructor row so slot checks and writes serialise."""
        if lock:
            instructor = self.store.users.get_for_update(instructor_id)
        else:
            instructor = self.store.users.get_by_id(instructor_id)
        if instructor is None or UserRole(instructor.role) != UserRole.INSTRUCTOR:
            raise NotFoundException(
                "Instructor not found", code="INSTRUCTOR_NOT_FOUND", details={"id": instructor_id}
            )
        return instructor
