# swimdesk/services/enrollment_service.py
"""
Enrollment Service for SwimDesk

Seats and credits. Every booking either debits one credit or is an explicit
pay-per-lesson drop-in; cancelling a whole session refunds the credit of
every seat that was paid with one. Drop-ins paid nothing and get nothing
back. The capacity check and the credit debit both happen
inside storage primitives, and the two run in one unit of work.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional

from ..core.enums import UserRole
from ..core.exceptions import (
    BusinessRuleException,
    InsufficientCreditsException,
    NotFoundException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.contracts import DataStore
from ..schemas.session import CancellationResult, Enrollment, LessonSession
from ..schemas.user import User
from .base import BaseService
from .query_cache import QueryCache, QueryKeys
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


class EnrollmentService(BaseService):
    """Service layer for booking seats and refunding credits."""

    def __init__(
        self,
        store: DataStore,
        cache: Optional[QueryCache] = None,
        settings_service: Optional[SettingsService] = None,
    ):
        super().__init__(store, cache)
        self.settings_service = settings_service or SettingsService(store, cache)

    # ==========================================
    # Enroll
    # ==========================================

    @BaseService.measure_operation("enroll")
    def enroll(
        self,
        session_id: str,
        user_id: str,
        pay_per_lesson: bool = False,
        now: Optional[datetime] = None,
    ) -> LessonSession:
        """
        Book ``user_id`` into a session.

        Already being enrolled is a no-op. Otherwise the seat is taken and,
        unless ``pay_per_lesson`` is set, one credit is debited.

        Raises:
            MaintenanceModeException: While bookings are disabled
            NotFoundException: If the session or user does not exist
            SessionFullException: If the session is at capacity
            InsufficientCreditsException: If a credit booking finds no credits
        """
        self.settings_service.ensure_bookings_open()
        with self.transaction():
            session = self.enroll_in_transaction(session_id, user_id, pay_per_lesson, now)
        self.invalidate_after_roster_change(session, user_id)
        return session

    def enroll_in_transaction(
        self,
        session_id: str,
        user_id: str,
        pay_per_lesson: bool = False,
        now: Optional[datetime] = None,
    ) -> LessonSession:
        """Enrollment writes without cache invalidation; callers own the transaction."""
        session = self._require_session(session_id)
        user = self._require_user(user_id)
        if user_id in session.enrolled_user_ids:
            self.logger.info(f"User {user_id} already enrolled in session {session_id}")
            return session

        self._ensure_not_started(session, now)
        if UserRole(user.role) != UserRole.CLIENT:
            raise BusinessRuleException(
                "Only clients can be booked into a session",
                code="NOT_A_CLIENT",
                details={"user_id": user_id, "role": user.role},
            )
        if not pay_per_lesson and user.package_credits < 1:
            raise InsufficientCreditsException(user_id, user.package_credits)

        with self.transaction():
            enrollment = self.store.sessions.add_enrollment(
                session_id, user_id, credit_used=not pay_per_lesson
            )
            if enrollment is not None and enrollment.credit_used:
                self.store.users.increment_credits(user_id, -1)

        if enrollment is not None:
            prometheus_metrics.inc_enrollment(enrollment.credit_used)
            self.logger.info(
                f"Enrolled user {user_id} in session {session_id} "
                f"({'credit' if enrollment.credit_used else 'drop-in'})"
            )
        return self._require_session(session_id)

    # ==========================================
    # Cancellation
    # ==========================================

    @BaseService.measure_operation("cancel_enrollment")
    def cancel_enrollment(
        self, session_id: str, user_id: str, now: Optional[datetime] = None
    ) -> CancellationResult:
        """
        Give up a seat.

        The credit comes back only when the seat was paid with one and the
        cancellation is at least ``cancellation_hours`` before the start.

        Raises:
            NotFoundException: If the session does not exist or the user is
                not enrolled in it
            BusinessRuleException: If the session has already started
        """
        session = self._require_session(session_id)
        moment = ensure_utc(now) if now is not None else utc_now()
        self._ensure_not_started(session, moment)
        window = timedelta(hours=self.settings_service.get_settings().cancellation_hours)

        with self.transaction():
            enrollment = self.store.sessions.remove_enrollment(session_id, user_id)
            if enrollment is None:
                raise NotFoundException(
                    "Enrollment not found",
                    code="ENROLLMENT_NOT_FOUND",
                    details={"session_id": session_id, "user_id": user_id},
                )
            refunded = enrollment.credit_used and session.start_time - moment >= window
            if refunded:
                balance = self.store.users.increment_credits(user_id, 1)
            else:
                balance = self._require_user(user_id).package_credits

        if refunded:
            prometheus_metrics.inc_credits_refunded("self_cancel", 1)
        self.logger.info(
            f"User {user_id} cancelled session {session_id} (refunded={refunded})"
        )
        self.invalidate_after_roster_change(session, user_id)
        return CancellationResult(
            session_id=session_id, user_id=user_id, refunded=refunded, package_credits=balance
        )

    @BaseService.measure_operation("cancel_session")
    def cancel_session(self, session_id: str) -> List[str]:
        """
        Delete a session, refunding one credit to every client whose seat
        was paid with a credit.

        Idempotent: an absent session refunds nobody.

        Returns:
            Ids of the users who were refunded
        """
        with self.transaction():
            refunded = self.cancel_session_in_transaction(session_id)
        if refunded is None:
            return []
        self.invalidate_after_session_removed()
        return refunded

    def cancel_session_in_transaction(self, session_id: str) -> Optional[List[str]]:
        """Session removal without cache invalidation. None when it did not exist."""
        session = self.store.sessions.get_by_id(session_id)
        if session is None:
            return None
        refunded: List[str] = []
        with self.transaction():
            for enrollment in self.store.sessions.list_enrollments(session_id):
                if not enrollment.credit_used:
                    continue
                user = self.store.users.get_by_id(enrollment.user_id)
                if user is None or UserRole(user.role) != UserRole.CLIENT:
                    continue
                self.store.users.increment_credits(user.id, 1)
                refunded.append(user.id)
            self.store.sessions.delete(session_id)
        if refunded:
            prometheus_metrics.inc_credits_refunded("session_cancelled", len(refunded))
        self.logger.info(f"Cancelled session {session_id}, refunded {len(refunded)} client(s)")
        return refunded

    def list_enrollments(self, session_id: str) -> List[Enrollment]:
        self._require_session(session_id)
        return self.store.sessions.list_enrollments(session_id)

    # ==========================================
    # Cache invalidation
    # ==========================================

    def invalidate_after_roster_change(self, session: LessonSession, user_id: str) -> None:
        self.invalidate_cache(QueryKeys.SESSIONS, QueryKeys.USERS)
        self.invalidate_pattern(QueryKeys.instructor(session.instructor_id, "*"))
        self.invalidate_cache(QueryKeys.instructor(session.instructor_id))
        self.invalidate_pattern(QueryKeys.user(user_id, "*"))
        self.invalidate_cache(QueryKeys.user(user_id))

    def invalidate_after_session_removed(self) -> None:
        self.invalidate_cache(QueryKeys.SESSIONS, QueryKeys.USERS)
        self.invalidate_pattern(QueryKeys.all_instructors())
        self.invalidate_pattern(QueryKeys.all_users())

    # ==========================================
    # Helpers
    # ==========================================

    def _require_session(self, session_id: str) -> LessonSession:
        session = self.store.sessions.get_by_id(session_id)
        if session is None:
            raise NotFoundException(
                "Session not found", code="SESSION_NOT_FOUND", details={"id": session_id}
            )
        return session

    def _require_user(self, user_id: str) -> User:
        user = self.store.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"id": user_id})
        return user

    @staticmethod
    def _ensure_not_started(session: LessonSession, now: Optional[datetime] = None) -> None:
        moment = ensure_utc(now) if now is not None else utc_now()
        if session.start_time <= moment:
            raise BusinessRuleException(
                "This session has already started",
                code="SESSION_STARTED",
                details={"session_id": session.id},
            )
