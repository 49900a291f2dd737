# swimdesk/repositories/session_repository.py
"""
Session Repository for the SQL backend

Sessions and their enrollments. A session's ``enrolled_user_ids`` is the
ordered list of its enrollment rows, and only the enrollment primitives
change it; ``update`` rewrites the schedule columns and leaves the roster
alone. Capacity is checked while holding a row lock on the session so two
concurrent bookings cannot both take the last seat.
"""

import datetime as dt
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    ConflictException,
    NotFoundException,
    RepositoryException,
    SessionFullException,
)
from ..core.timezone_utils import ensure_utc
from ..models.session import EnrollmentModel, SessionModel
from ..schemas.session import Enrollment, LessonSession
from .base_repository import BaseRepository
from .contracts import ISessionRepository
from .mappers import RowMapper

logger = logging.getLogger(__name__)

_ENROLLMENT_MAPPER = RowMapper(Enrollment)


class SessionRepository(BaseRepository[LessonSession], ISessionRepository):
    entity_label = "Session"

    def __init__(self, db: Session):
        super().__init__(db, SessionModel, RowMapper(LessonSession, skip=("enrolled_user_ids",)))

    def _to_entity(self, row: SessionModel) -> LessonSession:
        return self.mapper.to_entity(
            row, enrolled_user_ids=[enrollment.user_id for enrollment in row.enrollments]
        )

    def _build_query(self):
        return self.db.query(SessionModel).order_by(SessionModel.start_time, SessionModel.id)

    # ==========================================
    # Finders
    # ==========================================

    def list_for_instructor(self, instructor_id: str) -> List[LessonSession]:
        query = self._build_query().filter(SessionModel.instructor_id == instructor_id)
        return [self._to_entity(row) for row in self._execute_query(query)]

    def list_for_user(self, user_id: str) -> List[LessonSession]:
        query = (
            self._build_query()
            .join(EnrollmentModel, EnrollmentModel.session_id == SessionModel.id)
            .filter(EnrollmentModel.user_id == user_id)
        )
        return [self._to_entity(row) for row in self._execute_query(query)]

    def list_for_class_type(
        self, class_type_id: str, starting_after: Optional[dt.datetime] = None
    ) -> List[LessonSession]:
        query = self._build_query().filter(SessionModel.class_type_id == class_type_id)
        if starting_after is not None:
            query = query.filter(SessionModel.start_time > ensure_utc(starting_after))
        return [self._to_entity(row) for row in self._execute_query(query)]

    # ==========================================
    # Enrollment primitives
    # ==========================================

    def add_enrollment(
        self, session_id: str, user_id: str, credit_used: bool = False
    ) -> Optional[Enrollment]:
        try:
            with self.transaction():
                session_row = self._get_row(session_id, for_update=True)
                if session_row is None:
                    raise NotFoundException(
                        "Session not found", code="NOT_FOUND", details={"id": session_id}
                    )
                if self._find_enrollment_row(session_id, user_id) is not None:
                    return None
                enrolled = self._execute_scalar(
                    self.db.query(func.count(EnrollmentModel.id)).filter(
                        EnrollmentModel.session_id == session_id
                    )
                )
                if enrolled >= session_row.capacity:
                    raise SessionFullException(session_id, session_row.capacity)
                row = EnrollmentModel(
                    session_id=session_id, user_id=user_id, credit_used=credit_used
                )
                session_row.enrollments.append(row)
                self.db.flush()
                enrollment = _ENROLLMENT_MAPPER.to_entity(row)
        except IntegrityError as exc:
            self.logger.error("Integrity error enrolling %s in %s: %s", user_id, session_id, exc)
            raise ConflictException(
                "Enrollment conflicts with existing data",
                code="INTEGRITY_CONFLICT",
                details={"session_id": session_id, "user_id": user_id},
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Error enrolling %s in %s: %s", user_id, session_id, exc)
            raise RepositoryException(f"Failed to enroll: {exc}") from exc
        return enrollment

    def remove_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        try:
            with self.transaction():
                row = self._find_enrollment_row(session_id, user_id)
                if row is None:
                    return None
                enrollment = _ENROLLMENT_MAPPER.to_entity(row)
                session_row = self._get_row(session_id)
                if session_row is not None and row in session_row.enrollments:
                    session_row.enrollments.remove(row)
                else:
                    self.db.delete(row)
                self.db.flush()
        except SQLAlchemyError as exc:
            self.logger.error("Error removing %s from %s: %s", user_id, session_id, exc)
            raise RepositoryException(f"Failed to remove enrollment: {exc}") from exc
        return enrollment

    def get_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        row = self._find_enrollment_row(session_id, user_id)
        return _ENROLLMENT_MAPPER.to_entity(row) if row is not None else None

    def list_enrollments(self, session_id: str) -> List[Enrollment]:
        query = (
            self.db.query(EnrollmentModel)
            .filter(EnrollmentModel.session_id == session_id)
            .order_by(EnrollmentModel.created_at, EnrollmentModel.id)
        )
        return [_ENROLLMENT_MAPPER.to_entity(row) for row in self._execute_query(query)]

    # ==========================================
    # Hooks
    # ==========================================

    def _after_create(self, row: SessionModel, entity: LessonSession) -> None:
        for user_id in entity.enrolled_user_ids:
            row.enrollments.append(EnrollmentModel(session_id=row.id, user_id=user_id))
        self.db.flush()

    def _find_enrollment_row(self, session_id: str, user_id: str) -> Optional[EnrollmentModel]:
        try:
            return (
                self.db.query(EnrollmentModel)
                .filter(
                    EnrollmentModel.session_id == session_id,
                    EnrollmentModel.user_id == user_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding enrollment {session_id}/{user_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve enrollment: {str(e)}")
