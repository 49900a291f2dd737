# swimdesk/services/availability_service.py
"""
Availability Service for SwimDesk

Instructors' weekly availability windows and one-off blockouts, plus the
combined schedule view (availability, blockouts and sessions taught).
"""

import logging
from typing import List

from ..core.enums import UserRole
from ..core.exceptions import NotFoundException
from ..schemas.availability import (
    Availability,
    AvailabilityInput,
    Blockout,
    BlockoutInput,
    InstructorSchedule,
)
from .base import BaseService
from .query_cache import QueryKeys

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Service layer for instructor availability management."""

    # ==========================================
    # Weekly availability
    # ==========================================

    @BaseService.measure_operation("list_availability")
    def list_availability(self, instructor_id: str) -> List[Availability]:
        return self.cached_query(
            QueryKeys.instructor(instructor_id, "availability"),
            lambda: self.store.availability.list_for_instructor(instructor_id),
        )

    @BaseService.measure_operation("add_availability")
    def add_availability(self, instructor_id: str, window: AvailabilityInput) -> Availability:
        with self.transaction():
            self._require_instructor(instructor_id, lock=True)
            created = self.store.availability.create(
                Availability(instructor_id=instructor_id, **window.model_dump())
            )
        self.logger.info(
            f"Added availability {created.id} for instructor {instructor_id} "
            f"(day {created.day_of_week} {created.start_time}-{created.end_time})"
        )
        self._invalidate(instructor_id)
        return created

    @BaseService.measure_operation("delete_availability")
    def delete_availability(self, instructor_id: str, availability_id: str) -> bool:
        """Remove a window. Returns False when the instructor has no such window."""
        existing = self.store.availability.get_by_id(availability_id)
        if existing is None or existing.instructor_id != instructor_id:
            return False
        with self.transaction():
            deleted = self.store.availability.delete(availability_id)
        self._invalidate(instructor_id)
        return deleted

    # ==========================================
    # Blockouts
    # ==========================================

    @BaseService.measure_operation("list_blockouts")
    def list_blockouts(self, instructor_id: str) -> List[Blockout]:
        return self.cached_query(
            QueryKeys.instructor(instructor_id, "blockouts"),
            lambda: self.store.blockouts.list_for_instructor(instructor_id),
        )

    @BaseService.measure_operation("add_blockout")
    def add_blockout(self, instructor_id: str, blockout: BlockoutInput) -> Blockout:
        """
        Block out a dated window.

        Sessions already scheduled inside the window are left alone; the
        blockout only stops new ones. The instructor row is locked while the
        blockout is written, the same lock scheduling takes for its slot
        check, so the two never interleave.
        """
        with self.transaction():
            self._require_instructor(instructor_id, lock=True)
            created = self.store.blockouts.create(
                Blockout(instructor_id=instructor_id, **blockout.model_dump())
            )
        self.logger.info(f"Added blockout {created.id} for instructor {instructor_id} on {created.date}")
        self._invalidate(instructor_id)
        return created

    @BaseService.measure_operation("delete_blockout")
    def delete_blockout(self, instructor_id: str, blockout_id: str) -> bool:
        existing = self.store.blockouts.get_by_id(blockout_id)
        if existing is None or existing.instructor_id != instructor_id:
            return False
        with self.transaction():
            deleted = self.store.blockouts.delete(blockout_id)
        self._invalidate(instructor_id)
        return deleted

    # ==========================================
    # Schedule view
    # ==========================================

    @BaseService.measure_operation("instructor_schedule")
    def instructor_schedule(self, instructor_id: str) -> InstructorSchedule:
        self._require_instructor(instructor_id)

        def load() -> InstructorSchedule:
            return InstructorSchedule(
                instructor_id=instructor_id,
                availability=self.store.availability.list_for_instructor(instructor_id),
                blockouts=self.store.blockouts.list_for_instructor(instructor_id),
                sessions=self.store.sessions.list_for_instructor(instructor_id),
            )

        return self.cached_query(QueryKeys.instructor(instructor_id), load)

    def _invalidate(self, instructor_id: str) -> None:
        self.invalidate_cache(QueryKeys.instructor(instructor_id))
        self.invalidate_pattern(QueryKeys.instructor(instructor_id, "*"))

    def _require_instructor(self, instructor_id: str, lock: bool = False) -> None:
        if lock:
            instructor = self.store.users.get_for_update(instructor_id)
        else:
            instructor = self.store.users.get_by_id(instructor_id)
        if instructor is None or UserRole(instructor.role) != UserRole.INSTRUCTOR:
            raise NotFoundException(
                "Instructor not found", code="INSTRUCTOR_NOT_FOUND", details={"id": instructor_id}
            )
