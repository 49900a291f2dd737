# swimdesk/services/progress_service.py
"""Student skill progress against the fixed skill catalogue."""

import logging
from typing import List

from ..core.constants import SKILL_CATALOG
from ..core.enums import ProgressStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import utc_now
from ..schemas.progress import Skill, StudentProgress
from .base import BaseService
from .query_cache import QueryKeys

logger = logging.getLogger(__name__)


class ProgressService(BaseService):
    def list_skills(self) -> List[Skill]:
        return [Skill(**skill) for skill in SKILL_CATALOG]

    @BaseService.measure_operation("list_progress")
    def list_for_student(self, student_id: str) -> List[StudentProgress]:
        """
        One entry per catalogue skill. Skills never assessed are reported as
        Not Started without being stored.
        """
        if self.store.users.get_by_id(student_id) is None:
            raise NotFoundException(
                "Student not found", code="USER_NOT_FOUND", details={"id": student_id}
            )

        def load() -> List[StudentProgress]:
            stored = {p.skill_id: p for p in self.store.progress.list_for_student(student_id)}
            return [
                stored.get(skill["id"])
                or StudentProgress(
                    student_id=student_id,
                    skill_id=skill["id"],
                    status=ProgressStatus.NOT_STARTED,
                )
                for skill in SKILL_CATALOG
            ]

        return self.cached_query(QueryKeys.user(student_id, "progress"), load)

    @BaseService.measure_operation("update_progress")
    def update_progress(
        self, student_id: str, skill_id: str, status: ProgressStatus
    ) -> StudentProgress:
        if skill_id not in {skill["id"] for skill in SKILL_CATALOG}:
            raise ValidationException(
                "Unknown skill", code="UNKNOWN_SKILL", details={"skill_id": skill_id}
            )
        if self.store.users.get_by_id(student_id) is None:
            raise NotFoundException(
                "Student not found", code="USER_NOT_FOUND", details={"id": student_id}
            )
        with self.transaction():
            saved = self.store.progress.upsert(
                StudentProgress(
                    student_id=student_id,
                    skill_id=skill_id,
                    status=status,
                    last_updated=utc_now(),
                )
            )
        self.logger.info(f"Progress for {student_id} on {skill_id}: {saved.status}")
        self.invalidate_cache(QueryKeys.user(student_id, "progress"))
        return saved
