# swimdesk/repositories/progress_repository.py
"""
Student progress and system settings repositories for the SQL backend.

Neither table has a ULID key: progress is keyed by (student, skill) and
settings is a single row.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import SETTINGS_ROW_ID
from ..core.exceptions import ConflictException, RepositoryException
from ..database import unit_of_work
from ..models.progress import StudentProgressModel
from ..models.settings import SystemSettingsModel
from ..schemas.progress import StudentProgress
from ..schemas.settings import SystemSettings
from .contracts import EntityInput, IProgressRepository, ISettingsRepository
from .mappers import PROGRESS_RENAMES, RowMapper, coerce_entity

logger = logging.getLogger(__name__)


class ProgressRepository(IProgressRepository):
    def __init__(self, db: Session):
        self.db = db
        self.mapper = RowMapper(StudentProgress, PROGRESS_RENAMES)
        self.logger = logging.getLogger(__name__)

    def list_for_student(self, student_id: str) -> List[StudentProgress]:
        try:
            rows = (
                self.db.query(StudentProgressModel)
                .filter(StudentProgressModel.student_id == student_id)
                .order_by(StudentProgressModel.skill_id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing progress for {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve progress: {str(e)}")
        return [self.mapper.to_entity(row) for row in rows]

    def get(self, student_id: str, skill_id: str) -> Optional[StudentProgress]:
        row = self.db.get(StudentProgressModel, (student_id, skill_id))
        return self.mapper.to_entity(row) if row is not None else None

    def upsert(self, progress: EntityInput) -> StudentProgress:
        data = coerce_entity(StudentProgress, progress)
        try:
            with unit_of_work(self.db):
                row = self.db.get(StudentProgressModel, (data.student_id, data.skill_id))
                if row is None:
                    row = StudentProgressModel(**self.mapper.to_columns(data))
                    self.db.add(row)
                else:
                    row.status = data.status
                    row.updated_at = data.last_updated
                self.db.flush()
                result = self.mapper.to_entity(row)
        except IntegrityError as exc:
            self.logger.error("Integrity error saving progress: %s", exc)
            raise ConflictException(
                "Progress references an unknown student",
                code="INTEGRITY_CONFLICT",
                details={"student_id": data.student_id},
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Error saving progress: %s", exc)
            raise RepositoryException(f"Failed to save progress: {exc}") from exc
        return result


class SettingsRepository(ISettingsRepository):
    def __init__(self, db: Session):
        self.db = db
        self.mapper = RowMapper(SystemSettings)
        self.logger = logging.getLogger(__name__)

    def get(self) -> Optional[SystemSettings]:
        try:
            row = self.db.get(SystemSettingsModel, SETTINGS_ROW_ID)
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading settings: {str(e)}")
            raise RepositoryException(f"Failed to read settings: {str(e)}")
        return self.mapper.to_entity(row) if row is not None else None

    def save(self, settings: EntityInput) -> SystemSettings:
        data = coerce_entity(SystemSettings, settings)
        try:
            with unit_of_work(self.db):
                row = self.db.get(SystemSettingsModel, SETTINGS_ROW_ID)
                if row is None:
                    row = SystemSettingsModel(id=SETTINGS_ROW_ID)
                    self.db.add(row)
                for column, value in self.mapper.to_columns(data).items():
                    setattr(row, column, value)
                self.db.flush()
                result = self.mapper.to_entity(row)
        except SQLAlchemyError as exc:
            self.logger.error("Error saving settings: %s", exc)
            raise RepositoryException(f"Failed to save settings: {exc}") from exc
        return result
