# swimdesk/repositories/schedule_repository.py
"""
Instructor schedule repositories for the SQL backend: weekly availability
windows and dated blockouts.
"""

import datetime as dt
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.availability import AvailabilityModel, BlockoutModel
from ..schemas.availability import Availability, Blockout
from .base_repository import BaseRepository
from .contracts import IAvailabilityRepository, IBlockoutRepository
from .mappers import RowMapper

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[Availability], IAvailabilityRepository):
    entity_label = "Availability"

    def __init__(self, db: Session):
        super().__init__(db, AvailabilityModel, RowMapper(Availability))

    def _build_query(self):
        return self.db.query(AvailabilityModel).order_by(
            AvailabilityModel.day_of_week, AvailabilityModel.start_time, AvailabilityModel.id
        )

    def list_for_instructor(
        self, instructor_id: str, day_of_week: Optional[int] = None
    ) -> List[Availability]:
        query = self._build_query().filter(AvailabilityModel.instructor_id == instructor_id)
        if day_of_week is not None:
            query = query.filter(AvailabilityModel.day_of_week == day_of_week)
        return [self._to_entity(row) for row in self._execute_query(query)]


class BlockoutRepository(BaseRepository[Blockout], IBlockoutRepository):
    entity_label = "Blockout"

    def __init__(self, db: Session):
        super().__init__(db, BlockoutModel, RowMapper(Blockout))

    def _build_query(self):
        return self.db.query(BlockoutModel).order_by(
            BlockoutModel.date, BlockoutModel.start_time, BlockoutModel.id
        )

    def list_for_instructor(
        self, instructor_id: str, on_date: Optional[dt.date] = None
    ) -> List[Blockout]:
        query = self._build_query().filter(BlockoutModel.instructor_id == instructor_id)
        if on_date is not None:
            query = query.filter(BlockoutModel.date == on_date)
        return [self._to_entity(row) for row in self._execute_query(query)]
