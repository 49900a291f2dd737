# swimdesk/schemas/availability.py
"""
Instructor availability and blockout schemas.

Times are studio wall-clock values. ``day_of_week`` counts from Sunday = 0.
"""

import datetime as dt
from typing import List

from pydantic import Field, model_validator

from ..core.constants import MAX_REASON_LENGTH
from ..core.ulid_helper import generate_ulid
from .base import StandardizedModel, StrictRequestModel
from .session import LessonSession


def _check_window(start: dt.time, end: dt.time) -> None:
    if end <= start:
        raise ValueError("End time must be after start time")


class AvailabilityInput(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def validate_time_order(self) -> "AvailabilityInput":
        _check_window(self.start_time, self.end_time)
        return self


class Availability(StandardizedModel):
    """A recurring weekly window in which an instructor can teach."""

    id: str = Field(default_factory=generate_ulid)
    instructor_id: str
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def validate_time_order(self) -> "Availability":
        _check_window(self.start_time, self.end_time)
        return self


class BlockoutInput(StrictRequestModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    reason: str = Field("", max_length=MAX_REASON_LENGTH)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BlockoutInput":
        _check_window(self.start_time, self.end_time)
        return self


class Blockout(StandardizedModel):
    """A one-off dated window in which an instructor cannot teach."""

    id: str = Field(default_factory=generate_ulid)
    instructor_id: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    reason: str = Field("", max_length=MAX_REASON_LENGTH)

    @model_validator(mode="after")
    def validate_time_order(self) -> "Blockout":
        _check_window(self.start_time, self.end_time)
        return self


class InstructorSchedule(StandardizedModel):
    """Everything an instructor's calendar view needs."""

    instructor_id: str
    availability: List[Availability]
    blockouts: List[Blockout]
    sessions: List[LessonSession]
