# swimdesk/schemas/session.py
"""
Lesson session schemas.

``LessonSession.enrolled_user_ids`` is derived from the enrollment rows in
booking order; the invariants below hold for every session that leaves
storage.
"""

import datetime as dt
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.constants import MAX_SERIES_OCCURRENCES
from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from .base import StandardizedModel, StrictRequestModel, as_utc


class LessonSession(StandardizedModel):
    """One scheduled occurrence of a class type."""

    id: str = Field(default_factory=generate_ulid)
    class_type_id: str = Field(..., min_length=1)
    instructor_id: str = Field(..., min_length=1)
    start_time: dt.datetime
    end_time: dt.datetime
    capacity: int = Field(..., gt=0)
    enrolled_user_ids: List[str] = Field(default_factory=list)
    recurring_group_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_invariants(self) -> "LessonSession":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if len(set(self.enrolled_user_ids)) != len(self.enrolled_user_ids):
            raise ValueError("enrolled_user_ids must be unique")
        if len(self.enrolled_user_ids) > self.capacity:
            raise ValueError("enrolled_user_ids exceeds capacity")
        return self

    @property
    def is_full(self) -> bool:
        return len(self.enrolled_user_ids) >= self.capacity


class Enrollment(StandardizedModel):
    """A client's seat in a session."""

    id: str = Field(default_factory=generate_ulid)
    session_id: str
    user_id: str
    credit_used: bool = False
    created_at: dt.datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def normalize_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class ScheduleSessionRequest(StrictRequestModel):
    """
    Admin/instructor request to put a session on the calendar.

    ``date`` and ``start_time`` are studio wall-clock values. ``capacity``
    falls back to the class type's capacity, then the pool capacity.
    """

    class_type_id: str
    instructor_id: str
    date: dt.date
    start_time: dt.time
    capacity: Optional[int] = Field(None, gt=0)
    override_unavailable: bool = False


class SeriesRequest(ScheduleSessionRequest):
    """A weekly repeating session starting on ``date``."""

    occurrences: int = Field(..., ge=1, le=MAX_SERIES_OCCURRENCES)


class SeriesResponse(StandardizedModel):
    recurring_group_id: str
    sessions: List[LessonSession]


class EnrollRequest(StrictRequestModel):
    """
    Booking a seat.

    ``user_id`` defaults to the caller; staff may book on behalf of a client.
    ``pay_per_lesson`` marks a drop-in paid outside the credit system.
    """

    user_id: Optional[str] = None
    pay_per_lesson: bool = False


class CancellationResult(StandardizedModel):
    session_id: str
    user_id: str
    refunded: bool
    package_credits: int
