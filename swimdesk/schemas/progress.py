# swimdesk/schemas/progress.py
import datetime as dt

from pydantic import Field, field_validator

from ..core.enums import ProgressStatus
from ..core.timezone_utils import utc_now
from .base import StandardizedModel, StrictRequestModel, as_utc


class Skill(StandardizedModel):
    id: str
    name: str
    category: str


class StudentProgress(StandardizedModel):
    """Where a student stands on one skill."""

    student_id: str
    skill_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    last_updated: dt.datetime = Field(default_factory=utc_now)

    @field_validator("last_updated")
    @classmethod
    def normalize_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class ProgressUpdate(StrictRequestModel):
    status: ProgressStatus
