# swimdesk/models/progress.py
"""Student skill progress: one row per (student, skill)."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from ..core.enums import ProgressStatus
from ..database import Base


class StudentProgressModel(Base):
    __tablename__ = "student_progress"

    student_id = Column(
        String(26), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    skill_id = Column(String(26), primary_key=True)
    status = Column(String(20), nullable=False, default=ProgressStatus.NOT_STARTED.value)
    updated_at = Column(DateTime(timezone=True), nullable=False)
