# swimdesk/models/availability.py
"""
Instructor availability models.

Availability rows are recurring weekly windows (``day_of_week`` 0 = Sunday).
Blockouts are one-off dated windows and take precedence over availability.
Both store wall-clock times in the studio zone.
"""

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, String, Time

from ..core.ulid_helper import generate_ulid
from ..database import Base


class AvailabilityModel(Base):
    __tablename__ = "availability"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    instructor_id = Column(
        String(26), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_availability_end_after_start"),
    )


class BlockoutModel(Base):
    __tablename__ = "blockouts"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    instructor_id = Column(
        String(26), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(String(255), nullable=False, default="")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_blockouts_end_after_start"),
    )
