# swimdesk/models/session.py
"""
Lesson session and enrollment models.

A session is one scheduled occurrence of a class type taught by an
instructor. Enrollments are the join rows between a session and the clients
booked into it; their ``user_id`` values, in booking order, form the
session's ``enrolled_user_ids``.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..database import Base


class SessionModel(Base):
    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    class_type_id = Column(String(26), ForeignKey("class_types.id"), nullable=False, index=True)
    instructor_id = Column(String(26), ForeignKey("profiles.id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False)
    recurring_group_id = Column(String(26), nullable=True, index=True)

    enrollments = relationship(
        "EnrollmentModel",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[EnrollmentModel.created_at, EnrollmentModel.id]",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_sessions_end_after_start"),
        CheckConstraint("capacity > 0", name="ck_sessions_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Session {self.id} {self.start_time} ({len(self.enrollments)}/{self.capacity})>"


class EnrollmentModel(Base):
    """
    A client booked into a session.

    ``credit_used`` records whether a package credit paid for the seat, which
    decides whether a self-cancellation is refunded.
    """

    __tablename__ = "enrollments"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    session_id = Column(
        String(26), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        String(26), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    credit_used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    session = relationship("SessionModel", back_populates="enrollments")

    __table_args__ = (UniqueConstraint("session_id", "user_id", name="uq_enrollments_session_user"),)
