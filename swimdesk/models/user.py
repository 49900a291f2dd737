# swimdesk/models/user.py
"""
Profile model for SwimDesk.

One row per person who can sign in: clients, instructors, admins and guests.
The ``full_name`` column is exposed as ``name`` on the entity shape.
"""

import logging

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..core.enums import UserRole
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class Profile(Base):
    """
    A user profile.

    Attributes:
        id: ULID primary key
        email: Unique sign-in email, stored lower-cased
        full_name: Display name
        role: One of UserRole
        avatar_url: Optional picture URL
        package_credits: Prepaid lesson credits, never negative
        hashed_password: bcrypt hash, absent for profiles that cannot sign in
    """

    __tablename__ = "profiles"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CLIENT.value, index=True)
    avatar_url = Column(String(500), nullable=True)
    package_credits = Column(Integer, nullable=False, default=0)
    hashed_password = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("package_credits >= 0", name="ck_profiles_package_credits_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Profile {self.email} ({self.role})>"
