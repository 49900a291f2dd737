# swimdesk/schemas/user.py
"""User entity and the admin-facing user DTOs."""

from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from ..core.constants import MAX_NAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import UserRole
from ..core.ulid_helper import generate_ulid
from .base import StandardizedModel, StrictRequestModel
from .purchase import Purchase
from .session import LessonSession


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class User(StandardizedModel):
    """
    A person known to the studio.

    Emails are unique case-insensitively, so they are stored lower-cased.
    """

    id: str = Field(default_factory=generate_ulid)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    role: UserRole = UserRole.CLIENT
    package_credits: int = Field(default=0, ge=0)
    avatar_url: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, value: object) -> object:
        return _normalize_email(value) if isinstance(value, str) else value


class UserCreate(StrictRequestModel):
    """Admin-created profile; the admin chooses the initial password."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    role: UserRole = UserRole.CLIENT
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    package_credits: int = Field(default=0, ge=0)
    avatar_url: Optional[str] = None


class UserUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    package_credits: Optional[int] = Field(None, ge=0)
    avatar_url: Optional[str] = None


class ClientDashboard(StandardizedModel):
    """A client's bookings and purchase history."""

    user: User
    sessions: List[LessonSession]
    purchases: List[Purchase]
