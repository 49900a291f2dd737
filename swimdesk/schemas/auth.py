# swimdesk/schemas/auth.py
"""Sign-up, sign-in and token schemas."""

from pydantic import EmailStr, Field

from ..core.constants import MAX_NAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import UserRole
from .base import StandardizedModel, StrictRequestModel
from .user import User


class SignUpRequest(StrictRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    role: UserRole = UserRole.CLIENT


class SignInRequest(StrictRequestModel):
    email: EmailStr
    password: str


class TokenResponse(StandardizedModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: User
