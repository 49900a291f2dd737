# swimdesk/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

Token checks run in a worker thread because resolving the user hits the
DataStore.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi import Depends

from ...auth import oauth2_scheme_optional
from ...core.enums import UserRole
from ...core.exceptions import ForbiddenException
from ...schemas.user import User
from ...services.auth_service import AuthService
from .services import get_auth_service

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.ADMIN, UserRole.INSTRUCTOR)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """
    Resolve the bearer token to a user.

    Raises:
        UnauthorizedException: Missing, invalid, expired or revoked token
    """
    return await asyncio.to_thread(auth_service.get_current_user, token)


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """
    Build a dependency that admits only users holding one of ``roles``.

    Usage:
        @router.post("", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in roles:
            logger.info(f"User {current_user.id} ({current_user.role}) denied; needs {roles}")
            raise ForbiddenException(
                "You do not have permission to perform this action",
                code="FORBIDDEN",
                details={"required_roles": [role.value for role in roles]},
            )
        return current_user

    return checker


def ensure_self_or_roles(current_user: User, user_id: str, *roles: UserRole) -> None:
    """
    Allow acting on ``user_id`` only for that user or a holder of ``roles``.

    Raises:
        ForbiddenException: Otherwise
    """
    if current_user.id == user_id or UserRole(current_user.role) in roles:
        return
    raise ForbiddenException(
        "You can only act on your own account", code="FORBIDDEN", details={"user_id": user_id}
    )


def ensure_instructor_access(current_user: User, instructor_id: str) -> None:
    """Instructors manage their own calendar; admins manage everyone's."""
    ensure_self_or_roles(current_user, instructor_id, UserRole.ADMIN)
