# swimdesk/routes/v1/users.py
"""
User routes - API v1

Admin user management plus the per-user views a client sees of themselves.

Endpoints:
    GET    /                      → List users (admin)
    POST   /                      → Create a user with a password (admin)
    GET    /instructors           → List instructors
    GET    /{user_id}             → One user (self or staff)
    PATCH  /{user_id}             → Edit a user (admin)
    DELETE /{user_id}             → Delete a user and their data (admin)
    GET    /{user_id}/dashboard   → Enrolled sessions and purchases (self or admin)
    GET    /{user_id}/purchases   → Purchase history, newest first (self or admin)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import (
    STAFF_ROLES,
    ensure_self_or_roles,
    get_credit_service,
    get_current_user,
    get_user_service,
    require_roles,
)
from ...core.enums import UserRole
from ...schemas.purchase import Purchase
from ...schemas.user import ClientDashboard, User, UserCreate, UserUpdate
from ...services.credit_service import CreditService
from ...services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users-v1"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("", response_model=List[User], dependencies=[Depends(admin_only)])
async def list_users(
    role: Optional[UserRole] = Query(None),
    user_service: UserService = Depends(get_user_service),
) -> List[User]:
    return await asyncio.to_thread(user_service.list_users, role)


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admin_only)],
)
async def create_user(
    payload: UserCreate, user_service: UserService = Depends(get_user_service)
) -> User:
    return await asyncio.to_thread(user_service.create_user, payload)


@router.get("/instructors", response_model=List[User])
async def list_instructors(
    _: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> List[User]:
    return await asyncio.to_thread(user_service.list_instructors)


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> User:
    ensure_self_or_roles(current_user, user_id, *STAFF_ROLES)
    return await asyncio.to_thread(user_service.get_user, user_id)


@router.patch("/{user_id}", response_model=User, dependencies=[Depends(admin_only)])
async def update_user(
    user_id: str,
    payload: UserUpdate,
    user_service: UserService = Depends(get_user_service),
) -> User:
    return await asyncio.to_thread(user_service.update_user, user_id, payload)


@router.delete(
    "/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(admin_only)]
)
async def delete_user(
    user_id: str, user_service: UserService = Depends(get_user_service)
) -> Response:
    """Delete a user. Deleting an unknown id is not an error."""
    await asyncio.to_thread(user_service.delete_user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/dashboard", response_model=ClientDashboard)
async def client_dashboard(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> ClientDashboard:
    ensure_self_or_roles(current_user, user_id, UserRole.ADMIN)
    return await asyncio.to_thread(user_service.client_dashboard, user_id)


@router.get("/{user_id}/purchases", response_model=List[Purchase])
async def list_user_purchases(
    user_id: str,
    current_user: User = Depends(get_current_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> List[Purchase]:
    ensure_self_or_roles(current_user, user_id, UserRole.ADMIN)
    return await asyncio.to_thread(credit_service.list_purchases, user_id)
