# swimdesk/routes/v1/auth.py
"""
Authentication routes - API v1

Endpoints:
    POST /sign-up   → Register a client account
    POST /sign-in   → Exchange credentials for a bearer token
    POST /sign-out  → Revoke the presented token
    GET  /me        → The signed-in user
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import get_auth_service, get_current_user
from ...auth import oauth2_scheme_optional
from ...schemas.auth import SignInRequest, SignUpRequest, TokenResponse
from ...schemas.user import User
from ...services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth-v1"])


@router.post("/sign-up", response_model=User, status_code=status.HTTP_201_CREATED)
async def sign_up(
    payload: SignUpRequest, auth_service: AuthService = Depends(get_auth_service)
) -> User:
    return await asyncio.to_thread(auth_service.sign_up, payload)


@router.post("/sign-in", response_model=TokenResponse)
async def sign_in(
    payload: SignInRequest, auth_service: AuthService = Depends(get_auth_service)
) -> TokenResponse:
    """
    Sign in with email and password.

    Returns:
        TokenResponse with the bearer token and the user's profile

    Raises:
        UnauthorizedException: If the credentials are wrong
    """
    return await asyncio.to_thread(auth_service.sign_in, payload.email, payload.password)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    if token:
        await asyncio.to_thread(auth_service.sign_out, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=User)
async def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user
