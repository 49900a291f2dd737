# swimdesk/services/auth_service.py
"""
Authentication Service for SwimDesk

Handles all authentication-related business logic including:
- Self-registration of clients
- Credential checks and token issue
- Token revocation on sign-out
- Resolving the user behind a bearer token
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional

import jwt

from ..auth import (
    burn_password_check,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from ..core.config import Settings
from ..core.enums import UserRole
from ..core.exceptions import ForbiddenException, ServiceException, UnauthorizedException
from ..repositories.contracts import DataStore
from ..schemas.auth import SignUpRequest, TokenResponse
from ..schemas.user import User
from .base import BaseService
from .cache_service import CacheService
from .query_cache import QueryCache, QueryKeys

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Service layer for authentication operations.

    Revoked token ids live in the shared cache until the token would have
    expired anyway.
    """

    def __init__(
        self,
        store: DataStore,
        config: Settings,
        cache_service: CacheService,
        cache: Optional[QueryCache] = None,
    ):
        super().__init__(store, cache)
        self.config = config
        self.cache_service = cache_service

    @BaseService.measure_operation("sign_up")
    def sign_up(self, request: SignUpRequest) -> User:
        """
        Register a new client account.

        Raises:
            ForbiddenException: If a role other than CLIENT is requested
            ConflictException: If the email is already registered
        """
        if UserRole(request.role) != UserRole.CLIENT:
            raise ForbiddenException(
                "Only client accounts can be self-registered",
                code="ROLE_NOT_ALLOWED",
                details={"role": request.role},
            )
        user = User(name=request.name, email=request.email, role=UserRole.CLIENT)
        with self.transaction():
            created = self.store.users.create(user)
            self.store.users.set_password_hash(created.id, get_password_hash(request.password))
        self.logger.info(f"Registered new client {created.id}")
        self.invalidate_cache(QueryKeys.USERS)
        return created

    @BaseService.measure_operation("sign_in")
    def sign_in(self, email: str, password: str) -> TokenResponse:
        """
        Check credentials and issue an access token.

        Raises:
            UnauthorizedException: Unknown email or wrong password
        """
        user = self.store.users.get_by_email(email)
        if user is None:
            burn_password_check(password)
            self.logger.info("Sign-in failed: unknown email")
            raise self._invalid_credentials()

        hashed = self.store.users.get_password_hash(user.id)
        if not hashed or not verify_password(password, hashed):
            self.logger.info(f"Sign-in failed for user {user.id}")
            raise self._invalid_credentials()

        token, claims = create_access_token(self.config, user.id)
        expires_in = int((claims["exp"] - claims["iat"]).total_seconds())
        return TokenResponse(access_token=token, expires_in=expires_in, user=user)

    @BaseService.measure_operation("sign_out")
    def sign_out(self, token: str) -> None:
        """
        Revoke ``token``. Already invalid tokens are ignored.

        Raises:
            ServiceException: The revocation could not be stored
        """
        try:
            claims = decode_access_token(self.config, token)
        except jwt.PyJWTError:
            return
        remaining = int(claims["exp"] - datetime.now(timezone.utc).timestamp())
        if remaining > 0:
            key = self.cache_service.key_builder.build("revoked_token", claims["jti"])
            if not self.cache_service.set(key, {"sub": claims["sub"]}, ttl=remaining):
                self.logger.error(f"Could not revoke token for user {claims['sub']}")
                raise ServiceException("Sign-out failed, please retry", code="REVOCATION_FAILED")
        self.logger.info(f"User {claims['sub']} signed out")

    def get_current_user(self, token: Optional[str]) -> User:
        """
        Resolve the user behind a bearer token.

        Raises:
            UnauthorizedException: Missing, invalid, expired or revoked token,
                or a user that no longer exists
            ServiceException: The revocation list cannot be read
        """
        if not token:
            raise UnauthorizedException("Not authenticated", code="NOT_AUTHENTICATED")
        claims = self._decode(token)
        key = self.cache_service.key_builder.build("revoked_token", claims["jti"])
        if self.cache_service.get_or_raise(key) is not None:
            raise UnauthorizedException("Token has been revoked", code="TOKEN_REVOKED")
        user = self.store.users.get_by_id(claims["sub"])
        if user is None:
            raise UnauthorizedException("User no longer exists", code="USER_NOT_FOUND")
        return user

    def _decode(self, token: str) -> Dict[str, Any]:
        try:
            return decode_access_token(self.config, token)
        except jwt.ExpiredSignatureError:
            raise UnauthorizedException("Token has expired", code="TOKEN_EXPIRED")
        except jwt.PyJWTError as e:
            self.logger.debug(f"Rejected token: {e}")
            raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")

    @staticmethod
    def _invalid_credentials() -> UnauthorizedException:
        return UnauthorizedException("Incorrect email or password", code="INVALID_CREDENTIALS")
