# swimdesk/auth.py
"""
Password hashing and JWT helpers.

Tokens carry the user id in ``sub`` and a unique ``jti`` so a single token
can be revoked on sign-out without affecting the user's other sessions.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, Tuple, cast

from fastapi.security import OAuth2PasswordBearer
import jwt
from passlib.context import CryptContext

from .core.config import Settings
from .core.ulid_helper import generate_ulid

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/sign-in", auto_error=False)

_dummy_hash: Optional[str] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Returns:
        bool: True if password matches, False otherwise
    """
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except ValueError as e:
        logger.error(f"Error verifying password: {str(e)}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return str(pwd_context.hash(password))


def burn_password_check(plain_password: str) -> None:
    """
    Spend the same time as a real verification.

    Used when the email is unknown so response timing does not reveal
    which accounts exist.
    """
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = get_password_hash("timing_attack_prevention_dummy_password")
    verify_password(plain_password, _dummy_hash)


def create_access_token(
    settings: Settings, user_id: str, expires_delta: Optional[timedelta] = None
) -> Tuple[str, Dict[str, Any]]:
    """
    Create a JWT access token.

    Returns:
        The encoded token and its claims
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "jti": generate_ulid(),
        "iat": now,
        "exp": expire,
    }
    encoded_jwt = cast(
        str,
        jwt.encode(claims, settings.secret_key.get_secret_value(), algorithm=settings.algorithm),
    )
    logger.info(f"Created access token for user: {user_id}")
    return encoded_jwt, claims


def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT access token.

    Raises:
        jwt.PyJWTError: If the token is malformed, tampered with or expired
    """
    payload = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"require": ["sub", "jti", "exp"]},
    )
    return cast(Dict[str, Any], payload)
