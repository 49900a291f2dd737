# tests/unit/services/test_auth_service.py
"""Sign-up, sign-in, token resolution and revocation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest
from redis.exceptions import RedisError

from swimdesk.auth import create_access_token
from swimdesk.core.enums import UserRole
from swimdesk.core.exceptions import (
    ConflictException,
    ForbiddenException,
    ServiceException,
    UnauthorizedException,
)
from swimdesk.schemas.auth import SignUpRequest
from swimdesk.services.auth_service import AuthService
from swimdesk.services.cache_service import CacheService


@pytest.fixture
def auth_service(store, settings, cache_service, query_cache):
    return AuthService(store, settings, cache_service, query_cache)


@pytest.fixture
def registered(auth_service):
    return auth_service.sign_up(
        SignUpRequest(email="Swimmer@Example.com", password="paddle123", name="New Swimmer")
    )


class TestSignUp:
    def test_creates_a_client(self, registered):
        assert registered.role == UserRole.CLIENT.value
        assert registered.email == "swimmer@example.com"
        assert registered.package_credits == 0

    def test_staff_roles_cannot_self_register(self, auth_service):
        with pytest.raises(ForbiddenException) as exc_info:
            auth_service.sign_up(
                SignUpRequest(
                    email="coach@example.com",
                    password="paddle123",
                    name="Coach",
                    role=UserRole.INSTRUCTOR,
                )
            )

        assert exc_info.value.code == "ROLE_NOT_ALLOWED"

    def test_duplicate_email_is_rejected(self, auth_service, registered):
        with pytest.raises(ConflictException) as exc_info:
            auth_service.sign_up(
                SignUpRequest(email="swimmer@example.com", password="other123", name="Again")
            )

        assert exc_info.value.code == "EMAIL_TAKEN"


class TestSignIn:
    def test_round_trip(self, auth_service, registered):
        token = auth_service.sign_in("swimmer@example.com", "paddle123")

        assert token.token_type == "bearer"
        assert token.expires_in > 0
        assert auth_service.get_current_user(token.access_token).id == registered.id

    def test_email_is_case_insensitive(self, auth_service, registered):
        token = auth_service.sign_in("SWIMMER@example.com", "paddle123")

        assert token.user.id == registered.id

    @pytest.mark.parametrize(
        "email,password",
        [("swimmer@example.com", "wrong-password"), ("nobody@example.com", "paddle123")],
    )
    def test_bad_credentials(self, auth_service, registered, email, password):
        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.sign_in(email, password)

        assert exc_info.value.code == "INVALID_CREDENTIALS"


class TestTokens:
    def test_sign_out_revokes_only_that_token(self, auth_service, registered):
        first = auth_service.sign_in("swimmer@example.com", "paddle123").access_token
        second = auth_service.sign_in("swimmer@example.com", "paddle123").access_token

        auth_service.sign_out(first)

        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.get_current_user(first)
        assert exc_info.value.code == "TOKEN_REVOKED"
        assert auth_service.get_current_user(second).id == registered.id

    def test_sign_out_ignores_garbage(self, auth_service):
        auth_service.sign_out("not-a-token")

    def test_missing_token(self, auth_service):
        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.get_current_user(None)

        assert exc_info.value.code == "NOT_AUTHENTICATED"

    def test_expired_token(self, auth_service, settings, registered):
        token, _ = create_access_token(settings, registered.id, expires_delta=timedelta(seconds=-5))

        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.get_current_user(token)

        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_token_signed_with_another_key(self, auth_service, registered):
        forged = jwt.encode(
            {"sub": registered.id, "jti": "forged", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "some-other-secret",
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.get_current_user(forged)

        assert exc_info.value.code == "INVALID_TOKEN"

    def test_deleted_user(self, auth_service, store, settings):
        token, _ = create_access_token(settings, "gone")

        with pytest.raises(UnauthorizedException) as exc_info:
            auth_service.get_current_user(token)

        assert exc_info.value.code == "USER_NOT_FOUND"


class TestRevocationStoreOutage:
    """A broken Redis must never let a signed-out token back in."""

    @pytest.fixture
    def redis_client(self):
        return MagicMock()

    @pytest.fixture
    def outage_auth_service(self, store, settings, query_cache, redis_client):
        return AuthService(store, settings, CacheService(redis_client=redis_client), query_cache)

    @pytest.fixture
    def token(self, outage_auth_service, swimmer):
        return outage_auth_service.sign_in("swimmer@example.com", "paddle123").access_token

    @pytest.fixture
    def swimmer(self, outage_auth_service):
        return outage_auth_service.sign_up(
            SignUpRequest(email="swimmer@example.com", password="paddle123", name="New Swimmer")
        )

    def test_sign_out_reports_a_failed_revocation(self, outage_auth_service, redis_client, token):
        redis_client.setex.side_effect = RedisError("down")

        with pytest.raises(ServiceException) as exc_info:
            outage_auth_service.sign_out(token)

        assert exc_info.value.code == "REVOCATION_FAILED"

    def test_token_is_rejected_when_the_revocation_list_is_unreadable(
        self, outage_auth_service, redis_client, token
    ):
        redis_client.get.side_effect = RedisError("down")

        with pytest.raises(ServiceException) as exc_info:
            outage_auth_service.get_current_user(token)

        assert exc_info.value.code == "CACHE_UNAVAILABLE"

    def test_token_is_rejected_while_the_circuit_is_open(
        self, outage_auth_service, redis_client, token
    ):
        redis_client.get.side_effect = RedisError("down")
        breaker = outage_auth_service.cache_service.circuit_breaker
        for _ in range(breaker.failure_threshold):
            outage_auth_service.cache_service.get("warmup")
        redis_client.get.reset_mock()

        with pytest.raises(ServiceException):
            outage_auth_service.get_current_user(token)

        redis_client.get.assert_not_called()

    def test_healthy_redis_still_resolves_the_user(self, outage_auth_service, redis_client, token):
        redis_client.get.return_value = None

        assert outage_auth_service.get_current_user(token).email == "swimmer@example.com"
