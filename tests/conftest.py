# tests/conftest.py
"""
Shared fixtures.

Service and repository tests run once per storage backend: an in-memory
SQLite database behind ``SqlDataStore`` and a file-backed ``LocalDataStore``
in a temporary directory. API tests build a fresh application per test.
"""

from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest

from swimdesk.core.config import Settings
from swimdesk.core.constants import DEMO_PASSWORD
from swimdesk.database import build_engine, build_session_factory, create_tables
from swimdesk.main import create_app
from swimdesk.repositories.contracts import DataStore
from swimdesk.repositories.local_store import LocalDataStore
from swimdesk.repositories.sql_store import SqlDataStore
from swimdesk.services.cache_service import CacheService
from swimdesk.services.query_cache import QueryCache


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "secret_key": "test-secret-key",
        "storage_backend": "sql",
        "database_url": "sqlite://",
        "local_store_path": None,
        "redis_url": None,
        "studio_timezone": "UTC",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture(params=["sql", "local"])
def store(request, tmp_path) -> Iterator[DataStore]:
    """A DataStore for each backend."""
    if request.param == "sql":
        engine = build_engine("sqlite://")
        create_tables(engine)
        sql_store = SqlDataStore(build_session_factory(engine)())
        try:
            yield sql_store
        finally:
            sql_store.close()
            engine.dispose()
    else:
        yield LocalDataStore(tmp_path / "store.json")


@pytest.fixture
def query_cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def cache_service() -> CacheService:
    return CacheService()


# ============================================================================
# API fixtures
# ============================================================================


@pytest.fixture(params=["sql", "local"])
def client(request) -> Iterator[TestClient]:
    """A client for an app seeded with the demo accounts."""
    app = create_app(make_settings(storage_backend=request.param, seed_demo_data=True))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sql_client() -> Iterator[TestClient]:
    app = create_app(make_settings(seed_demo_data=True))
    with TestClient(app) as test_client:
        yield test_client


def sign_in(client: TestClient, email: str, password: str = DEMO_PASSWORD) -> Dict[str, str]:
    response = client.post("/api/v1/auth/sign-in", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def auth_headers(client) -> Callable[[str], Dict[str, str]]:
    """Headers for one of the demo accounts: ``auth_headers("admin")``."""
    emails = {
        "admin": "admin@example.com",
        "instructor": "instructor@example.com",
        "client": "client@example.com",
    }

    def _headers(who: str) -> Dict[str, str]:
        return sign_in(client, emails[who])

    return _headers
