# swimdesk/main.py
"""
SwimDesk application factory.

``create_app`` wires one FastAPI instance from an explicit ``Settings``:
storage backend, query cache, shared cache, error handlers, metrics and the
versioned routers. Run it with ``uvicorn swimdesk.main:create_app --factory``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, FastAPI
from sqlalchemy.engine import Engine

from . import __version__
from .core.config import Settings, is_running_tests
from .core.constants import BRAND_NAME
from .database import build_engine, build_session_factory, create_tables
from .errors import register_error_handlers
from .init_db import seed_demo_data
from .middleware.prometheus_middleware import PrometheusMiddleware
from .repositories.factory import DataStoreProvider, RepositoryFactory
from .routes.v1 import (
    auth as auth_v1,
    bookings as bookings_v1,
    classes as classes_v1,
    health as health_v1,
    instructors as instructors_v1,
    packages as packages_v1,
    progress as progress_v1,
    prometheus as prometheus_v1,
    sessions as sessions_v1,
    settings as settings_v1,
    users as users_v1,
)
from .services.cache_service import CacheService
from .services.query_cache import QueryCache

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _build_store_provider(settings: Settings) -> tuple[DataStoreProvider, Optional[Engine]]:
    if settings.storage_backend == "local":
        local_store = RepositoryFactory.create_local_store(settings.local_store_path)
        return DataStoreProvider("local", local_store=local_store), None

    engine = build_engine(settings.database_url)
    create_tables(engine)
    provider = DataStoreProvider("sql", session_factory=build_session_factory(engine))
    return provider, engine


def _seed(provider: DataStoreProvider) -> None:
    store = provider.open()
    try:
        seed_demo_data(store)
    finally:
        provider.release(store)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API for ``settings`` (read from the environment when omitted)."""
    settings = settings or Settings()
    configure_logging(settings.log_level)

    provider, engine = _build_store_provider(settings)
    if settings.seed_demo_data:
        _seed(provider)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"{BRAND_NAME} API starting up...")
        logger.info(
            f"Environment: {settings.environment}, storage: {provider.backend}, "
            f"cache: {app.state.cache_service.backend}"
        )
        if is_running_tests():
            logger.info("Running under pytest (test mode active)")
        yield
        logger.info(f"{BRAND_NAME} API shutting down...")
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title=f"{BRAND_NAME} API",
        description="Booking and management backend for a swim-lesson school",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    app.state.settings = settings
    app.state.store_provider = provider
    app.state.query_cache = QueryCache()
    app.state.cache_service = CacheService(settings.redis_url)

    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(auth_v1.router, prefix="/auth")
    api_v1.include_router(users_v1.router, prefix="/users")
    api_v1.include_router(classes_v1.router, prefix="/classes")
    api_v1.include_router(packages_v1.router)  # /packages and /purchases
    api_v1.include_router(sessions_v1.router, prefix="/sessions")
    api_v1.include_router(instructors_v1.router, prefix="/instructors")
    api_v1.include_router(progress_v1.router)
    api_v1.include_router(settings_v1.router, prefix="/settings")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(health_v1.router)
    app.include_router(api_v1)

    app.include_router(prometheus_v1.router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("swimdesk.main:create_app", factory=True, host="0.0.0.0", port=8000)
