# swimdesk/api/dependencies/database.py
"""
Storage and configuration dependencies.

Everything here reads from ``app.state``, which the application factory
fills once at startup.
"""

from typing import Generator

from fastapi import Request

from ...core.config import Settings
from ...repositories.contracts import DataStore
from ...services.cache_service import CacheService
from ...services.query_cache import QueryCache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Generator[DataStore, None, None]:
    """
    Get a DataStore for the duration of one request.

    Yields:
        DataStore that will be released after use
    """
    provider = request.app.state.store_provider
    store = provider.open()
    try:
        yield store
    finally:
        provider.release(store)


def get_query_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache_service
