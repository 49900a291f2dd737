# swimdesk/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends

from ...core.config import Settings
from ...repositories.contracts import DataStore
from ...services.auth_service import AuthService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.cache_service import CacheService
from ...services.catalog_service import CatalogService
from ...services.credit_service import CreditService
from ...services.enrollment_service import EnrollmentService
from ...services.progress_service import ProgressService
from ...services.query_cache import QueryCache
from ...services.scheduling_service import SchedulingService
from ...services.settings_service import SettingsService
from ...services.user_service import UserService
from .database import get_cache_service, get_query_cache, get_settings, get_store


def get_settings_service(
    store: DataStore = Depends(get_store), cache: QueryCache = Depends(get_query_cache)
) -> SettingsService:
    return SettingsService(store, cache)


def get_credit_service(
    store: DataStore = Depends(get_store), cache: QueryCache = Depends(get_query_cache)
) -> CreditService:
    return CreditService(store, cache)


def get_enrollment_service(
    store: DataStore = Depends(get_store),
    cache: QueryCache = Depends(get_query_cache),
    settings_service: SettingsService = Depends(get_settings_service),
) -> EnrollmentService:
    return EnrollmentService(store, cache, settings_service)


def get_scheduling_service(
    store: DataStore = Depends(get_store),
    config: Settings = Depends(get_settings),
    cache: QueryCache = Depends(get_query_cache),
    settings_service: SettingsService = Depends(get_settings_service),
) -> SchedulingService:
    return SchedulingService(store, config, cache, settings_service)


def get_availability_service(
    store: DataStore = Depends(get_store), cache: QueryCache = Depends(get_query_cache)
) -> AvailabilityService:
    return AvailabilityService(store, cache)


def get_catalog_service(
    store: DataStore = Depends(get_store),
    cache: QueryCache = Depends(get_query_cache),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> CatalogService:
    return CatalogService(store, cache, enrollment_service)


def get_user_service(
    store: DataStore = Depends(get_store),
    cache: QueryCache = Depends(get_query_cache),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> UserService:
    return UserService(store, cache, enrollment_service)


def get_progress_service(
    store: DataStore = Depends(get_store), cache: QueryCache = Depends(get_query_cache)
) -> ProgressService:
    return ProgressService(store, cache)


def get_auth_service(
    store: DataStore = Depends(get_store),
    config: Settings = Depends(get_settings),
    cache_service: CacheService = Depends(get_cache_service),
    cache: QueryCache = Depends(get_query_cache),
) -> AuthService:
    return AuthService(store, config, cache_service, cache)


def get_booking_service(
    store: DataStore = Depends(get_store),
    config: Settings = Depends(get_settings),
    cache_service: CacheService = Depends(get_cache_service),
    cache: QueryCache = Depends(get_query_cache),
    settings_service: SettingsService = Depends(get_settings_service),
    credit_service: CreditService = Depends(get_credit_service),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Returns:
        BookingService sharing the request's DataStore with its collaborators
    """
    return BookingService(
        store,
        config,
        cache_service,
        cache,
        settings_service=settings_service,
        credit_service=credit_service,
        enrollment_service=enrollment_service,
    )
