# swimdesk/api/dependencies/__init__.py
"""
Centralized dependency injection for SwimDesk routes.
"""

from .auth import (
    STAFF_ROLES,
    ensure_instructor_access,
    ensure_self_or_roles,
    get_current_user,
    require_roles,
)
from .database import get_cache_service, get_query_cache, get_settings, get_store
from .services import (
    get_auth_service,
    get_availability_service,
    get_booking_service,
    get_catalog_service,
    get_credit_service,
    get_enrollment_service,
    get_progress_service,
    get_scheduling_service,
    get_settings_service,
    get_user_service,
)

__all__ = [
    "STAFF_ROLES",
    "ensure_instructor_access",
    "ensure_self_or_roles",
    "get_auth_service",
    "get_availability_service",
    "get_booking_service",
    "get_cache_service",
    "get_catalog_service",
    "get_credit_service",
    "get_current_user",
    "get_enrollment_service",
    "get_progress_service",
    "get_query_cache",
    "get_scheduling_service",
    "get_settings",
    "get_settings_service",
    "get_store",
    "get_user_service",
    "require_roles",
]
