# swimdesk/services/__init__.py
"""
Service layer for SwimDesk.

Services hold the business rules and coordinate repositories; routes only
translate HTTP to service calls.
"""

from .auth_service import AuthService
from .availability_service import AvailabilityService
from .base import BaseService
from .booking_service import BookingService
from .cache_service import CacheService
from .catalog_service import CatalogService
from .credit_service import CreditService
from .enrollment_service import EnrollmentService
from .progress_service import ProgressService
from .query_cache import QueryCache, QueryKeys
from .scheduling_service import SchedulingService
from .settings_service import SettingsService
from .user_service import UserService

__all__ = [
    "AuthService",
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "CacheService",
    "CatalogService",
    "CreditService",
    "EnrollmentService",
    "ProgressService",
    "QueryCache",
    "QueryKeys",
    "SchedulingService",
    "SettingsService",
    "UserService",
]
