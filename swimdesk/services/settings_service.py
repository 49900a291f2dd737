# swimdesk/services/settings_service.py
"""
Studio settings service.

The settings record is a single row. Until an admin saves it, reads return
the defaults from ``core.constants``.
"""

import logging
from typing import Optional

from ..core.exceptions import MaintenanceModeException, ValidationException
from ..schemas.catalog import ClassType
from ..schemas.settings import SystemSettings
from .base import BaseService
from .query_cache import QueryKeys

logger = logging.getLogger(__name__)


class SettingsService(BaseService):
    """Reads and saves the studio settings and applies the policies they drive."""

    @BaseService.measure_operation("get_settings")
    def get_settings(self) -> SystemSettings:
        def load() -> SystemSettings:
            stored = self.store.settings.get()
            return stored if stored is not None else SystemSettings()

        return self.cached_query(QueryKeys.SETTINGS, load)

    @BaseService.measure_operation("save_settings")
    def save_settings(self, settings: SystemSettings) -> SystemSettings:
        with self.transaction():
            saved = self.store.settings.save(settings)
        self.invalidate_cache(QueryKeys.SETTINGS)
        self.logger.info(
            "Settings saved: pool_capacity=%s cancellation_hours=%s maintenance_mode=%s",
            saved.pool_capacity,
            saved.cancellation_hours,
            saved.maintenance_mode,
        )
        return saved

    def ensure_bookings_open(self) -> None:
        """
        Raises:
            MaintenanceModeException: While the studio is in maintenance mode
        """
        settings = self.get_settings()
        if settings.maintenance_mode:
            raise MaintenanceModeException(contact_email=str(settings.contact_email))

    def resolve_capacity(self, class_type: ClassType, requested: Optional[int] = None) -> int:
        """
        Capacity for a new session.

        An explicit request wins, then the class type's own capacity, then the
        pool capacity. The result may never exceed the pool capacity.
        """
        pool_capacity = self.get_settings().pool_capacity
        capacity = requested or class_type.capacity or pool_capacity
        if capacity > pool_capacity:
            raise ValidationException(
                f"Capacity {capacity} exceeds the pool capacity of {pool_capacity}",
                code="CAPACITY_EXCEEDS_POOL",
                details={"capacity": capacity, "pool_capacity": pool_capacity},
            )
        return capacity
