# swimdesk/schemas/settings.py
"""Studio-wide settings record."""

from pydantic import EmailStr, Field

from ..core.constants import DEFAULT_SYSTEM_SETTINGS
from .base import StandardizedModel


class SystemSettings(StandardizedModel):
    pool_capacity: int = Field(DEFAULT_SYSTEM_SETTINGS["pool_capacity"], gt=0)
    cancellation_hours: int = Field(DEFAULT_SYSTEM_SETTINGS["cancellation_hours"], ge=0)
    maintenance_mode: bool = DEFAULT_SYSTEM_SETTINGS["maintenance_mode"]
    contact_email: EmailStr = DEFAULT_SYSTEM_SETTINGS["contact_email"]
