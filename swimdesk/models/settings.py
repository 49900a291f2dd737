# swimdesk/models/settings.py
"""Single-row studio settings table."""

from sqlalchemy import Boolean, Column, Integer, String

from ..core.constants import DEFAULT_SYSTEM_SETTINGS, SETTINGS_ROW_ID
from ..database import Base


class SystemSettingsModel(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    pool_capacity = Column(Integer, nullable=False, default=DEFAULT_SYSTEM_SETTINGS["pool_capacity"])
    cancellation_hours = Column(
        Integer, nullable=False, default=DEFAULT_SYSTEM_SETTINGS["cancellation_hours"]
    )
    maintenance_mode = Column(Boolean, nullable=False, default=False)
    contact_email = Column(
        String(255), nullable=False, default=DEFAULT_SYSTEM_SETTINGS["contact_email"]
    )
