# swimdesk/core/config.py
"""
Runtime configuration for SwimDesk.

Settings are read from the environment (and an optional ``.env`` file) but
are never held in a module-level singleton: the application factory receives
an explicitly constructed ``Settings`` instance and exposes it through
``app.state.settings`` for the lifetime of the process.
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

logger = logging.getLogger(__name__)

StorageBackend = Literal["sql", "local"]


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # Persistence
    storage_backend: StorageBackend = Field(
        default="sql",
        description="'sql' for the relational backend, 'local' for the JSON-file demo store",
    )
    database_url: str = Field(default="sqlite:///./swimdesk.db")
    local_store_path: Optional[Path] = Field(
        default=Path("swimdesk_store.json"),
        description="File backing the local store; None keeps data in memory only",
    )

    # Query cache
    redis_url: Optional[str] = Field(
        default=None, description="Redis URL for the query cache; in-memory when unset"
    )

    # Auth
    secret_key: SecretStr = Field(default=SecretStr(""), description="Secret key for JWT tokens")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Studio
    studio_timezone: str = Field(default="UTC", description="Wall-clock zone for schedules")
    wizard_ttl_seconds: int = Field(default=1800, gt=0)
    seed_demo_data: bool = False

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        env_prefix="SWIMDESK_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("studio_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown time zone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @model_validator(mode="after")
    def require_secret(self) -> "Settings":
        if not self.secret_key.get_secret_value():
            if self.environment in {"production", "prod"}:
                raise ValueError("SWIMDESK_SECRET_KEY must be set in production")
            if not is_running_tests():
                logger.warning("SWIMDESK_SECRET_KEY is not set; using an insecure development key")
            self.secret_key = SecretStr("swimdesk-insecure-development-key")
        return self
