# swimdesk/routes/v1/settings.py
"""
Studio settings routes - API v1

Endpoints:
    GET /  → Current settings (defaults until first saved)
    PUT /  → Replace the settings (admin)
"""

import asyncio

from fastapi import APIRouter, Depends

from ...api.dependencies import get_settings_service, require_roles
from ...core.enums import UserRole
from ...schemas.settings import SystemSettings
from ...services.settings_service import SettingsService

router = APIRouter(tags=["settings-v1"])


@router.get("", response_model=SystemSettings)
async def get_settings(
    settings_service: SettingsService = Depends(get_settings_service),
) -> SystemSettings:
    return await asyncio.to_thread(settings_service.get_settings)


@router.put(
    "",
    response_model=SystemSettings,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def save_settings(
    payload: SystemSettings,
    settings_service: SettingsService = Depends(get_settings_service),
) -> SystemSettings:
    return await asyncio.to_thread(settings_service.save_settings, payload)
