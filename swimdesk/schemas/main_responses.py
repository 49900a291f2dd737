# swimdesk/schemas/main_responses.py
"""Responses for the operational endpoints."""

from typing import Any, Dict

from .base import StandardizedModel


class HealthResponse(StandardizedModel):
    status: str
    service: str
    version: str
    environment: str
    storage_backend: str
    cache_backend: str
    cache_stats: Dict[str, Any]
    timestamp: str
