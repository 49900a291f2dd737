# swimdesk/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer checks.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from ... import __version__
from ...core.constants import BRAND_NAME
from ...schemas.main_responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    state = request.app.state
    cache_stats = state.cache_service.get_stats()
    return HealthResponse(
        status="degraded" if cache_stats["circuit_state"] == "open" else "healthy",
        service=f"{BRAND_NAME.lower().replace(' ', '-')}-api",
        version=__version__,
        environment=state.settings.environment,
        storage_backend=state.store_provider.backend,
        cache_backend=state.cache_service.backend,
        cache_stats=cache_stats,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
