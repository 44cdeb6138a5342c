"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter

from lptrack.api.dependencies import SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: SettingsDep) -> dict[str, Any]:
    """Liveness probe with version and configured chain."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "chain": settings.chain,
    }
