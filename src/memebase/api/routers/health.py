"""Health check router."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...config.config import Settings
from ..dependencies import get_app_settings

router = APIRouter()


@router.get("/healthcheck", response_model=Dict[str, Any])
async def health_check(settings: Settings = Depends(get_app_settings)) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Dict containing availability and system information
    """
    return {
        "status": "available",
        "system_info": {
            "environment": settings.app_env,
            "version": settings.app_version,
        },
    }
