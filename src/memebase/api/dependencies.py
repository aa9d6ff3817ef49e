"""API dependencies."""

from fastapi import Request

from ..config.config import Settings
from ..repositories.meme_repository import MemeRepository


def get_repository(request: Request) -> MemeRepository:
    """
    Get the repository created during application startup.

    Returns:
        MemeRepository: Shared repository instance
    """
    return request.app.state.repository


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings
