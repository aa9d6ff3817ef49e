"""Repositories."""

from .meme_repository import MemeRepository

__all__ = ["MemeRepository"]
