"""Memebase: catalog service for short multimedia records."""

__version__ = "1.0.0"
