"""Exception hierarchy for Memebase."""

from .base import ErrorCode, MemebaseError, ValidationFailedError
from .database import (
    DocumentNotFoundError,
    EditConflictError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)

__all__ = [
    "ErrorCode",
    "MemebaseError",
    "ValidationFailedError",
    "StoreError",
    "StoreConnectionError",
    "StoreTimeoutError",
    "DocumentNotFoundError",
    "EditConflictError",
]
