"""Store-related exceptions."""
from typing import Any, Optional

from .base import ErrorCode, MemebaseError


class StoreError(MemebaseError):
    """Catch-all for connectivity, timeout and unexpected backend failures."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.STORE_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize store error."""
        super().__init__(message, code, **kwargs)


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        """Initialize connection error."""
        super().__init__(message, ErrorCode.STORE_CONNECTION_ERROR, **kwargs)


class StoreTimeoutError(StoreError):
    """Raised when a store call exceeds its timeout budget."""

    def __init__(self, operation: str, timeout: Optional[float] = None, **kwargs: Any) -> None:
        """
        Initialize timeout error.

        Args:
            operation: Name of the store operation that timed out
            timeout: The budget in seconds, if known
        """
        message = f"store operation {operation!r} timed out"
        if timeout is not None:
            message += f" after {timeout:g}s"
        super().__init__(
            message,
            ErrorCode.STORE_TIMEOUT_ERROR,
            details={"operation": operation, "timeout": timeout},
            **kwargs,
        )


class DocumentNotFoundError(MemebaseError):
    """Raised when an identifier is malformed or matches no document."""

    def __init__(self, entity_id: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            entity_id: The identifier that was looked up, if any.
        """
        message = "document not found"
        if entity_id is not None:
            message = f"document {entity_id!r} not found"
        super().__init__(
            message,
            ErrorCode.DOCUMENT_NOT_FOUND,
            details={"entity_id": entity_id},
        )


class EditConflictError(MemebaseError):
    """Raised when a version-guarded write matches no document."""

    def __init__(self, entity_id: str, expected_version: int) -> None:
        """
        Initialize the exception.

        Args:
            entity_id: The identifier of the record being updated.
            expected_version: The version the caller based its update on.
        """
        super().__init__(
            "edit conflict",
            ErrorCode.EDIT_CONFLICT,
            details={"entity_id": entity_id, "expected_version": expected_version},
        )
