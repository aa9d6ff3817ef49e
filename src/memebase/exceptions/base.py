"""Base exceptions and error codes for Memebase."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for different types of errors."""

    # Store Errors (1000-1999)
    STORE_ERROR = "MEME-1000"
    STORE_CONNECTION_ERROR = "MEME-1001"
    STORE_TIMEOUT_ERROR = "MEME-1002"

    # Document Errors (2000-2999)
    DOCUMENT_NOT_FOUND = "MEME-2000"
    EDIT_CONFLICT = "MEME-2001"

    # Validation Errors (4000-4999)
    VALIDATION_ERROR = "MEME-4000"

    # General Errors (9000-9999)
    UNKNOWN_ERROR = "MEME-9000"


class MemebaseError(Exception):
    """Base exception class for Memebase."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize base exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            original_error: Original exception if this is a wrapped exception
        """
        self.message = message
        self.code = code
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary representation.

        Returns:
            Dictionary containing error details
        """
        error_dict = {
            "code": self.code.value,
            "message": self.message,
            "type": self.__class__.__name__,
        }

        if self.details:
            error_dict["details"] = self.details

        if self.original_error:
            error_dict["original_error"] = str(self.original_error)

        return error_dict


class ValidationFailedError(MemebaseError):
    """Raised when input fails validation; carries every violated field."""

    def __init__(self, field_errors: Dict[str, str]) -> None:
        """
        Initialize validation error.

        Args:
            field_errors: Mapping of field name to the constraint it violated
        """
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(
            f"validation failed for: {fields}",
            ErrorCode.VALIDATION_ERROR,
            details={"field_errors": self.field_errors},
        )
