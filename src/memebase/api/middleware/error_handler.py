"""Exception handlers mapping domain errors to API responses."""

from typing import Dict, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ...exceptions.base import MemebaseError, ValidationFailedError
from ...exceptions.database import DocumentNotFoundError, EditConflictError
from ...utils.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"
EDIT_CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"
SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"
RATE_LIMIT_MESSAGE = "rate limit exceeded"


def error_response(
    status_code: int,
    error: Union[str, Dict[str, str]],
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


async def not_found_handler(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)


async def edit_conflict_handler(request: Request, exc: EditConflictError) -> JSONResponse:
    return error_response(status.HTTP_409_CONFLICT, EDIT_CONFLICT_MESSAGE)


async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.field_errors)


async def server_error_handler(request: Request, exc: MemebaseError) -> JSONResponse:
    """Log the failure with request context and hide its details from the caller."""
    logger.error(
        "server_error",
        method=request.method,
        uri=str(request.url.path),
        error=exc.to_dict(),
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Recover from an unexpected exception and close the connection."""
    logger.error(
        "unhandled_error",
        method=request.method,
        uri=str(request.url.path),
        error=str(exc),
        exc_info=exc,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        SERVER_ERROR_MESSAGE,
        headers={"Connection": "close"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers; the most specific exception type wins."""
    app.add_exception_handler(DocumentNotFoundError, not_found_handler)
    app.add_exception_handler(EditConflictError, edit_conflict_handler)
    app.add_exception_handler(ValidationFailedError, validation_failed_handler)
    app.add_exception_handler(MemebaseError, server_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
