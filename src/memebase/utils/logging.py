"""Logging utilities."""

import inspect
import logging
import sys
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, cast

import structlog
from structlog.types import EventDict, Processor

F = TypeVar("F", bound=Callable[..., Any])

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def level_from_name(name: str) -> int:
    """Map a level name to its numeric value, defaulting to ERROR."""
    return _LEVELS.get(name.lower(), logging.ERROR)


def add_caller_info(
    _: logging.Logger,
    __: str,
    event_dict: EventDict
) -> EventDict:
    """Add caller information to log event."""
    frame = sys._getframe()
    while frame:
        module = frame.f_globals.get("__name__", "")
        if module.startswith("memebase") and module != __name__:
            event_dict.update({
                "module": module,
                "function": frame.f_code.co_name,
                "line": frame.f_lineno
            })
            break
        frame = frame.f_back
    return event_dict


def setup_logging(
    level: str = "error",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Set up structured logging.

    Args:
        level: Log level name (trace|debug|info|warning|error)
        json_format: Whether to output logs in JSON format
        log_file: Optional file to write logs to
    """
    processors: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_caller_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level_from_name(level),
        force=True,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def log_performance(func: F) -> F:
    """
    Decorator to log the duration of an async store-facing operation.

    Failures are logged with their duration and re-raised unchanged.

    Args:
        func: Coroutine function to decorate

    Returns:
        Decorated function
    """
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"log_performance expects a coroutine function, got {func!r}")

    logger = get_logger(func.__module__)

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.debug(
                "operation_failed",
                operation=func.__qualname__,
                duration_seconds=time.perf_counter() - start,
                error=str(e),
            )
            raise
        logger.debug(
            "operation_completed",
            operation=func.__qualname__,
            duration_seconds=time.perf_counter() - start,
        )
        return result

    return cast(F, wrapper)
