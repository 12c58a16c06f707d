"""
Logging utilities for oss-uploader.

Console output is colorized through coloredlogs for interactive runs; set
LOG_FORMAT=json to get one JSON object per line instead (CI jobs, log
shippers). Every record of one CLI invocation carries the same correlation
ID so interleaved runs can be told apart.

Example usage:
    >>> from oss_uploader.utils.logging import get_logger, log_function_call
    >>>
    >>> logger = get_logger(__name__)
    >>>
    >>> @log_function_call
    >>> def upload(path: str) -> bool:
    >>>     logger.info("Uploading", extra={"file": path})
    >>>     return True
"""

import functools
import json
import logging
import os
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar, cast

import coloredlogs

F = TypeVar("F", bound=Callable[..., Any])

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Longest argument/return repr written by log_function_call
MAX_REPR_LENGTH = 200

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime", "taskName"}
)


def json_logging_enabled() -> bool:
    return os.getenv("LOG_FORMAT", "text").lower() == "json"


def get_correlation_id() -> str:
    """Current correlation ID; one is generated on first use."""
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = uuid.uuid4().hex[:12]
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Example output:
        {"timestamp": "2026-01-04T10:30:15.123456+00:00", "level": "INFO",
         "logger": "oss_uploader.uploader.uploader",
         "message": "Batch upload complete: 3/3 successful, 4.2 KB uploaded",
         "correlation_id": "5b0c2e91d4aa", "source": {...}, "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Configure the root logger.

    Replaces any existing root handlers, so calling it twice does not
    duplicate output.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Colorize text output (ignored for JSON output)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if enable_colors and not json_logging_enabled():
        coloredlogs.install(level=log_level, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, logger=root_logger)
        return

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    if json_logging_enabled():
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _short_repr(value: Any) -> str:
    text = repr(value)
    if len(text) > MAX_REPR_LENGTH:
        return f"{text[:MAX_REPR_LENGTH]}... ({len(text)} chars)"
    return text


def log_function_call(func: F) -> F:
    """
    Log entry, exit and failure of `func`.

    Entry and exit go out at DEBUG with the arguments and return value
    (reprs longer than MAX_REPR_LENGTH are cut). An exception is logged at
    ERROR and re-raised unchanged; the traceback is attached only when DEBUG
    is enabled.
    """
    logger = get_logger(func.__module__)
    arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = {"function": func.__name__, "correlation_id": get_correlation_id()}

        if logger.isEnabledFor(logging.DEBUG):
            arguments = [
                f"{name}={_short_repr(value)}"
                for name, value in list(zip(arg_names, args)) + list(kwargs.items())
                if name != "self"
            ]
            logger.debug(
                f"ENTER {func.__name__}({', '.join(arguments)})",
                extra={**context, "event": "function_entry"},
            )

        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            logger.error(
                f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
                extra={
                    **context,
                    "event": "function_error",
                    "duration_seconds": time.perf_counter() - start,
                    "error_type": type(error).__name__,
                },
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise

        logger.debug(
            f"EXIT {func.__name__} -> {_short_repr(result)}",
            extra={
                **context,
                "event": "function_exit",
                "duration_seconds": time.perf_counter() - start,
            },
        )
        return result

    return cast(F, wrapper)
