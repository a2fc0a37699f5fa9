"""Structured logging setup for the agent orchestrator."""

import functools
import inspect
import logging
from contextvars import ContextVar
from typing import Any, Dict, List, Optional
from pathlib import Path


DEFAULT_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[session=%(session_id)s phase=%(phase)s] %(message)s"
)

# Context is task-local so concurrent sessions never see each other's fields.
_log_context: ContextVar[Dict[str, Any]] = ContextVar("codepilot_log_context", default={})

# Fields always present on records so format strings can reference them.
_DEFAULT_FIELDS = {"session_id": "-", "phase": "-"}


class ContextFilter(logging.Filter):
    """Add context information to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context fields to log record."""
        fields = dict(_DEFAULT_FIELDS)
        fields.update(_log_context.get())
        for key, value in fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logging(
    level: str = "INFO",
    log_format: str = DEFAULT_FORMAT,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route all records through a context-aware formatter on stderr and,
    optionally, a log file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level name; unknown names fall back to INFO
        log_format: Format string; may reference %(session_id)s and %(phase)s
        log_file: Optional file path, parent directories are created

    Returns:
        The root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(log_format)
    context_filter = ContextFilter()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    # boto logs every request at INFO
    for noisy in ("botocore", "boto3", "urllib3"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    return root_logger


def set_context(**kwargs):
    """
    Set context fields for all subsequent log messages in the current task.

    Example:
        set_context(session_id="a1b2c3", phase="developer")
        logger.info("Invoking agent")  # Will include session_id and phase

    Args:
        **kwargs: Context key-value pairs
    """
    context = dict(_log_context.get())
    context.update(kwargs)
    _log_context.set(context)


def clear_context():
    """Clear all context fields."""
    _log_context.set({})


def with_context(**context_kwargs):
    """
    Decorator to add context to all log messages within a function.

    Works for plain and ``async`` functions; the previous context is
    restored when the call returns.

    Args:
        **context_kwargs: Context key-value pairs
    """
    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                token = _log_context.set({**_log_context.get(), **context_kwargs})
                try:
                    return await func(*args, **kwargs)
                finally:
                    _log_context.reset(token)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            token = _log_context.set({**_log_context.get(), **context_kwargs})
            try:
                return func(*args, **kwargs)
            finally:
                _log_context.reset(token)

        return wrapper
    return decorator
