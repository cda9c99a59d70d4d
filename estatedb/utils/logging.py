"""Structured logging for store operations: keyword fields, correlation ids, timing and contact masking."""

import hashlib
import inspect
import logging
import re
import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Optional

from estatedb.utils.logging_config import LoggingConfig, correlation_id_var, get_logger

_EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s().-]{7,}\d")

# Document fields holding contact details
CONTACT_FIELDS = ("email", "phone", "attendee_email", "attendee_phone")


def generate_correlation_id() -> str:
    """New id for tracing one store operation across log lines."""
    return f"op_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Run a block under a correlation id; the previous id is restored on exit."""
    token = correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield correlation_id_var.get()
    finally:
        correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Mask emails and phone numbers in free text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = _EMAIL_PATTERN.sub("[REDACTED_EMAIL]", text)
    return _PHONE_PATTERN.sub("[REDACTED_PHONE]", text)


def mask_identifier(value: Optional[str]) -> Optional[str]:
    """Replace an email or phone with a short stable hash (keeps a prefix of long values)."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not value:
        return value

    hashed = hashlib.sha256(value.encode()).hexdigest()[:8]
    if len(value) > 12:
        return f"{value[:4]}...{hashed}"
    return f"...{hashed}"


def redact_contact_fields(document: dict) -> dict:
    """Shallow copy of a document with its contact fields masked."""
    return {
        key: mask_identifier(value) if key in CONTACT_FIELDS and isinstance(value, str) else value
        for key, value in document.items()
    }


def sanitize_message_text(text: str, max_length: int = 500) -> Optional[str]:
    """Inquiry message text fit for a log line: truncated and masked, or None when disabled."""
    if not LoggingConfig.LOG_MESSAGE_CONTENT or not text:
        return None

    if len(text) > max_length:
        text = text[:max_length] + "..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """
    Logger wrapper whose keyword arguments become record attributes.

    ``bind`` returns a child carrying fixed fields (backend, collection) on
    every line; the current correlation id is added when one is set.
    """

    def __init__(self, logger: logging.Logger, **bound: Any):
        self.logger = logger
        self.bound = bound

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(self.logger, **{**self.bound, **fields})

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {**self.bound, **fields}
        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **fields)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Time a block; warns when it exceeds LOG_SLOW_OPERATION_THRESHOLD_MS."""
    log = (logger or get_structured_logger(__name__)).bind(operation=operation_name, **context)
    log.debug(f"Starting {operation_name}")
    started = time.perf_counter()

    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        log.info(f"Completed {operation_name}", processing_time_ms=elapsed_ms)

        threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        if elapsed_ms > threshold_ms:
            log.warning(
                f"Slow operation detected: {operation_name}",
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold_ms,
            )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator form of log_timing for plain and async functions."""
    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with log_timing(op_name, logger=log):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with log_timing(op_name, logger=log):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator
