"""Logging setup driven by environment variables: JSON or text lines on stdout."""

import logging
import os
import sys
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger import jsonlogger

# Correlation id of the operation in progress (async-safe)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Driver chatter (server selection, heartbeats, pool events)
QUIET_LOGGERS = ("pymongo", "pymongo.serverSelection", "pymongo.connection", "pymongo.topology")


class CorrelationIdFilter(logging.Filter):
    """Stamp every record passing the handler with the current correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = correlation_id_var.get() or "-"
        return True


class LoggingConfig:
    """Logging settings, read once from the environment."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MESSAGE_CONTENT = os.environ.get("LOG_MESSAGE_CONTENT", "true").lower() == "true"
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        """JSON formatter (LOG_FORMAT=json) or a single-line text formatter."""
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(levelname)s %(name)s %(correlation_id)s %(message)s",
                rename_fields={"levelname": "level"},
                timestamp=True,
            )
        return logging.Formatter(
            "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s"
        )

    @classmethod
    def setup_logging(cls) -> None:
        """Replace root handlers with one stdout handler."""
        root_logger = logging.getLogger()
        root_logger.setLevel(cls.level())
        root_logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(cls.level())
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(cls.build_formatter())
        root_logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
