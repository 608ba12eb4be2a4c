"""Logging setup with request-scoped context.

Log records go to stderr; stdout carries the protocol stream when the server
runs over stdio.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

from mcp_starter.config import ServerConfig

ROOT_LOGGER = "mcp_starter"

LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class RequestIdFilter(logging.Filter):
    """Guarantee every record has a ``request_id`` attribute for formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Logger bound to a single request id."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra or {})
        kwargs["extra"] = extra
        return msg, kwargs

    @property
    def request_id(self) -> str:
        return str((self.extra or {}).get("request_id", "-"))


def initialize_logger(config: ServerConfig) -> logging.Logger:
    """Configure the package logger from the server configuration."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(LEVELS[config.log_level])
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"
        )
    )
    logger.addHandler(handler)
    logger.propagate = config.environment == "test"
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the package namespace."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def with_context(
    request_id: str, logger: logging.Logger | None = None
) -> RequestLoggerAdapter:
    """Return a logger that stamps ``request_id`` on every record."""
    return RequestLoggerAdapter(logger or get_logger(), {"request_id": request_id})
