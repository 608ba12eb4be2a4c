"""Structured error types and error-normalization helpers.

Every failure that leaves the server is described by a stable machine code and
an HTTP-style status classification. :func:`create_error_response` is the single
place where arbitrary exceptions are normalized into the JSON error envelope.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import secrets
import time
import traceback
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypedDict

logger = logging.getLogger("mcp_starter.errors")

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_request_counter = itertools.count()
_COUNTER_WIDTH = 6
_RANDOM_WIDTH = 8


class ErrorCode(str, Enum):
    """Stable error codes exposed to protocol clients."""

    MCP_ERROR = "MCP_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    RESOURCE_ACCESS_ERROR = "RESOURCE_ACCESS_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorBody(TypedDict, total=False):
    """Inner payload of the error envelope."""

    code: str
    message: str
    details: dict[str, Any]
    timestamp: str


class ErrorResponse(TypedDict):
    """Structured JSON envelope for failed requests."""

    error: ErrorBody


class MCPError(Exception):
    """Base error carrying a stable code, status code and optional details."""

    code: str = ErrorCode.MCP_ERROR.value
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Create a structured error."""
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    @property
    def name(self) -> str:
        """Class name of the error, mirrored into serialized payloads."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Return the structured error payload."""
        payload: dict[str, Any] = {
            "name": self.name,
            "message": self.message,
            "code": self.code,
            "statusCode": self.status_code,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(MCPError):
    """Input failed schema validation."""

    code = ErrorCode.VALIDATION_ERROR.value
    status_code = 400


class ToolExecutionError(MCPError):
    """A tool handler failed while executing."""

    code = ErrorCode.TOOL_EXECUTION_ERROR.value
    status_code = 500

    def __init__(self, message: str, tool_name: str) -> None:
        """Create an error tagged with the failing tool name."""
        super().__init__(message, {"toolName": tool_name})
        self.tool_name = tool_name


class ResourceAccessError(MCPError):
    """A resource could not be located or read."""

    code = ErrorCode.RESOURCE_ACCESS_ERROR.value
    status_code = 500

    def __init__(self, message: str, resource_uri: str) -> None:
        """Create an error tagged with the resource URI."""
        super().__init__(message, {"resourceUri": resource_uri})
        self.resource_uri = resource_uri


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _trace_surrogate(error: object) -> str:
    if isinstance(error, BaseException):
        lines = traceback.format_exception(type(error), error, error.__traceback__)
        return "".join(lines)
    return repr(error)


def create_error_response(error: object, request_id: str | None = None) -> ErrorResponse:
    """Convert any raised value into the protocol error envelope.

    Taxonomy members keep their code, message and details. Anything else is
    classified as ``INTERNAL_ERROR`` with a stack trace in the details. This
    function never raises.
    """
    try:
        if isinstance(error, MCPError):
            body: ErrorBody = {
                "code": str(error.code),
                "message": error.message,
                "timestamp": _timestamp(),
            }
            if error.details is not None:
                body["details"] = error.details
        else:
            body = {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "message": get_error_message(error),
                "details": {
                    "type": type(error).__name__,
                    "stack": _trace_surrogate(error),
                },
                "timestamp": _timestamp(),
            }
        if request_id is not None:
            logger.debug("Created error response for request %s: %s", request_id, body["code"])
        return {"error": body}
    except Exception:  # pragma: no cover - last-resort fallback
        return {
            "error": {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "message": UNKNOWN_ERROR_MESSAGE,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }


def _to_base36(value: int, width: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)).rjust(width, "0")


def generate_request_id() -> str:
    """Return a process-unique request identifier ``req_<millis>_<base36>``.

    The random part has a fixed width, so distinct counter values always give
    distinct suffixes within the same millisecond.
    """
    millis = time.time_ns() // 1_000_000
    counter = _to_base36(next(_request_counter), _COUNTER_WIDTH)
    noise = _to_base36(secrets.randbits(40), _RANDOM_WIDTH)
    return f"req_{millis}_{counter}{noise}"


def get_error_message(error: object) -> str:
    """Extract a human-readable message from any raised value."""
    if isinstance(error, MCPError):
        return error.message
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    return UNKNOWN_ERROR_MESSAGE


def install_global_error_handlers(
    loop: asyncio.AbstractEventLoop,
    on_fatal: Callable[[BaseException | None], None] | None = None,
) -> None:
    """Log failures that no task observed.

    ``on_fatal`` is only passed by the top-level entry point; it decides how the
    process terminates.
    """

    def handler(_loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exception = context.get("exception")
        message = context.get("message", "Unhandled asynchronous failure")
        logger.error(
            "Unhandled asynchronous failure: %s",
            get_error_message(exception) if exception is not None else message,
            exc_info=exception,
        )
        if on_fatal is not None:
            on_fatal(exception)

    loop.set_exception_handler(handler)
