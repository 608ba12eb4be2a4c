"""Per-request identity threaded through logging and error reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from mcp_starter.errors import generate_request_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RequestContext:
    """Correlation data owned by a single request.

    Attributes:
        request_id: Identifier used to correlate log lines and errors.
        timestamp: ISO-8601 time at which the request was received.
        resource_path: URI of the resource being read, if any.
        access_type: Kind of resource access, if any.

    """

    request_id: str = field(default_factory=generate_request_id)
    timestamp: str = field(default_factory=_now)
    resource_path: str | None = None
    access_type: str | None = None


def new_request_context(
    resource_path: str | None = None, access_type: str | None = None
) -> RequestContext:
    """Create a fresh context with a new request id."""
    return RequestContext(resource_path=resource_path, access_type=access_type)
