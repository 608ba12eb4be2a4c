"""Resource declarations exposed by the server."""

from __future__ import annotations

import json
import pathlib
from typing import Any

from mcp_starter.config import get_config
from mcp_starter.context import RequestContext
from mcp_starter.errors import ResourceAccessError
from mcp_starter.logger import get_logger, with_context
from mcp_starter.tooling import ResourceDefinition
from mcp_starter.validation import validate_file_path

logger = get_logger("resources")


def server_config_resource() -> ResourceDefinition:
    """Expose the active server configuration."""

    async def handler(uri: str, context: RequestContext) -> list[dict[str, Any]]:
        with_context(context.request_id, logger).debug("Serving configuration")
        payload = get_config().public_view()
        return [
            {
                "uri": uri,
                "mimeType": "application/json",
                "text": json.dumps(payload, indent=2),
            }
        ]

    return ResourceDefinition(
        uri="config://server",
        name="Server configuration",
        description="Current server configuration settings",
        handler=handler,
    )


def project_file_resource(
    relative_path: str, base_dir: pathlib.Path, uri: str | None = None
) -> ResourceDefinition:
    """Expose a text file below ``base_dir``."""
    cleaned = validate_file_path(relative_path)
    uri = uri or f"file:///{cleaned}"
    mime_type = "text/markdown" if cleaned.endswith(".md") else "text/plain"

    async def handler(uri: str, context: RequestContext) -> list[dict[str, Any]]:
        path = base_dir / cleaned
        with_context(context.request_id, logger).debug("Reading file %s", path)
        if not path.is_file():
            raise ResourceAccessError(f"File not found: {cleaned}", uri)
        return [
            {
                "uri": uri,
                "mimeType": mime_type,
                "text": path.read_text(encoding="utf-8"),
            }
        ]

    return ResourceDefinition(
        uri=uri,
        name=cleaned,
        description=f"Contents of {cleaned}",
        handler=handler,
        mime_type=mime_type,
    )


def setup_resources(base_dir: pathlib.Path | None = None) -> list[ResourceDefinition]:
    """Instantiate all resource definitions."""
    root = base_dir if base_dir is not None else pathlib.Path.cwd()
    return [
        server_config_resource(),
        project_file_resource("README.md", root, uri="docs://readme"),
    ]
