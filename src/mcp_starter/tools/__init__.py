"""Tool declarations exposed by the server."""

from __future__ import annotations

from mcp_starter.tooling import ToolDefinition
from mcp_starter.tools.text_processing import text_processing_tool


def setup_tools() -> list[ToolDefinition]:
    """Instantiate all tool definitions."""
    return [
        text_processing_tool(),
    ]
