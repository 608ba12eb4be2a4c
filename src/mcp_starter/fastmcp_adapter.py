"""Adapters for exposing the dispatcher via FastMCP.

Protocol requests are answered by :class:`DispatcherMiddleware`, which forwards
listings, tool calls and resource reads to the dispatcher. The dispatcher
therefore rebuilds its registries and performs lookups on every request, and
failures always reach the client as the JSON error envelope.
"""

from __future__ import annotations

import json
from typing import Any

import mcp.types
from fastmcp import FastMCP
from fastmcp.exceptions import ResourceError, ToolError
from fastmcp.resources import Resource
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import TextContent

from mcp_starter.context import new_request_context
from mcp_starter.errors import create_error_response
from mcp_starter.server import Dispatcher

SERVER_NAME = "mcp-starter-server"


def _text_blocks(result: dict[str, Any]) -> list[TextContent]:
    return [
        TextContent(type="text", text=str(block.get("text", "")))
        for block in result.get("content", [])
        if block.get("type") == "text"
    ]


async def call_dispatched_tool(
    dispatcher: Dispatcher, name: str, arguments: dict[str, Any] | None
) -> ToolResult:
    """Run a tool through the dispatcher and map its outcome to FastMCP.

    Raises:
        ToolError: With the JSON error envelope for hard failures, or with the
            handler's own text for results flagged ``isError``.
    """
    context = new_request_context()
    try:
        result = await dispatcher.call_tool(name, arguments, context)
    except Exception as exc:
        envelope = create_error_response(exc, context.request_id)
        raise ToolError(json.dumps(envelope)) from exc

    blocks = _text_blocks(result)
    if result.get("isError"):
        raise ToolError("\n".join(block.text for block in blocks))
    return ToolResult(content=blocks)


async def read_dispatched_resource(
    dispatcher: Dispatcher, uri: str
) -> list[dict[str, Any]]:
    """Read a resource through the dispatcher, mapping failures to FastMCP."""
    context = new_request_context(resource_path=uri, access_type="read")
    try:
        result = await dispatcher.read_resource(uri, context)
    except Exception as exc:
        envelope = create_error_response(exc, context.request_id)
        raise ResourceError(json.dumps(envelope)) from exc
    return result["contents"]


class DispatchedTool(Tool):
    """FastMCP view of a listed tool whose calls go through the dispatcher."""

    def __init__(self, metadata: dict[str, Any], dispatcher: Dispatcher) -> None:
        """Create a FastMCP tool from the dispatcher's tool metadata."""
        super().__init__(
            name=metadata["name"],
            description=metadata["description"],
            parameters=metadata["inputSchema"],
            tags=set(),
        )
        self._dispatcher = dispatcher

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        return await call_dispatched_tool(self._dispatcher, self.name, arguments)


class DispatchedResource(Resource):
    """FastMCP view of a listed resource whose reads go through the dispatcher."""

    def __init__(self, metadata: dict[str, Any], dispatcher: Dispatcher) -> None:
        """Create a FastMCP resource from the dispatcher's resource metadata."""
        super().__init__(
            uri=metadata["uri"],
            name=metadata["name"],
            description=metadata["description"],
            mime_type=metadata["mimeType"],
        )
        self._dispatcher = dispatcher
        self._uri = metadata["uri"]

    async def read(self) -> str:
        contents = await read_dispatched_resource(self._dispatcher, self._uri)
        return "\n".join(str(item.get("text", "")) for item in contents)


class DispatcherMiddleware(Middleware):
    """Answer tool and resource requests from the dispatcher.

    ``call_next`` is never invoked: the dispatcher is the only source of
    capabilities, so FastMCP's own managers stay empty.
    """

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    async def on_list_tools(
        self,
        context: MiddlewareContext[mcp.types.ListToolsRequest],
        call_next: CallNext[mcp.types.ListToolsRequest, list[Tool]],
    ) -> list[Tool]:
        try:
            listing = await self._dispatcher.list_tools()
        except Exception as exc:
            raise ToolError(json.dumps(create_error_response(exc))) from exc
        return [DispatchedTool(tool, self._dispatcher) for tool in listing["tools"]]

    async def on_call_tool(
        self,
        context: MiddlewareContext[mcp.types.CallToolRequestParams],
        call_next: CallNext[mcp.types.CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        return await call_dispatched_tool(
            self._dispatcher, context.message.name, context.message.arguments
        )

    async def on_list_resources(
        self,
        context: MiddlewareContext[mcp.types.ListResourcesRequest],
        call_next: CallNext[mcp.types.ListResourcesRequest, list[Resource]],
    ) -> list[Resource]:
        try:
            listing = await self._dispatcher.list_resources()
        except Exception as exc:
            raise ResourceError(json.dumps(create_error_response(exc))) from exc
        return [
            DispatchedResource(resource, self._dispatcher)
            for resource in listing["resources"]
        ]

    async def on_read_resource(
        self,
        context: MiddlewareContext[mcp.types.ReadResourceRequestParams],
        call_next: CallNext[mcp.types.ReadResourceRequestParams, list[ReadResourceContents]],
    ) -> list[ReadResourceContents]:
        contents = await read_dispatched_resource(
            self._dispatcher, str(context.message.uri)
        )
        return [
            ReadResourceContents(
                content=str(item.get("text", "")), mime_type=item.get("mimeType")
            )
            for item in contents
        ]


def build_fastmcp_app(dispatcher: Dispatcher) -> FastMCP:
    """Create a FastMCP server whose requests are all answered by ``dispatcher``."""
    app = FastMCP(
        name=SERVER_NAME,
        instructions="Text utilities and server resources over the Model Context Protocol.",
    )
    app.add_middleware(DispatcherMiddleware(dispatcher))
    return app
