"""Request dispatch for MCP tools and resources.

The dispatcher receives decoded protocol requests, validates their outer shape,
resolves the target capability against a freshly built registry and awaits the
matching handler. Hard failures are raised to the transport binding; results
flagged with ``isError`` are handler-reported soft failures and pass through.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mcp_starter.context import RequestContext, new_request_context
from mcp_starter.errors import (
    MCPError,
    ResourceAccessError,
    ToolExecutionError,
    ValidationError,
    generate_request_id,
    get_error_message,
)
from mcp_starter.logger import get_logger, with_context
from mcp_starter.resources import setup_resources
from mcp_starter.tooling import ResourceDefinition, ToolDefinition, build_registry
from mcp_starter.tools import setup_tools
from mcp_starter.validation import validate_input

logger = get_logger("server")

ToolFactory = Callable[[], Sequence[ToolDefinition]]
ResourceFactory = Callable[[], Sequence[ResourceDefinition]]


class CallToolParams(BaseModel):
    """Outer shape of a tools/call request."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    arguments: dict[str, Any] | None = None


class ReadResourceParams(BaseModel):
    """Outer shape of a resources/read request."""

    model_config = ConfigDict(extra="allow")

    uri: str = Field(min_length=1)


def _reject(prefix: str, result: Any) -> ValidationError:
    return ValidationError(
        f"{prefix}: {result.summary()}",
        {"errors": [vars(error) for error in result.errors]},
    )


class Dispatcher:
    """Resolve and execute capability requests.

    Registries are rebuilt from the factories on every call, so they always
    reflect the current declarations and no state is shared between requests.
    """

    def __init__(
        self,
        tool_factory: ToolFactory = setup_tools,
        resource_factory: ResourceFactory = setup_resources,
    ) -> None:
        """Create a dispatcher over the given declaration factories."""
        self._tool_factory = tool_factory
        self._resource_factory = resource_factory

    def tool_registry(self) -> dict[str, ToolDefinition]:
        """Build the tool registry keyed by tool name."""
        return build_registry(self._tool_factory(), lambda tool: tool.name)

    def resource_registry(self) -> dict[str, ResourceDefinition]:
        """Build the resource registry keyed by URI."""
        return build_registry(self._resource_factory(), lambda resource: resource.uri)

    async def list_tools(self) -> dict[str, list[dict[str, Any]]]:
        """List tool metadata without handlers."""
        log = with_context(generate_request_id(), logger)
        log.info("Listing available tools")
        try:
            tools = [tool.metadata() for tool in self.tool_registry().values()]
        except Exception as exc:
            log.error("Failed to list tools", exc_info=exc)
            raise
        log.info("Found %d tools: %s", len(tools), [tool["name"] for tool in tools])
        return {"tools": tools}

    async def list_resources(self) -> dict[str, list[dict[str, Any]]]:
        """List resource metadata without handlers."""
        log = with_context(generate_request_id(), logger)
        log.info("Listing available resources")
        try:
            resources = [
                resource.metadata() for resource in self.resource_registry().values()
            ]
        except Exception as exc:
            log.error("Failed to list resources", exc_info=exc)
            raise
        log.info(
            "Found %d resources: %s",
            len(resources),
            [resource["uri"] for resource in resources],
        )
        return {"resources": resources}

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> dict[str, Any]:
        """Execute a tool by name.

        Args:
            name: Name of the tool to execute.
            arguments: Arguments forwarded to the tool handler.
            context: Request context; a fresh one is created when omitted.

        Raises:
            ValidationError: If the request itself is malformed.
            MCPError: If no tool with the given name is declared.
            ToolExecutionError: If the handler raises a non-taxonomy error.

        Returns:
            The handler result, including handler-reported soft failures.

        """
        context = context or new_request_context()
        log = with_context(context.request_id, logger)
        log.info("Executing tool: %s", name)
        try:
            validation = validate_input(
                CallToolParams, {"name": name, "arguments": arguments}
            )
            if not validation.success:
                raise _reject("Invalid tool request", validation)

            tool = self.tool_registry().get(name)
            if tool is None:
                raise MCPError(f"Tool not found: {name}")

            try:
                result = await tool.handler(arguments or {}, context)
            except MCPError:
                raise
            except Exception as exc:
                raise ToolExecutionError(get_error_message(exc), name) from exc
            if not isinstance(result, Mapping):
                raise ToolExecutionError(
                    f"Tool returned {type(result).__name__} instead of a result mapping",
                    name,
                )
        except Exception as exc:
            log.error("Tool execution failed: %s", name, exc_info=exc)
            raise

        if result.get("isError"):
            log.warning("Tool reported an error result: %s", name)
        else:
            log.info("Tool executed successfully: %s", name)
        return result

    async def read_resource(
        self, uri: str, context: RequestContext | None = None
    ) -> dict[str, list[dict[str, Any]]]:
        """Read a resource by URI.

        Raises:
            ValidationError: If the request itself is malformed.
            ResourceAccessError: If the resource is missing or its handler fails.

        """
        context = context or new_request_context(resource_path=uri, access_type="read")
        log = with_context(context.request_id, logger)
        log.info("Reading resource: %s", uri)
        try:
            validation = validate_input(ReadResourceParams, {"uri": uri})
            if not validation.success:
                raise _reject("Invalid resource request", validation)

            resource = self.resource_registry().get(uri)
            if resource is None:
                raise ResourceAccessError(f"Resource not found: {uri}", uri)

            try:
                contents = await resource.handler(uri, context)
            except MCPError:
                raise
            except Exception as exc:
                raise ResourceAccessError(get_error_message(exc), uri) from exc
        except Exception as exc:
            log.error("Resource read failed: %s", uri, exc_info=exc)
            raise

        log.info("Resource read successfully: %s", uri)
        return {"contents": contents}

    async def catalog(self) -> dict[str, list[dict[str, Any]]]:
        """Combine tool and resource listings for discovery."""
        return {**(await self.list_tools()), **(await self.list_resources())}
