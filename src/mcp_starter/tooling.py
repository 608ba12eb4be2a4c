"""Capability declarations for tools and resources."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Dict, List, TypeVar

from pydantic import BaseModel, ConfigDict

from mcp_starter.context import RequestContext
from mcp_starter.errors import MCPError, ValidationError
from mcp_starter.validation import validate_input

ToolHandler = Callable[[Dict[str, Any], RequestContext], Awaitable[Dict[str, Any]]]
ResourceHandler = Callable[[str, RequestContext], Awaitable[List[Dict[str, Any]]]]

D = TypeVar("D")


class ToolParameters(BaseModel):
    """Base parameters schema for MCP tools."""

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True)
class ToolDefinition:
    """Description of a tool that can be exposed by the server.

    Attributes:
        name: Unique name of the tool.
        description: Human-readable description of the tool purpose.
        parameters_model: Pydantic model describing the tool input.
        handler: Coroutine function executing the tool logic.
    """

    name: str
    description: str
    parameters_model: type[ToolParameters]
    handler: ToolHandler

    def validate(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and coerce incoming tool arguments.

        Args:
            arguments: Input arguments provided for the tool.

        Raises:
            ValidationError: If argument validation fails.

        Returns:
            Validated argument dictionary.
        """

        result = validate_input(self.parameters_model, arguments)
        if not result.success:
            raise ValidationError(
                f"Invalid arguments for tool '{self.name}': {result.summary()}",
                {"errors": [vars(error) for error in result.errors]},
            )
        return result.data

    def input_schema(self) -> Dict[str, Any]:
        """Return the JSON schema of the tool input."""

        return self.parameters_model.model_json_schema()

    def metadata(self) -> Dict[str, Any]:
        """Return a discovery-friendly description of the tool."""

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


@dataclass(frozen=True)
class ResourceDefinition:
    """Description of a readable resource."""

    uri: str
    name: str
    description: str
    handler: ResourceHandler
    mime_type: str = "application/json"

    def metadata(self) -> Dict[str, Any]:
        """Return a discovery-friendly description of the resource."""

        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


def build_registry(declarations: Iterable[D], key: Callable[[D], str]) -> dict[str, D]:
    """Index declarations by name or URI, preserving declaration order.

    Raises:
        MCPError: If two declarations share the same key.
    """
    registry: dict[str, D] = {}
    for declaration in declarations:
        identifier = key(declaration)
        if identifier in registry:
            raise MCPError(f"Duplicate capability '{identifier}'")
        registry[identifier] = declaration
    return registry


def text_result(text: str, *, is_error: bool = False) -> Dict[str, Any]:
    """Build an MCP tool result with a single text block."""

    result: Dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result
