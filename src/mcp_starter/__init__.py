"""Model Context Protocol server exposing text tools and server resources."""

__version__ = "1.0.0"

from mcp_starter.context import RequestContext  # noqa: E402
from mcp_starter.errors import (  # noqa: E402
    MCPError,
    ResourceAccessError,
    ToolExecutionError,
    ValidationError,
    create_error_response,
)
from mcp_starter.server import Dispatcher  # noqa: E402
from mcp_starter.tooling import (  # noqa: E402
    ResourceDefinition,
    ToolDefinition,
    ToolParameters,
)

__all__ = [
    "Dispatcher",
    "MCPError",
    "RequestContext",
    "ResourceAccessError",
    "ResourceDefinition",
    "ToolDefinition",
    "ToolExecutionError",
    "ToolParameters",
    "ValidationError",
    "__version__",
    "create_error_response",
]
