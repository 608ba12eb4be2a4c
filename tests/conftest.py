"""Shared test fixtures."""

from __future__ import annotations

import logging
import pathlib
from collections.abc import Iterator
from typing import Any

import pytest

from mcp_starter.config import ENV_VARS, reset_config_cache
from mcp_starter.context import RequestContext
from mcp_starter.resources import setup_resources
from mcp_starter.server import Dispatcher
from mcp_starter.tooling import ToolDefinition, ToolParameters, text_result
from mcp_starter.tools import setup_tools


@pytest.fixture()
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate configuration from the developer's environment."""
    for variable in ENV_VARS.values():
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "error")
    reset_config_cache()
    yield
    reset_config_cache()
    package_logger = logging.getLogger("mcp_starter")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Provide a directory containing a README."""
    (tmp_path / "README.md").write_text("# Sample project\n", encoding="utf-8")
    return tmp_path


class EchoParams(ToolParameters):
    """Parameters for the echo test tool."""

    message: str


def echo_tool() -> ToolDefinition:
    """Tool returning its message together with the request id it observed."""

    async def handler(arguments: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        return {
            "content": [{"type": "text", "text": str(arguments.get("message"))}],
            "requestId": context.request_id,
        }

    return ToolDefinition(
        name="echo",
        description="Echo the provided message.",
        parameters_model=EchoParams,
        handler=handler,
    )


def failing_tool() -> ToolDefinition:
    """Tool whose handler always raises."""

    async def handler(_: dict[str, Any], __: RequestContext) -> dict[str, Any]:
        raise RuntimeError("disk on fire")

    return ToolDefinition(
        name="explode",
        description="Always fails.",
        parameters_model=ToolParameters,
        handler=handler,
    )


def soft_failing_tool() -> ToolDefinition:
    """Tool reporting a handler-level error result."""

    async def handler(_: dict[str, Any], __: RequestContext) -> dict[str, Any]:
        return text_result("Error: nothing to do", is_error=True)

    return ToolDefinition(
        name="grumble",
        description="Reports an error result.",
        parameters_model=ToolParameters,
        handler=handler,
    )


@pytest.fixture()
def dispatcher(project_dir: pathlib.Path) -> Dispatcher:
    """Dispatcher over the test tools, the real tools and the real resources."""
    return Dispatcher(
        tool_factory=lambda: [
            echo_tool(),
            failing_tool(),
            soft_failing_tool(),
            *setup_tools(),
        ],
        resource_factory=lambda: setup_resources(project_dir),
    )
