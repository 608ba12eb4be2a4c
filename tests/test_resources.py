"""Tests for the declared resources."""

from __future__ import annotations

import json
import pathlib

import pytest

from mcp_starter.context import new_request_context
from mcp_starter.errors import ResourceAccessError, ValidationError
from mcp_starter.resources import project_file_resource, setup_resources


def test_setup_resources_declares_config_and_readme(project_dir: pathlib.Path) -> None:
    resources = setup_resources(project_dir)

    assert [resource.uri for resource in resources] == ["config://server", "docs://readme"]
    assert resources[1].mime_type == "text/markdown"


@pytest.mark.anyio()
async def test_config_resource_serializes_settings(project_dir: pathlib.Path) -> None:
    resource = setup_resources(project_dir)[0]

    contents = await resource.handler(resource.uri, new_request_context())

    payload = json.loads(contents[0]["text"])
    assert payload["port"] == 3000
    assert payload["log_level"] == "error"


@pytest.mark.anyio()
async def test_readme_resource_reads_file(project_dir: pathlib.Path) -> None:
    resource = setup_resources(project_dir)[1]

    contents = await resource.handler(resource.uri, new_request_context())

    assert contents[0]["text"] == "# Sample project\n"
    assert contents[0]["uri"] == "docs://readme"


@pytest.mark.anyio()
async def test_missing_file_raises_resource_error(tmp_path: pathlib.Path) -> None:
    resource = project_file_resource("notes/todo.txt", tmp_path)

    with pytest.raises(ResourceAccessError) as error_info:
        await resource.handler(resource.uri, new_request_context())

    assert resource.uri == "file:///notes/todo.txt"
    assert error_info.value.details == {"resourceUri": "file:///notes/todo.txt"}


def test_file_resources_reject_traversal(tmp_path: pathlib.Path) -> None:
    with pytest.raises(ValidationError):
        project_file_resource("../secrets.txt", tmp_path)
