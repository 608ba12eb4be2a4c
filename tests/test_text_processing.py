"""Tests for the text-processing tool."""

from __future__ import annotations

import json
from typing import Any

import pytest

from mcp_starter.context import new_request_context
from mcp_starter.errors import ValidationError
from mcp_starter.tools import setup_tools
from mcp_starter.tools.text_processing import (
    analyze_sentiment,
    count_characters,
    count_words,
    text_processing_tool,
)


async def _run(arguments: dict[str, Any]) -> dict[str, Any]:
    tool = text_processing_tool()
    return await tool.handler(arguments, new_request_context())


def test_setup_tools_declares_text_processing() -> None:
    tools = setup_tools()

    assert [tool.name for tool in tools] == ["text-processing"]
    schema = tools[0].input_schema()
    assert schema["required"] == ["operation", "text"]
    assert "caseSensitive" in json.dumps(schema)


@pytest.mark.anyio()
@pytest.mark.parametrize(
    ("operation", "expected"),
    [("uppercase", "HELLO WORLD"), ("lowercase", "hello world"), ("reverse", "dlroW olleH")],
)
async def test_transformations(operation: str, expected: str) -> None:
    result = await _run({"operation": operation, "text": "Hello World"})

    assert result["content"][0]["text"] == expected
    assert "isError" not in result


@pytest.mark.anyio()
async def test_count_returns_json() -> None:
    result = await _run({"operation": "count", "text": "a b\tc"})

    assert json.loads(result["content"][0]["text"]) == {
        "total": 5,
        "withoutWhitespace": 3,
        "whitespace": 2,
    }


@pytest.mark.anyio()
async def test_options_use_protocol_names() -> None:
    result = await _run(
        {"operation": "count", "text": "a b", "options": {"includeWhitespace": False}}
    )

    assert json.loads(result["content"][0]["text"])["counted"] == 2


@pytest.mark.anyio()
@pytest.mark.parametrize(
    "arguments",
    [
        {"operation": "shout", "text": "hi"},
        {"operation": "count"},
        {"operation": "count", "text": "hi", "extra": True},
    ],
)
async def test_invalid_arguments_are_soft_failures(arguments: dict[str, Any]) -> None:
    result = await _run(arguments)

    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error: Invalid arguments for tool 'text-processing'")


def test_definition_validates_arguments_with_field_details() -> None:
    tool = text_processing_tool()

    with pytest.raises(ValidationError) as error_info:
        tool.validate({"operation": "shout"})

    fields = [error["field"] for error in error_info.value.details["errors"]]
    assert fields == ["operation", "text"]
    assert tool.validate({"operation": "count", "text": "a b"})["text"] == "a b"


def test_count_words() -> None:
    stats = count_words("One two three. Four five!\n\nSix?")

    assert stats == {
        "words": 6,
        "sentences": 3,
        "paragraphs": 2,
        "averageWordsPerSentence": 2.0,
    }


def test_count_words_empty_text() -> None:
    assert count_words("")["averageWordsPerSentence"] == 0


def test_count_characters() -> None:
    assert count_characters(" x ") == {"total": 3, "withoutWhitespace": 1, "whitespace": 2}


@pytest.mark.parametrize(
    ("text", "sentiment", "score"),
    [
        ("I love this great day", "positive", 1.0),
        ("this is awful and sad", "negative", -1.0),
        ("good but bad", "neutral", 0.0),
        ("nothing to see", "neutral", 0.0),
    ],
)
def test_analyze_sentiment(text: str, sentiment: str, score: float) -> None:
    result = analyze_sentiment(text)

    assert result["sentiment"] == sentiment
    assert result["score"] == score
    assert 0.0 <= result["confidence"] <= 1.0
