"""Text analysis and transformation tool."""

from __future__ import annotations

import json
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from mcp_starter.context import RequestContext
from mcp_starter.errors import MCPError, get_error_message
from mcp_starter.logger import get_logger, with_context
from mcp_starter.tooling import ToolDefinition, ToolParameters, text_result

logger = get_logger("tools.text_processing")

POSITIVE_WORDS = frozenset(
    {"good", "great", "excellent", "amazing", "wonderful", "fantastic", "love", "like", "happy", "joy"}
)
NEGATIVE_WORDS = frozenset(
    {"bad", "terrible", "awful", "horrible", "hate", "dislike", "sad", "angry", "frustrated", "disappointed"}
)

Operation = Literal["count", "uppercase", "lowercase", "reverse", "wordcount", "sentiment"]


class TextOptions(BaseModel):
    """Optional switches for text operations."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    case_sensitive: bool = Field(
        default=True,
        alias="caseSensitive",
        description="Whether to consider case in operations",
    )
    include_whitespace: bool = Field(
        default=True,
        alias="includeWhitespace",
        description="Whether to include whitespace in character counts",
    )


class TextProcessingParams(ToolParameters):
    """Parameters for the text-processing tool."""

    operation: Operation = Field(description="Text processing operation to perform")
    text: str = Field(description="Text content to process")
    options: TextOptions = Field(
        default_factory=TextOptions,
        description="Additional options for the operation",
    )


def count_characters(text: str, include_whitespace: bool = True) -> dict[str, int]:
    """Count characters with and without whitespace."""
    total = len(text)
    without_whitespace = len(re.sub(r"\s", "", text))
    result = {
        "total": total,
        "withoutWhitespace": without_whitespace,
        "whitespace": total - without_whitespace,
    }
    if not include_whitespace:
        result["counted"] = without_whitespace
    return result


def count_words(text: str) -> dict[str, float]:
    """Count words, sentences and paragraphs."""
    words = len([word for word in text.split() if word])
    sentences = len([part for part in re.split(r"[.!?]+", text) if part.strip()])
    paragraphs = len([part for part in re.split(r"\n\s*\n", text) if part.strip()])
    average = round(words / sentences, 2) if sentences else 0
    return {
        "words": words,
        "sentences": sentences,
        "paragraphs": paragraphs,
        "averageWordsPerSentence": average,
    }


def analyze_sentiment(text: str) -> dict[str, Any]:
    """Score text with a keyword list."""
    words = text.lower().split()
    positive = sum(1 for word in words if word in POSITIVE_WORDS)
    negative = sum(1 for word in words if word in NEGATIVE_WORDS)
    total = positive + negative
    score = (positive - negative) / total if total else 0.0

    if score > 0.1:
        sentiment = "positive"
    elif score < -0.1:
        sentiment = "negative"
    else:
        sentiment = "neutral"

    return {
        "sentiment": sentiment,
        "score": round(score, 3),
        "confidence": round(min(abs(score) * 2, 1.0), 3),
    }


def process_text(params: TextProcessingParams) -> object:
    """Apply the requested operation."""
    text = params.text
    if params.operation == "count":
        return count_characters(text, params.options.include_whitespace)
    if params.operation == "uppercase":
        return text.upper()
    if params.operation == "lowercase":
        return text.lower()
    if params.operation == "reverse":
        return text[::-1]
    if params.operation == "wordcount":
        return count_words(text)
    if params.operation == "sentiment":
        return analyze_sentiment(text)
    raise MCPError(f"Unsupported operation: {params.operation}")


def text_processing_tool() -> ToolDefinition:
    """Create the text-processing tool definition."""

    async def handler(arguments: dict[str, Any], context: RequestContext) -> dict[str, Any]:
        log = with_context(context.request_id, logger)
        operation = arguments.get("operation")
        try:
            params = TextProcessingParams.model_validate(definition.validate(arguments))
            log.info(
                "Text processing operation: %s (length=%d)", params.operation, len(params.text)
            )
            result = process_text(params)
            log.info("Text processing completed: %s", params.operation)
            text = json.dumps(result, indent=2) if isinstance(result, dict) else str(result)
            return text_result(text)
        except Exception as exc:
            log.error("Text processing failed: %s", operation, exc_info=exc)
            return text_result(f"Error: {get_error_message(exc)}", is_error=True)

    definition = ToolDefinition(
        name="text-processing",
        description=(
            "Process and analyze text with various operations like counting, "
            "formatting, and transformation"
        ),
        parameters_model=TextProcessingParams,
        handler=handler,
    )
    return definition
