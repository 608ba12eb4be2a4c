"""Input validation and sanitization helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import AfterValidator, AnyUrl, BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticUserError

from mcp_starter.errors import MCPError, ValidationError

T = TypeVar("T")

_DANGEROUS_CHARACTERS = re.compile(r"[<>\"';]")
_DISALLOWED_PATH_CHARACTERS = re.compile(r"[^A-Za-z0-9._/-]")
_DRIVE_ROOT = re.compile(r"^[A-Za-z]:")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class FieldError:
    """Single violated constraint."""

    field: str
    message: str


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    """Validation passed; ``data`` holds the coerced value."""

    data: T
    success: Literal[True] = True


@dataclass(frozen=True)
class ValidationFailure:
    """Validation failed; ``errors`` follow the schema traversal order."""

    errors: list[FieldError] = field(default_factory=list)
    success: Literal[False] = False

    def summary(self) -> str:
        """Join all messages into a single line."""
        return ", ".join(error.message for error in self.errors)


ValidationResult = Union[ValidationSuccess[Any], ValidationFailure]


def format_location(location: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as a dot/bracket path."""
    path = ""
    for part in location:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def _is_model(schema: Any) -> bool:
    try:
        return isinstance(schema, type) and issubclass(schema, BaseModel)
    except TypeError:
        return False


def _adapter(schema: Any) -> TypeAdapter[Any]:
    try:
        return TypeAdapter(schema)
    except PydanticUserError as exc:
        raise MCPError(f"Invalid validation schema: {exc}") from exc


def validate_input(schema: Any, data: Any) -> ValidationResult:
    """Validate ``data`` against a pydantic model or any pydantic-compatible type.

    Args:
        schema: Model class or type annotation describing the expected shape.
        data: Arbitrary input value.

    Raises:
        MCPError: If the schema itself cannot be used for validation.

    Returns:
        ``ValidationSuccess`` with the coerced data, or ``ValidationFailure``
        listing one entry per violated constraint.
    """
    try:
        if _is_model(schema):
            model = schema.model_validate(data)
            return ValidationSuccess(data=model.model_dump())
        return ValidationSuccess(data=_adapter(schema).validate_python(data))
    except PydanticValidationError as exc:
        errors = [
            FieldError(field=format_location(error["loc"]), message=error["msg"])
            for error in exc.errors()
        ]
        return ValidationFailure(errors=errors)


def sanitize_string(value: str) -> str:
    """Strip markup and statement delimiters, then surrounding whitespace."""
    return _DANGEROUS_CHARACTERS.sub("", value).strip()


def validate_file_path(path: str) -> str:
    """Return a cleaned relative path or raise :class:`ValidationError`.

    Both the raw and the cleaned path must be relative and free of ``..``
    segments, since stripping characters can expose a root or a traversal.
    """
    cleaned = _DISALLOWED_PATH_CHARACTERS.sub("", path)
    for candidate in (path, cleaned):
        if candidate.startswith(("/", "\\")) or _DRIVE_ROOT.match(candidate):
            raise ValidationError("Absolute paths are not allowed", {"path": path})
        if ".." in re.split(r"[\\/]", candidate):
            raise ValidationError(
                "Parent directory traversal is not allowed", {"path": path}
            )
    if not cleaned:
        raise ValidationError("File path is empty after sanitization", {"path": path})
    return cleaned


def _check_email(value: str) -> str:
    if not _EMAIL.match(value):
        raise ValueError("Invalid email address")
    return value


class CommonSchemas:
    """Reusable annotated types for tool parameter models."""

    non_empty_string = TypeAdapter(Annotated[str, Field(min_length=1)])
    positive_number = TypeAdapter(Annotated[float, Field(gt=0)])
    email = TypeAdapter(Annotated[str, AfterValidator(_check_email)])
    url = TypeAdapter(AnyUrl)

    @staticmethod
    def accepts(adapter: TypeAdapter[Any], value: Any) -> bool:
        """Return whether ``value`` satisfies the given schema."""
        try:
            adapter.validate_python(value)
        except PydanticValidationError:
            return False
        return True
