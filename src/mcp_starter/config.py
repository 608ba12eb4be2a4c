"""Server configuration loaded from the environment."""

from __future__ import annotations

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from mcp_starter.validation import format_location

LogLevel = Literal["error", "warn", "info", "debug"]
Environment = Literal["development", "production", "test"]


class ConfigurationError(Exception):
    """Raised when the configuration is malformed."""


class ServerConfig(BaseModel):
    """Validated server settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    port: int = Field(default=3000, ge=1, le=65534)
    host: str = Field(default="localhost", min_length=1)
    log_level: LogLevel = "info"
    enable_health_check: bool = False
    max_request_size: str = Field(default="10mb", pattern=r"^\d+(b|kb|mb|gb)$")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    environment: Environment = "development"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    def public_view(self) -> dict[str, object]:
        """Return settings that are safe to expose to clients."""
        return self.model_dump(mode="json")


ENV_VARS: dict[str, str] = {
    "port": "PORT",
    "host": "HOST",
    "log_level": "LOG_LEVEL",
    "enable_health_check": "ENABLE_HEALTH_CHECK",
    "max_request_size": "MAX_REQUEST_SIZE",
    "cors_origins": "CORS_ORIGINS",
    "environment": "ENVIRONMENT",
}

_cached_config: ServerConfig | None = None


def load_config(environ: dict[str, str] | None = None) -> ServerConfig:
    """Build a configuration from environment variables.

    ``.env`` in the working directory is honored when reading the real process
    environment.

    Raises:
        ConfigurationError: If any value is malformed.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)
    raw = {field: environ[var] for field, var in ENV_VARS.items() if var in environ}
    if "log_level" in raw:
        raw["log_level"] = raw["log_level"].lower()
    try:
        return ServerConfig.model_validate(raw)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{format_location(error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc


def get_config() -> ServerConfig:
    """Return the cached configuration, loading it on first use."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Forget the cached configuration."""
    global _cached_config
    _cached_config = None


def validate_config() -> ServerConfig:
    """Load the configuration eagerly so malformed settings fail fast."""
    reset_config_cache()
    return get_config()


def is_development() -> bool:
    return get_config().environment == "development"


def is_production() -> bool:
    return get_config().environment == "production"


def is_test() -> bool:
    return get_config().environment == "test"
