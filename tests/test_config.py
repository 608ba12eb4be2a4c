"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from mcp_starter import config


def test_defaults_apply_for_missing_variables() -> None:
    loaded = config.load_config({})

    assert loaded.port == 3000
    assert loaded.host == "localhost"
    assert loaded.log_level == "info"
    assert loaded.enable_health_check is False
    assert loaded.cors_origins == ["*"]
    assert loaded.environment == "development"


def test_environment_values_are_parsed() -> None:
    loaded = config.load_config(
        {
            "PORT": "8080",
            "HOST": "0.0.0.0",
            "LOG_LEVEL": "DEBUG",
            "ENABLE_HEALTH_CHECK": "true",
            "MAX_REQUEST_SIZE": "5mb",
            "CORS_ORIGINS": "https://a.example, https://b.example",
            "ENVIRONMENT": "production",
        }
    )

    assert loaded.port == 8080
    assert loaded.log_level == "debug"
    assert loaded.enable_health_check is True
    assert loaded.cors_origins == ["https://a.example", "https://b.example"]
    assert loaded.environment == "production"


@pytest.mark.parametrize(
    "environ",
    [
        {"PORT": "not-a-port"},
        {"PORT": "70000"},
        {"LOG_LEVEL": "verbose"},
        {"MAX_REQUEST_SIZE": "huge"},
        {"ENVIRONMENT": "staging"},
    ],
)
def test_malformed_values_fail_fast(environ: dict[str, str]) -> None:
    with pytest.raises(config.ConfigurationError):
        config.load_config(environ)


def test_get_config_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    first = config.get_config()
    monkeypatch.setenv("PORT", "4000")

    assert config.get_config() is first

    config.reset_config_cache()
    assert config.get_config().port == 4000


def test_validate_config_reports_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(config.ConfigurationError, match="log_level"):
        config.validate_config()


def test_environment_helpers() -> None:
    assert config.is_test() is True
    assert config.is_production() is False
    assert config.is_development() is False
