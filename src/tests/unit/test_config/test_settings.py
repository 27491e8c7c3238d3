"""Unit tests for environment-driven settings."""

import pydantic
import pytest

from knotty_mcp.config.settings import (
    CacheConfig,
    FetchConfig,
    LoggingConfig,
    RateLimitConfig,
    Settings,
)

ENV_VARS = [
    "OPENAPI_SPEC_URL",
    "SWAGGER_AUTH_TOKEN",
    "CACHE_REFRESH_MINUTES",
    "CACHE_AUTO_REFRESH",
    "RATE_LIMIT_MAX",
    "LOG_LEVEL",
    "FETCH_TIMEOUT_SECONDS",
    "PARSER_MAX_SCHEMA_DEPTH",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettingsDefaults:
    def test_defaults(self):
        settings = Settings()

        assert settings.openapi_spec_url is None
        assert settings.swagger_auth_token is None
        assert settings.has_default_spec is False
        assert settings.server.name == "knotty"
        assert settings.cache.refresh_minutes == 10
        assert settings.cache.ttl_seconds == 600.0
        assert settings.cache.auto_refresh is True
        assert settings.rate_limit.max == 60
        assert settings.rate_limit.window_seconds == 60.0
        assert settings.parser.max_schema_depth == 10

    def test_fetch_timeouts(self):
        config = FetchConfig()

        assert config.timeout_seconds == 30.0
        assert config.script_timeout_seconds == 10.0
        assert config.probe_timeout_seconds == 5.0
        assert config.user_agent.startswith("knotty/")


class TestSettingsFromEnvironment:
    def test_spec_url_and_token(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_SPEC_URL", "https://api.example.com/openapi.json")
        monkeypatch.setenv("SWAGGER_AUTH_TOKEN", "secret")

        settings = Settings()

        assert settings.openapi_spec_url == "https://api.example.com/openapi.json"
        assert settings.swagger_auth_token == "secret"
        assert settings.has_default_spec is True

    def test_nested_configs_read_their_prefix(self, monkeypatch):
        monkeypatch.setenv("CACHE_REFRESH_MINUTES", "5")
        monkeypatch.setenv("RATE_LIMIT_MAX", "10")
        monkeypatch.setenv("PARSER_MAX_SCHEMA_DEPTH", "4")

        settings = Settings()

        assert settings.cache.refresh_minutes == 5
        assert settings.cache.ttl_seconds == 300.0
        assert settings.rate_limit.max == 10
        assert settings.parser.max_schema_depth == 4

    def test_blank_spec_url_means_unset(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_SPEC_URL", "  ")
        monkeypatch.setenv("SWAGGER_AUTH_TOKEN", "")

        settings = Settings()

        assert settings.openapi_spec_url is None
        assert settings.swagger_auth_token is None
        assert settings.has_default_spec is False

    def test_invalid_spec_url_rejected(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_SPEC_URL", "ftp://example.com/spec.json")

        with pytest.raises(pydantic.ValidationError):
            Settings()

    def test_overrides_take_precedence(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_SPEC_URL", "https://env.example.com/spec.json")

        settings = Settings(openapi_spec_url="https://cli.example.com/spec.json")

        assert settings.openapi_spec_url == "https://cli.example.com/spec.json"


class TestSubConfigValidation:
    @pytest.mark.parametrize("raw,expected", [
        ("debug", "DEBUG"),
        ("Info", "INFO"),
        ("warn", "WARNING"),
        ("ERROR", "ERROR"),
    ])
    def test_log_level_normalized(self, raw, expected):
        assert LoggingConfig(level=raw).level == expected

    def test_unknown_log_level_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            LoggingConfig(level="verbose")

    def test_refresh_minutes_must_be_positive(self):
        with pytest.raises(pydantic.ValidationError):
            CacheConfig(refresh_minutes=0)

    def test_rate_limit_must_be_positive(self):
        with pytest.raises(pydantic.ValidationError):
            RateLimitConfig(max=0)
