"""Application configuration settings."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from knotty_mcp.__version__ import __version__

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class LoggingConfig(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_", env_file=".env", extra="ignore"
    )

    level: str = Field(default="INFO", description="Log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    json_format: bool = Field(default=True, description="Use JSON log format")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Accept log levels case-insensitively."""
        normalized = value.upper()
        if normalized == "WARN":
            normalized = "WARNING"
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}"
            )
        return normalized


class ServerConfig(BaseSettings):
    """MCP server identity."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_", env_file=".env", extra="ignore"
    )

    name: str = Field(default="knotty", description="Server name")
    version: str = Field(default=__version__, description="Server version")


class CacheConfig(BaseSettings):
    """Spec cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_", env_file=".env", extra="ignore"
    )

    refresh_minutes: int = Field(
        default=10, ge=1, description="Cache TTL and auto-refresh period"
    )
    auto_refresh: bool = Field(
        default=True, description="Refresh the cached spec in the background"
    )

    @property
    def ttl_seconds(self) -> float:
        return self.refresh_minutes * 60.0


class RateLimitConfig(BaseSettings):
    """Tool call rate limiting."""

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_", env_file=".env", extra="ignore"
    )

    max: int = Field(default=60, ge=1, description="Requests per window")
    window_seconds: float = Field(
        default=60.0, gt=0, description="Rate limit window in seconds"
    )


class FetchConfig(BaseSettings):
    """Spec fetching and Swagger UI discovery."""

    model_config = SettingsConfigDict(
        env_prefix="FETCH_", env_file=".env", extra="ignore"
    )

    timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for spec fetches"
    )
    script_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for Swagger UI init scripts"
    )
    probe_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Timeout for each probed spec location"
    )
    user_agent: str = Field(
        default=f"knotty/{__version__}", description="User-Agent header"
    )


class ParserSettings(BaseSettings):
    """Normalization settings."""

    model_config = SettingsConfigDict(
        env_prefix="PARSER_", env_file=".env", extra="ignore"
    )

    max_schema_depth: int = Field(
        default=10, ge=1, description="Maximum schema recursion depth"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Default spec served by the cache-backed tools
    openapi_spec_url: Optional[str] = Field(
        default=None, description="URL of the default OpenAPI/Swagger spec"
    )
    swagger_auth_token: Optional[str] = Field(
        default=None, description="Bearer token for the default spec"
    )

    # Sub-configurations
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    parser: ParserSettings = Field(default_factory=ParserSettings)

    @field_validator("openapi_spec_url")
    @classmethod
    def validate_spec_url(cls, value: Optional[str]) -> Optional[str]:
        """OPENAPI_SPEC_URL must be an http(s) URL when set."""
        if value is None or value.strip() == "":
            return None
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("OPENAPI_SPEC_URL must be a valid http(s) URL")
        return value

    @field_validator("swagger_auth_token")
    @classmethod
    def empty_token_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @property
    def has_default_spec(self) -> bool:
        return self.openapi_spec_url is not None
