"""Configuration and logging for the knotty MCP server."""

from .logging import configure_logging, get_logger
from .settings import (
    CacheConfig,
    FetchConfig,
    LoggingConfig,
    ParserSettings,
    RateLimitConfig,
    ServerConfig,
    Settings,
)

__all__ = [
    "CacheConfig",
    "FetchConfig",
    "LoggingConfig",
    "ParserSettings",
    "RateLimitConfig",
    "ServerConfig",
    "Settings",
    "configure_logging",
    "get_logger",
]
