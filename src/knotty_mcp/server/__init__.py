"""MCP server, tool handler and supporting components."""

from .exceptions import (
    MCPServerError,
    RateLimitExceededError,
    SpecUnavailableError,
    UnknownToolError,
    ValidationError,
)
from .executor import RequestExecutionError, RequestExecutor
from .mcp_server import KnottyMcpServer, create_server
from .rate_limiter import RateLimiter
from .tool_handler import ToolHandler

__all__ = [
    "KnottyMcpServer",
    "MCPServerError",
    "RateLimitExceededError",
    "RateLimiter",
    "RequestExecutionError",
    "RequestExecutor",
    "SpecUnavailableError",
    "ToolHandler",
    "UnknownToolError",
    "ValidationError",
    "create_server",
]
