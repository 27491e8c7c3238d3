"""Tool-call errors and their JSON-RPC shaped responses.

Standard JSON-RPC codes cover protocol problems (unknown tool, bad
arguments, internal failure). Negative codes below -1000 are specific to
this server and mark conditions a client can recover from by waiting or
reconfiguring.
"""

from typing import Any, Dict, List, Optional

from structlog.types import FilteringBoundLogger

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
RATE_LIMITED = -1004
SPEC_UNAVAILABLE = -1005

CLIENT_ERROR_CODES = frozenset({-32600, METHOD_NOT_FOUND, INVALID_PARAMS})

# Argument keys never echoed back or logged
SENSITIVE_ARGUMENT_FRAGMENTS = (
    "password",
    "token",
    "secret",
    "auth",
    "credential",
    "cookie",
    "api_key",
    "apikey",
)
MAX_ECHOED_STRING = 500


class MCPServerError(Exception):
    """A tool call failure carrying a JSON-RPC error code and payload."""

    def __init__(
        self, code: int, message: str, data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data or {}

    @property
    def error_type(self) -> str:
        return self.data.get("error_type", "unknown")

    @property
    def is_client_error(self) -> bool:
        return self.code in CLIENT_ERROR_CODES

    def to_dict(self) -> Dict[str, Any]:
        error = {"code": self.code, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


class ValidationError(MCPServerError):
    """A tool argument is missing or malformed (-32602)."""

    def __init__(
        self,
        parameter: str,
        message: str,
        value: Any = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Args:
            parameter: Argument name as the client sent it, e.g. ``maxResults``
            message: What is wrong with it
            value: Offending value, echoed as a string when given
            suggestions: Accepted values, e.g. the supported HTTP methods
        """
        data: Dict[str, Any] = {
            "parameter": parameter,
            "error_type": "validation_error",
        }
        if value is not None:
            data["value"] = str(value)
        if suggestions:
            data["suggestions"] = suggestions

        super().__init__(
            INVALID_PARAMS, f"Invalid parameter '{parameter}': {message}", data
        )


class UnknownToolError(MCPServerError):
    """The client called a tool this server does not expose (-32601)."""

    def __init__(self, name: str, available: List[str]):
        super().__init__(
            METHOD_NOT_FOUND,
            f"Unknown tool: {name}",
            {"error_type": "unknown_tool", "tool": name, "suggestions": available},
        )


class InternalServerError(MCPServerError):
    """Unexpected failure inside a tool (-32603); details stay in the logs."""

    def __init__(self, request_id: Optional[str] = None):
        data: Dict[str, Any] = {"error_type": "internal_error"}
        if request_id:
            data["request_id"] = request_id
        super().__init__(INTERNAL_ERROR, "Internal server error", data)


class RateLimitExceededError(MCPServerError):
    """The per-minute tool call budget is spent."""

    def __init__(self, retry_after_seconds: Optional[float] = None):
        data: Dict[str, Any] = {
            "error_type": "rate_limit_exceeded",
            "remaining_requests": 0,
            "recoverable": True,
        }
        if retry_after_seconds is not None:
            data["retry_after_seconds"] = round(retry_after_seconds, 1)
        super().__init__(
            RATE_LIMITED, "Rate limit exceeded. Please try again later.", data
        )


class SpecUnavailableError(MCPServerError):
    """No default API description could be produced for the cache."""

    def __init__(
        self,
        reason: str,
        error_type: str = "spec_unavailable",
        suggestion: Optional[str] = None,
    ):
        data: Dict[str, Any] = {"error_type": error_type, "recoverable": True}
        if suggestion:
            data["suggestion"] = suggestion
        super().__init__(
            SPEC_UNAVAILABLE, f"API specification unavailable: {reason}", data
        )


class ErrorLogger:
    """Writes tool failures to the structlog logger with correlation ids."""

    def __init__(self, logger: FilteringBoundLogger):
        self.logger = logger

    @staticmethod
    def _fields(
        base: Dict[str, Any],
        context: Optional[Dict[str, Any]],
        request_id: Optional[str],
    ) -> Dict[str, Any]:
        if request_id:
            base["request_id"] = request_id
        if context:
            base.update(context)
        return base

    def log_error(
        self,
        error: MCPServerError,
        context: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> None:
        """Client mistakes and recoverable conditions log as warnings."""
        fields = self._fields(
            {
                "error_code": error.code,
                "error_message": error.message,
                "error_type": error.error_type,
            },
            context,
            request_id,
        )
        if error.is_client_error or error.data.get("recoverable"):
            self.logger.warning("MCP client error", **fields)
        else:
            self.logger.error("MCP server error", **fields)

    def log_operation_error(
        self,
        operation: str,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> None:
        fields = self._fields(
            {
                "operation": operation,
                "error_message": str(error),
                "error_type": type(error).__name__,
            },
            context,
            request_id,
        )
        self.logger.error("Operation failed", exc_info=True, **fields)


def create_mcp_error_response(
    error: MCPServerError, request_id: Optional[str] = None
) -> Dict[str, Any]:
    """Wrap ``error`` in the ``{"success": false, "error": ...}`` envelope."""
    response = {"success": False, "jsonrpc": "2.0", "error": error.to_dict()}
    if request_id is not None:
        response["id"] = request_id
    return response


def sanitize_error_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of tool arguments safe to log: credentials dropped, long strings cut."""
    sanitized = {}
    for key, value in data.items():
        lowered = str(key).lower()
        if any(fragment in lowered for fragment in SENSITIVE_ARGUMENT_FRAGMENTS):
            continue

        if isinstance(value, dict):
            sanitized[key] = sanitize_error_data(value)
        elif isinstance(value, str) and len(value) > MAX_ECHOED_STRING:
            sanitized[key] = value[:MAX_ECHOED_STRING] + "... (truncated)"
        else:
            sanitized[key] = value
    return sanitized
