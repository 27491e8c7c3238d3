"""Failure taxonomy for spec discovery and fetching."""

from typing import Any, Dict, Optional


class SpecFetchError(Exception):
    """Base exception for spec fetch, scrape, parse and validation failures.

    Every subclass carries a stable ``error_type`` code and a remediation
    ``suggestion`` that the tool layer surfaces to the caller.
    """

    error_type = "unknown_error"
    default_suggestion = (
        "Check that the URL points to an OpenAPI/Swagger spec or a Swagger UI page."
    )

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        """Initialize fetch error.

        Args:
            message: Human-readable error message
            url: URL that was being fetched
            status: HTTP status code, if a response was received
            reason: HTTP reason phrase, if a response was received
            suggestion: Remediation hint overriding the class default
        """
        super().__init__(message)
        self.message = message
        self.url = url
        self.status = status
        self.reason = reason
        self.suggestion = suggestion or self.default_suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a response-friendly dictionary."""
        data: Dict[str, Any] = {
            "error_type": self.error_type,
            "message": self.message,
            "suggestion": self.suggestion,
        }
        if self.url:
            data["url"] = self.url
        if self.status is not None:
            data["status"] = self.status
        if self.reason:
            data["reason"] = self.reason
        return data


class AuthenticationRequiredError(SpecFetchError):
    """HTTP 401/403 from the spec endpoint."""

    error_type = "auth_error"
    default_suggestion = (
        "This API requires authentication. Call the tool again with the "
        "authToken parameter; it is sent as 'Authorization: Bearer <token>'."
    )


class SpecNotFoundError(SpecFetchError):
    """HTTP 404 on a direct spec fetch."""

    error_type = "not_found"
    default_suggestion = (
        "Verify the URL is correct and publicly accessible, or pass the "
        "Swagger UI page URL (e.g. /swagger-ui.html) so the spec can be "
        "located automatically."
    )


class FetchTimeoutError(SpecFetchError):
    """The request did not complete within its timeout."""

    error_type = "timeout"
    default_suggestion = (
        "The API may be slow or unreachable. Retry the request or check that "
        "the URL is reachable."
    )


class FetchConnectionError(SpecFetchError):
    """DNS resolution failed or the connection was refused."""

    error_type = "connection_error"
    default_suggestion = (
        "Check the host name and port, and that the server is running."
    )


class HttpFailureError(SpecFetchError):
    """Any other non-2xx response."""

    error_type = "http_error"
    default_suggestion = (
        "The server returned an error. Retry later or verify the URL."
    )


class SpecParseError(SpecFetchError):
    """The body decoded as neither a JSON nor a YAML mapping."""

    error_type = "parse_error"
    default_suggestion = (
        "The URL does not appear to return OpenAPI/Swagger JSON or YAML. "
        "Check the format of the document."
    )


class SpecValidationError(SpecFetchError):
    """The document decoded but is not a structurally valid spec."""

    error_type = "validation_error"
    default_suggestion = (
        "The document must be OpenAPI 3.x or Swagger 2.0 with 'info' and "
        "'paths' sections."
    )


class UnsupportedSpecVersionError(SpecValidationError):
    """The document declares a spec version other than 3.x or 2.0."""

    error_type = "unsupported_version"
    default_suggestion = "Only OpenAPI 3.x and Swagger 2.0 documents are supported."


class SwaggerUIScrapeError(SpecFetchError):
    """No spec could be located inside a Swagger UI page."""

    error_type = "swagger_ui_parse_error"
    default_suggestion = (
        "Provide the direct JSON/YAML spec URL instead "
        "(e.g. /v3/api-docs, /swagger.json)."
    )
