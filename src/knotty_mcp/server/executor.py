"""Stateless HTTP request passthrough for the request execution tools."""

import asyncio
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import aiohttp

from knotty_mcp.__version__ import __version__
from knotty_mcp.config.logging import get_logger

logger = get_logger(__name__)

MAX_BODY_CHARS = 100_000
DEFAULT_TIMEOUT_MS = 30_000
MAX_REDIRECTS = 5
BODY_METHODS = ("POST", "PUT", "PATCH", "DELETE")


class RequestExecutionError(Exception):
    """A request could not be completed."""

    def __init__(self, message: str, error_type: str):
        super().__init__(message)
        self.message = message
        self.error_type = error_type


def is_http_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of request headers safe to echo back or log."""
    safe = {}
    for key, value in headers.items():
        if key.lower() == "authorization":
            scheme = value.split(" ", 1)[0] if " " in value else ""
            safe[key] = f"{scheme} [REDACTED]".strip()
        else:
            safe[key] = value
    return safe


def truncate_body(body: Any) -> Any:
    """Replace bodies whose serialized form is too large with a preview."""
    serialized = body if isinstance(body, str) else json.dumps(body, default=str)
    if len(serialized) <= MAX_BODY_CHARS:
        return body
    return {
        "_truncated": True,
        "_message": (
            f"Response body too large ({len(serialized)} chars). "
            f"Showing first {MAX_BODY_CHARS} chars."
        ),
        "_preview": serialized[:MAX_BODY_CHARS],
    }


class RequestExecutor:
    """Executes arbitrary HTTP requests and reports every status code as data."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def execute(
        self,
        url: str,
        method: str = "GET",
        body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        auth_token: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        follow_redirects: bool = True,
    ) -> Dict[str, Any]:
        """Send a request and describe the response.

        Args:
            url: Absolute http(s) URL
            method: HTTP method
            body: JSON body, sent for POST/PUT/PATCH/DELETE
            headers: Extra request headers
            auth_token: Bearer token
            timeout_ms: Total timeout in milliseconds
            follow_redirects: Whether to follow up to five redirects

        Returns:
            Status, headers, decoded body, timing and the (redacted) request

        Raises:
            RequestExecutionError: On invalid URLs and transport failures
        """
        if not is_http_url(url):
            raise RequestExecutionError(
                "Invalid URL format. Must be a valid http:// or https:// URL.",
                "invalid_url",
            )

        method = (method or "GET").upper()
        request_headers = {
            "User-Agent": f"knotty/{__version__}",
            "Accept": "application/json, text/plain, */*",
        }
        request_headers.update({str(k): str(v) for k, v in (headers or {}).items()})
        if auth_token:
            request_headers["Authorization"] = f"Bearer {auth_token}"
        if body is not None and method in BODY_METHODS:
            request_headers["Content-Type"] = "application/json"

        safe_headers = redact_headers(request_headers)
        logger.debug("Sending request", method=method, url=url, headers=safe_headers)

        request_kwargs: Dict[str, Any] = {
            "headers": request_headers,
            "timeout": aiohttp.ClientTimeout(total=timeout_ms / 1000),
            "allow_redirects": follow_redirects,
        }
        if follow_redirects:
            request_kwargs["max_redirects"] = MAX_REDIRECTS
        if body is not None and method in BODY_METHODS:
            request_kwargs["data"] = json.dumps(body)

        start_time = time.time()
        try:
            async with self._get_session().request(
                method, url, **request_kwargs
            ) as response:
                text = await response.text(errors="replace")
                response_headers: Dict[str, str] = {}
                for key, value in response.headers.items():
                    if key in response_headers:
                        response_headers[key] = f"{response_headers[key]}, {value}"
                    else:
                        response_headers[key] = value
                status = response.status
                reason = response.reason or ""
        except asyncio.TimeoutError as e:
            raise RequestExecutionError(
                f"Request timed out after {timeout_ms}ms. "
                "The server may be slow or unreachable.",
                "timeout",
            ) from e
        except aiohttp.ClientSSLError as e:
            raise RequestExecutionError(
                f"SSL certificate error: {e}. The server may have an invalid certificate.",
                "ssl_error",
            ) from e
        except aiohttp.ClientConnectorError as e:
            raise RequestExecutionError(
                f"Cannot connect to {url}: {e}. "
                "Check if the URL is correct and the server is running.",
                "connection_error",
            ) from e
        except aiohttp.ClientError as e:
            logger.error("API request failed", url=url, method=method, error=str(e))
            raise RequestExecutionError(f"Request failed: {e}", "request_error") from e

        response_time_ms = int((time.time() - start_time) * 1000)

        try:
            decoded: Any = json.loads(text) if text else text
        except ValueError:
            decoded = text
        response_body = truncate_body(decoded)

        logger.info(
            "API request completed",
            url=url,
            method=method,
            status=status,
            response_time_ms=response_time_ms,
            truncated=response_body is not decoded,
        )

        request_details: Dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": safe_headers,
        }
        if body is not None:
            request_details["body"] = body

        return {
            "status": status,
            "status_text": reason,
            "headers": response_headers,
            "body": response_body,
            "response_time_ms": response_time_ms,
            "request_details": request_details,
        }
