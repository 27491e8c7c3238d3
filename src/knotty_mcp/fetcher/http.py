"""Thin aiohttp wrapper used by the fetcher."""

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp

from knotty_mcp.config.logging import get_logger

from .exceptions import FetchConnectionError, FetchTimeoutError

logger = get_logger(__name__)


@dataclass
class HttpResponse:
    """Fully read HTTP response."""

    status: int
    reason: str
    content_type: str
    text: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClient:
    """Async HTTP GET client that reads every response body as text.

    Non-2xx responses are returned, not raised; only transport failures
    (timeouts, refused connections, DNS errors) become exceptions.

    Usable as an async context manager, or lazily: the session is created
    on first use and released by :meth:`close`.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
    ) -> HttpResponse:
        """GET a URL and read its body as text.

        Args:
            url: URL to fetch
            headers: Request headers
            timeout: Total request timeout in seconds

        Returns:
            The response with its decoded body

        Raises:
            FetchTimeoutError: If the request exceeded the timeout
            FetchConnectionError: If the host could not be reached
        """
        session = self._get_session()
        try:
            async with session.get(
                url,
                headers=headers or {},
                timeout=aiohttp.ClientTimeout(total=timeout),
                allow_redirects=True,
            ) as response:
                text = await response.text(errors="replace")
                return HttpResponse(
                    status=response.status,
                    reason=response.reason or "",
                    content_type=response.headers.get("Content-Type", ""),
                    text=text,
                    url=str(response.url),
                )
        except asyncio.TimeoutError as e:
            logger.debug("Request timed out", url=url, timeout=timeout)
            raise FetchTimeoutError(
                f"Request timed out after {timeout:g}s", url=url
            ) from e
        except aiohttp.ClientConnectorError as e:
            logger.debug("Connection failed", url=url, error=str(e))
            raise FetchConnectionError(
                f"Could not connect to {url}: {e}", url=url
            ) from e
        except aiohttp.InvalidURL as e:
            raise FetchConnectionError(f"Invalid URL: {url}", url=url) from e
        except aiohttp.ClientError as e:
            logger.debug("HTTP client error", url=url, error=str(e))
            raise FetchConnectionError(
                f"Request to {url} failed: {e}", url=url
            ) from e
