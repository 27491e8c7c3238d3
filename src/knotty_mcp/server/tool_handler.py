"""Tool operations behind the MCP server.

Every operation returns a JSON-serialisable dictionary with ``success``,
either ``data`` or ``error`` (plus ``error_type`` and usually a
``suggestion``), and ``metadata.remaining_requests``. Expected failures are
reported in the result, never raised.
"""

import json
import time
from typing import Any, Dict, Optional

from knotty_mcp.cache.spec_cache import CacheRefreshError, SpecCache
from knotty_mcp.config.logging import get_logger, log_performance
from knotty_mcp.fetcher.exceptions import SpecFetchError
from knotty_mcp.fetcher.fetcher import SpecFetcher
from knotty_mcp.parser.models import NormalizedApiDescription, NormalizedEndpoint
from knotty_mcp.parser.spec_parser import SpecParser
from knotty_mcp.search.endpoint_search import filter_endpoints, search_endpoints

from .exceptions import RateLimitExceededError, SpecUnavailableError
from .executor import (
    DEFAULT_TIMEOUT_MS,
    RequestExecutionError,
    RequestExecutor,
    is_http_url,
)
from .rate_limiter import RateLimiter

DEFAULT_MAX_RESULTS = 10
MAX_RESULTS_CAP = 50


class ToolHandler:
    """Implements the API exploration and request execution tools."""

    def __init__(
        self,
        cache: SpecCache,
        rate_limiter: RateLimiter,
        fetcher: Optional[SpecFetcher] = None,
        parser: Optional[SpecParser] = None,
        executor: Optional[RequestExecutor] = None,
    ):
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.fetcher = fetcher or SpecFetcher()
        self.parser = parser or SpecParser()
        self.executor = executor or RequestExecutor()
        self.logger = get_logger(__name__)

    # Result helpers

    def _metadata(self, **extra: Any) -> Dict[str, Any]:
        metadata = {"remaining_requests": self.rate_limiter.remaining}
        metadata.update({k: v for k, v in extra.items() if v is not None})
        return metadata

    def _failure(
        self,
        error: str,
        error_type: str,
        suggestion: Optional[str] = None,
        **metadata: Any,
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": False,
            "error": error,
            "error_type": error_type,
        }
        if suggestion:
            result["suggestion"] = suggestion
        result["metadata"] = self._metadata(**metadata)
        return result

    def _rate_limited(self, **metadata: Any) -> Optional[Dict[str, Any]]:
        """Failure result if the call is over the rate limit, else None."""
        if self.rate_limiter.try_acquire():
            return None
        error = RateLimitExceededError(
            retry_after_seconds=self.rate_limiter.seconds_until_available()
        )
        self.logger.warning("Rate limit exceeded")
        result: Dict[str, Any] = {
            "success": False,
            "error": error.message,
            "error_type": error.data["error_type"],
            "error_code": error.code,
        }
        metadata.update(error.data)
        metadata.pop("error_type")
        metadata.pop("recoverable")
        result["metadata"] = metadata
        return result

    def _spec_failure(self, error: Exception, **metadata: Any) -> Dict[str, Any]:
        """Failure result for an unavailable default spec."""
        if isinstance(error, CacheRefreshError):
            unavailable = SpecUnavailableError(
                "no default API spec is configured",
                error_type="no_spec_configured",
                suggestion=(
                    "Set OPENAPI_SPEC_URL, or use analyzeApiFromUrl with an "
                    "explicit URL."
                ),
            )
            return self._failure(
                unavailable.message,
                unavailable.data["error_type"],
                unavailable.data["suggestion"],
                **metadata,
            )
        if isinstance(error, SpecFetchError):
            return self._failure(
                error.message, error.error_type, error.suggestion, **metadata
            )
        return self._failure(str(error), "internal_error", **metadata)

    @staticmethod
    def _clamp_results(max_results: Optional[int]) -> int:
        if not max_results:
            return DEFAULT_MAX_RESULTS
        return min(max(1, int(max_results)), MAX_RESULTS_CAP)

    @staticmethod
    def _api_summary(description: NormalizedApiDescription) -> Dict[str, Any]:
        summary = {
            "title": description.title,
            "version": description.version,
            "description": description.description,
            "base_url": description.base_url,
            "total_endpoints": description.total_endpoints,
            "tags": description.tags,
            "spec_version": description.spec_version,
        }
        return {k: v for k, v in summary.items() if v is not None}

    @staticmethod
    def _endpoint_payload(
        endpoint: NormalizedEndpoint,
        include_request_body: bool = True,
        include_responses: bool = True,
    ) -> Dict[str, Any]:
        payload = endpoint.to_dict()
        if not include_request_body:
            payload.pop("request_body", None)
        if not include_responses:
            payload["responses"] = []
        return payload

    # Cache-backed tools

    async def get_api_schema(
        self,
        query: str,
        max_results: Optional[int] = DEFAULT_MAX_RESULTS,
        include_request_body: bool = True,
        include_responses: bool = True,
        method: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Search the cached API description for endpoints.

        Args:
            query: Free-text query
            max_results: Maximum endpoints returned (capped at 50)
            include_request_body: Keep request body schemas in the results
            include_responses: Keep response schemas in the results
            method: HTTP method filter
            tag: Tag substring filter

        Returns:
            Tool result with the search result and cache metadata
        """
        limited = self._rate_limited(cache_status="hit")
        if limited:
            return limited

        limit = self._clamp_results(max_results)
        self.logger.info(
            "Processing getApiSchema request",
            query=query,
            max_results=limit,
            method=method,
            tag=tag,
        )

        cache_status = "hit" if self.cache.get() is not None else "refreshed"
        try:
            description = await self.cache.get_or_refresh()
        except Exception as e:
            self.logger.error("getApiSchema failed", error=str(e))
            return self._spec_failure(e, cache_status="miss")

        result = search_endpoints(
            description, query, method=method, tag=tag, limit=limit
        )
        self.logger.info(
            "Search completed",
            query=query,
            matches=result.total_matches,
            returned=len(result.endpoints),
        )

        return {
            "success": True,
            "data": {
                "endpoints": [
                    self._endpoint_payload(
                        endpoint, include_request_body, include_responses
                    )
                    for endpoint in result.endpoints
                ],
                "query": result.query,
                "total_matches": result.total_matches,
                "searched_fields": result.searched_fields,
            },
            "metadata": self._metadata(
                cache_status=cache_status,
                spec_version=description.spec_version,
                total_endpoints_in_spec=description.total_endpoints,
            ),
        }

    async def get_api_info(self) -> Dict[str, Any]:
        """General information about the cached API."""
        limited = self._rate_limited()
        if limited:
            return limited

        try:
            description = await self.cache.get_or_refresh()
        except Exception as e:
            self.logger.error("getApiInfo failed", error=str(e))
            return self._spec_failure(e)

        data = self._api_summary(description)
        data["security_schemes"] = list(description.security_schemes.keys())
        data["fetched_at"] = description.fetched_at.isoformat()
        return {"success": True, "data": data, "metadata": self._metadata()}

    async def list_endpoints(
        self, method: Optional[str] = None, tag: Optional[str] = None
    ) -> Dict[str, Any]:
        """Brief listing of all cached endpoints."""
        limited = self._rate_limited()
        if limited:
            return limited

        try:
            description = await self.cache.get_or_refresh()
        except Exception as e:
            self.logger.error("listEndpoints failed", error=str(e))
            return self._spec_failure(e)

        endpoints = filter_endpoints(description.endpoints, method=method, tag=tag)
        return {
            "success": True,
            "data": [endpoint.brief() for endpoint in endpoints],
            "metadata": self._metadata(total=len(endpoints)),
        }

    async def refresh_cache(self) -> Dict[str, Any]:
        """Force a refresh of the cached API description."""
        limited = self._rate_limited()
        if limited:
            return limited

        try:
            description = await self.cache.refresh()
        except Exception as e:
            self.logger.error("refreshCache failed", error=str(e))
            return self._spec_failure(e)

        return {
            "success": True,
            "data": {
                "title": description.title,
                "total_endpoints": description.total_endpoints,
                "spec_version": description.spec_version,
                "fetched_at": description.fetched_at.isoformat(),
            },
            "metadata": self._metadata(),
        }

    def get_cache_status(self) -> Dict[str, Any]:
        data = self.cache.get_metadata()
        data["default_spec_configured"] = self.cache.has_producer
        return {"success": True, "data": data, "metadata": self._metadata()}

    # On-demand tools

    async def analyze_api_from_url(
        self,
        url: str,
        auth_token: Optional[str] = None,
        query: Optional[str] = None,
        max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    ) -> Dict[str, Any]:
        """Fetch, parse and summarize the API at an arbitrary URL, bypassing the cache.

        Args:
            url: Spec URL or Swagger UI page URL
            auth_token: Bearer token for protected specs
            query: Optional search query
            max_results: Maximum endpoints returned for the query (capped at 50)

        Returns:
            Tool result with the API summary and optional ranked endpoints
        """
        limited = self._rate_limited()
        if limited:
            return limited

        start_time = time.time()
        if not is_http_url(url):
            return self._failure(
                "Invalid URL format. Must be a valid http:// or https:// URL.",
                "invalid_url",
            )

        self.logger.info("Analyzing API from custom URL", url=url)
        try:
            fetch_result = await self.fetcher.fetch(url, auth_token=auth_token)
            description = self.parser.parse(fetch_result)
        except SpecFetchError as e:
            processing_time_ms = int((time.time() - start_time) * 1000)
            self.logger.error(
                "API analysis failed",
                url=url,
                error=e.message,
                error_type=e.error_type,
            )
            return self._failure(
                e.message,
                e.error_type,
                self._remediation(e, url),
                processing_time_ms=processing_time_ms,
            )

        data: Dict[str, Any] = {
            "api_info": self._api_summary(description),
            "scraped_from_ui": fetch_result.scraped_from_ui,
        }
        if fetch_result.resolved_spec_url:
            data["resolved_spec_url"] = fetch_result.resolved_spec_url
        if query:
            result = search_endpoints(
                description, query, limit=self._clamp_results(max_results)
            )
            data["search_query"] = query
            data["total_matches"] = result.total_matches
            data["endpoints"] = [ep.to_dict() for ep in result.endpoints]

        processing_time_ms = int((time.time() - start_time) * 1000)
        log_performance(
            self.logger,
            "analyze_api_from_url",
            processing_time_ms,
            url=url,
            total_endpoints=description.total_endpoints,
            scraped_from_ui=fetch_result.scraped_from_ui,
            resolved_spec_url=fetch_result.resolved_spec_url,
        )
        return {
            "success": True,
            "data": data,
            "metadata": self._metadata(processing_time_ms=processing_time_ms),
        }

    @staticmethod
    def _remediation(error: SpecFetchError, url: str) -> str:
        if error.error_type == "auth_error":
            example = json.dumps(
                {"url": url, "authToken": "your-bearer-token-here"}, indent=2
            )
            return f"{error.suggestion}\n\nExample:\n{example}"
        return error.suggestion

    async def execute_api_request(
        self,
        url: str,
        method: str = "GET",
        body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        auth_token: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        follow_redirects: bool = True,
    ) -> Dict[str, Any]:
        """Execute an HTTP request against any API and report the response."""
        limited = self._rate_limited()
        if limited:
            return limited

        self.logger.info("Executing API request", url=url, method=method)
        try:
            data = await self.executor.execute(
                url,
                method=method,
                body=body,
                headers=headers,
                auth_token=auth_token,
                timeout_ms=timeout_ms,
                follow_redirects=follow_redirects,
            )
        except RequestExecutionError as e:
            return self._failure(e.message, e.error_type)

        return {"success": True, "data": data, "metadata": self._metadata()}

    async def close(self) -> None:
        await self.fetcher.close()
        await self.executor.close()
