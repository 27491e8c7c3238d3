"""Spec fetcher with authentication support and Swagger UI discovery."""

from typing import Any, Dict, Optional

from knotty_mcp.config.logging import get_logger
from knotty_mcp.config.settings import FetchConfig

from .documents import (
    looks_like_html,
    parse_document,
    spec_version_label,
    validate_document,
)
from .exceptions import (
    AuthenticationRequiredError,
    HttpFailureError,
    SpecFetchError,
    SpecNotFoundError,
    SwaggerUIScrapeError,
)
from .http import HttpClient, HttpResponse
from .models import FetchResult
from . import scraper

SPEC_ACCEPT = "application/json, application/yaml, text/yaml, text/html, */*"
PROBE_ACCEPT = "application/json, application/yaml, */*"


class SpecFetcher:
    """Fetches OpenAPI/Swagger documents from a URL.

    When the URL serves a Swagger UI page instead of a spec, the fetcher
    looks for the spec the page loads: first a configured spec URL, then a
    spec embedded in the page's init scripts, then conventional locations
    on the same origin.
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self.config = config or FetchConfig()
        self.http = http_client or HttpClient()
        self.logger = get_logger(__name__)

    async def close(self) -> None:
        await self.http.close()

    def _headers(self, accept: str, auth_token: Optional[str]) -> Dict[str, str]:
        headers = {"Accept": accept, "User-Agent": self.config.user_agent}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        return headers

    async def fetch(
        self,
        url: str,
        auth_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> FetchResult:
        """Fetch and validate the spec at a URL.

        Args:
            url: Spec URL or Swagger UI page URL
            auth_token: Optional bearer token
            timeout: Request timeout in seconds, defaults to the configured one

        Returns:
            The validated raw document with provenance metadata

        Raises:
            SpecFetchError: A subclass describing the failure
        """
        timeout = timeout or self.config.timeout_seconds
        self.logger.info("Fetching OpenAPI spec", url=url)
        if auth_token:
            self.logger.debug("Using Bearer token authentication")

        response = await self.http.get(
            url, headers=self._headers(SPEC_ACCEPT, auth_token), timeout=timeout
        )
        self._raise_for_status(response, url)

        if looks_like_html(response.content_type, response.text):
            self.logger.info(
                "Detected HTML response, looking for spec in Swagger UI page",
                url=url,
            )
            return await self._scrape_swagger_ui(
                response.text, url, auth_token, timeout
            )

        return self._build_result(response, source_url=url)

    def _raise_for_status(self, response: HttpResponse, url: str) -> None:
        if response.ok:
            return
        if response.status in (401, 403):
            raise AuthenticationRequiredError(
                f"Authentication required: HTTP {response.status} "
                f"{response.reason}".rstrip(),
                url=url,
                status=response.status,
                reason=response.reason,
            )
        if response.status == 404:
            raise SpecNotFoundError(
                f"Spec not found at {url} (HTTP 404)",
                url=url,
                status=response.status,
                reason=response.reason,
            )
        raise HttpFailureError(
            f"HTTP {response.status} {response.reason}".rstrip(),
            url=url,
            status=response.status,
            reason=response.reason,
        )

    def _build_result(
        self,
        response: HttpResponse,
        source_url: str,
        resolved_spec_url: Optional[str] = None,
    ) -> FetchResult:
        document = parse_document(
            response.text, response.content_type, url=resolved_spec_url or source_url
        )
        return self._result_from_document(
            document,
            source_url=source_url,
            scraped_from_ui=resolved_spec_url is not None,
            resolved_spec_url=resolved_spec_url,
        )

    def _result_from_document(
        self,
        document: Dict[str, Any],
        source_url: str,
        scraped_from_ui: bool = False,
        resolved_spec_url: Optional[str] = None,
    ) -> FetchResult:
        generation = validate_document(document, url=resolved_spec_url or source_url)
        spec_version = spec_version_label(document, generation)
        self.logger.info(
            "Fetched OpenAPI spec",
            spec_version=spec_version,
            url=source_url,
            scraped_from_ui=scraped_from_ui,
        )
        return FetchResult(
            document=document,
            generation=generation,
            source_url=source_url,
            spec_version=spec_version,
            scraped_from_ui=scraped_from_ui,
            resolved_spec_url=resolved_spec_url,
        )

    async def _scrape_swagger_ui(
        self,
        html: str,
        page_url: str,
        auth_token: Optional[str],
        timeout: float,
    ) -> FetchResult:
        spec_url = scraper.extract_spec_url(html, page_url)
        if spec_url:
            return await self._fetch_from_url(spec_url, page_url, auth_token, timeout)

        document = await self._find_embedded_spec(html, page_url, auth_token)
        if document is not None:
            return self._result_from_document(
                document,
                source_url=page_url,
                scraped_from_ui=True,
                resolved_spec_url=f"{page_url} (embedded in init script)",
            )

        discovered = await self._probe_spec_locations(page_url, auth_token)
        if discovered:
            return await self._fetch_from_url(discovered, page_url, auth_token, timeout)

        raise SwaggerUIScrapeError(
            f"Could not locate spec in documentation page at {page_url}",
            url=page_url,
        )

    async def _fetch_from_url(
        self,
        spec_url: str,
        page_url: str,
        auth_token: Optional[str],
        timeout: float,
    ) -> FetchResult:
        self.logger.info("Fetching spec from discovered URL", spec_url=spec_url)
        response = await self.http.get(
            spec_url, headers=self._headers(SPEC_ACCEPT, auth_token), timeout=timeout
        )
        self._raise_for_status(response, spec_url)
        return self._build_result(
            response, source_url=page_url, resolved_spec_url=spec_url
        )

    async def _find_embedded_spec(
        self, html: str, page_url: str, auth_token: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        for script_url in scraper.find_init_scripts(html, page_url):
            self.logger.debug("Checking init script for embedded spec", script_url=script_url)
            try:
                response = await self.http.get(
                    script_url,
                    headers=self._headers("*/*", auth_token),
                    timeout=self.config.script_timeout_seconds,
                )
            except SpecFetchError as e:
                self.logger.debug(
                    "Failed to fetch init script", script_url=script_url, error=str(e)
                )
                continue
            if not response.ok:
                self.logger.debug(
                    "Init script not available",
                    script_url=script_url,
                    status=response.status,
                )
                continue
            document = scraper.extract_embedded_spec(response.text)
            if document is not None:
                return document

        for script in scraper.iter_inline_scripts(html):
            document = scraper.extract_embedded_spec(script)
            if document is not None:
                return document

        return None

    async def _probe_spec_locations(
        self, page_url: str, auth_token: Optional[str]
    ) -> Optional[str]:
        candidates = scraper.probe_candidates(page_url)
        self.logger.debug("Probing common spec locations", count=len(candidates))

        for candidate in candidates:
            try:
                response = await self.http.get(
                    candidate,
                    headers=self._headers(PROBE_ACCEPT, auth_token),
                    timeout=self.config.probe_timeout_seconds,
                )
            except SpecFetchError:
                continue
            if self._is_spec_response(response):
                self.logger.info("Discovered spec URL", spec_url=candidate)
                return candidate
        return None

    @staticmethod
    def _is_spec_response(response: HttpResponse) -> bool:
        if response.status != 200 or "html" in response.content_type.lower():
            return False
        head = response.text.strip().lower()
        if head.startswith("<!doctype") or head.startswith("<html"):
            return False
        try:
            document = parse_document(response.text, response.content_type)
        except SpecFetchError:
            return False
        return bool(document.get("openapi") or document.get("swagger"))
