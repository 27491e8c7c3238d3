"""MCP server exposing an OpenAPI/Swagger API description as tools.

The server keeps one normalized API description in a TTL cache, answers
search and listing tools from it, and offers on-demand analysis of any
other spec URL plus a plain HTTP request tool.
"""

import json
import uuid
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from knotty_mcp.cache.spec_cache import SpecCache
from knotty_mcp.config.logging import get_logger
from knotty_mcp.config.settings import Settings
from knotty_mcp.fetcher.fetcher import SpecFetcher
from knotty_mcp.parser.models import NormalizedApiDescription
from knotty_mcp.parser.spec_parser import SpecParser

from .exceptions import (
    ErrorLogger,
    InternalServerError,
    MCPServerError,
    UnknownToolError,
    ValidationError,
    create_mcp_error_response,
    sanitize_error_data,
)
from .executor import DEFAULT_TIMEOUT_MS, RequestExecutor
from .rate_limiter import RateLimiter
from .tool_handler import ToolHandler
from .tools import HTTP_METHODS, TOOL_NAMES, build_tools

MIN_RESULTS, MAX_RESULTS = 1, 50
MIN_TIMEOUT_MS, MAX_TIMEOUT_MS = 1000, 60000


def _require_string(arguments: Dict[str, Any], name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            parameter=name,
            message=f"{name} parameter is required and must be a string",
            value=value,
        )
    return value.strip()


def _optional_string(arguments: Dict[str, Any], name: str) -> Optional[str]:
    value = arguments.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(parameter=name, message="must be a string", value=value)
    return value


def _optional_mapping(arguments: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(parameter=name, message="must be an object", value=value)
    return value


def _clamped_number(
    arguments: Dict[str, Any], name: str, low: int, high: int
) -> Optional[int]:
    value = arguments.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(parameter=name, message="must be a number", value=value)
    return int(min(max(low, value), high))


def _method(arguments: Dict[str, Any]) -> str:
    method = (_optional_string(arguments, "method") or "GET").upper()
    if method not in HTTP_METHODS:
        raise ValidationError(
            parameter="method",
            message=f"unsupported HTTP method '{method}'",
            value=method,
            suggestions=HTTP_METHODS,
        )
    return method


class KnottyMcpServer:
    """MCP server over one cached API description."""

    def __init__(
        self,
        settings: Settings,
        fetcher: Optional[SpecFetcher] = None,
        parser: Optional[SpecParser] = None,
        cache: Optional[SpecCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        executor: Optional[RequestExecutor] = None,
    ):
        """Initialize the MCP server.

        Args:
            settings: Application settings
            fetcher: Spec fetcher, built from settings if omitted
            parser: Spec parser, built from settings if omitted
            cache: Spec cache, built from settings if omitted
            rate_limiter: Tool call limiter, built from settings if omitted
            executor: HTTP request executor
        """
        self.settings = settings
        self.logger = get_logger(__name__)
        self.error_logger = ErrorLogger(self.logger)

        self.fetcher = fetcher or SpecFetcher(settings.fetch)
        self.parser = parser or SpecParser(settings.parser.max_schema_depth)
        self.cache = cache or SpecCache(
            ttl_seconds=settings.cache.ttl_seconds,
            refresh_producer=(
                self._fetch_and_parse if settings.has_default_spec else None
            ),
        )
        self.rate_limiter = rate_limiter or RateLimiter(
            settings.rate_limit.max, settings.rate_limit.window_seconds
        )
        self.handler = ToolHandler(
            cache=self.cache,
            rate_limiter=self.rate_limiter,
            fetcher=self.fetcher,
            parser=self.parser,
            executor=executor or RequestExecutor(),
        )

        self.server = Server(settings.server.name, version=settings.server.version)
        self._register_handlers()

        self.logger.info(
            "MCP server initialized",
            name=settings.server.name,
            version=settings.server.version,
            spec_url=settings.openapi_spec_url,
        )

    async def _fetch_and_parse(self) -> NormalizedApiDescription:
        fetch_result = await self.fetcher.fetch(
            self.settings.openapi_spec_url,
            auth_token=self.settings.swagger_auth_token,
        )
        return self.parser.parse(fetch_result)

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return build_tools()

        @self.server.call_tool()
        async def call_tool(
            name: str, arguments: Optional[Dict[str, Any]]
        ) -> List[types.TextContent]:
            result = await self.dispatch(name, arguments or {})
            return [
                types.TextContent(
                    type="text", text=json.dumps(result, indent=2, default=str)
                )
            ]

    async def dispatch(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a tool call and route it to the tool handler.

        Args:
            name: Tool name
            arguments: Raw tool arguments

        Returns:
            JSON-serialisable tool result; protocol-level failures are
            returned as error responses rather than raised
        """
        request_id = str(uuid.uuid4())
        self.logger.info(
            "Tool called",
            tool=name,
            request_id=request_id,
            arguments=sanitize_error_data(arguments),
        )

        try:
            return await self._route(name, arguments)
        except MCPServerError as e:
            self.error_logger.log_error(
                e, context={"tool": name}, request_id=request_id
            )
            return create_mcp_error_response(e, request_id)
        except Exception as e:
            self.error_logger.log_operation_error(
                operation=f"call_tool_{name}",
                error=e,
                context={"tool": name},
                request_id=request_id,
            )
            return create_mcp_error_response(
                InternalServerError(request_id), request_id
            )

    async def _route(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        handler = self.handler

        if name == "getApiSchema":
            return await handler.get_api_schema(
                query=_require_string(arguments, "query"),
                max_results=_clamped_number(
                    arguments, "maxResults", MIN_RESULTS, MAX_RESULTS
                ),
                include_request_body=bool(arguments.get("includeRequestBody", True)),
                include_responses=bool(arguments.get("includeResponses", True)),
                method=_optional_string(arguments, "method"),
                tag=_optional_string(arguments, "tag"),
            )
        if name == "getApiInfo":
            return await handler.get_api_info()
        if name == "listEndpoints":
            return await handler.list_endpoints(
                method=_optional_string(arguments, "method"),
                tag=_optional_string(arguments, "tag"),
            )
        if name == "refreshCache":
            return await handler.refresh_cache()
        if name == "getCacheStatus":
            return handler.get_cache_status()
        if name == "analyzeApiFromUrl":
            return await handler.analyze_api_from_url(
                url=_require_string(arguments, "url"),
                auth_token=_optional_string(arguments, "authToken"),
                query=_optional_string(arguments, "query"),
                max_results=_clamped_number(
                    arguments, "maxResults", MIN_RESULTS, MAX_RESULTS
                ),
            )
        if name == "executeApiRequest":
            timeout_ms = _clamped_number(
                arguments, "timeout", MIN_TIMEOUT_MS, MAX_TIMEOUT_MS
            )
            return await handler.execute_api_request(
                url=_require_string(arguments, "url"),
                method=_method(arguments),
                body=arguments.get("body"),
                headers=_optional_mapping(arguments, "headers"),
                auth_token=_optional_string(arguments, "authToken"),
                timeout_ms=timeout_ms or DEFAULT_TIMEOUT_MS,
                follow_redirects=bool(arguments.get("followRedirects", True)),
            )
        if name == "req":
            return await handler.execute_api_request(
                url=_require_string(arguments, "url"),
                method=_method(arguments),
                body=arguments.get("body"),
                headers=_optional_mapping(arguments, "headers"),
                auth_token=_optional_string(arguments, "authToken"),
                timeout_ms=DEFAULT_TIMEOUT_MS,
                follow_redirects=True,
            )

        raise UnknownToolError(name, TOOL_NAMES)

    async def run(self) -> None:
        """Run the server over stdio until the client disconnects."""
        self.logger.info(
            "Starting MCP server with stdio transport",
            spec_url=self.settings.openapi_spec_url,
            cache_refresh_minutes=self.settings.cache.refresh_minutes,
        )

        if self.cache.has_producer:
            try:
                self.logger.info("Performing initial spec fetch")
                await self.cache.refresh()
            except Exception as e:
                self.logger.warning(
                    "Initial spec fetch failed, will retry on first request",
                    error=str(e),
                )
            if self.settings.cache.auto_refresh:
                self.cache.start_auto_refresh()
        else:
            self.logger.warning(
                "No OPENAPI_SPEC_URL configured; only analyzeApiFromUrl and "
                "request tools are usable"
            )

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.cache.stop_auto_refresh()
            await self.handler.close()
            self.logger.info("MCP server stopped")


def create_server(settings: Optional[Settings] = None) -> KnottyMcpServer:
    """Create and configure an MCP server instance.

    Args:
        settings: Application settings, loaded from the environment if None

    Returns:
        Configured server instance
    """
    if settings is None:
        settings = Settings()
    return KnottyMcpServer(settings)
