"""Command-line entry point for the knotty MCP server.

``serve`` runs the MCP server over stdio; ``analyze`` performs a one-shot
analysis of any OpenAPI/Swagger URL and prints the result.
"""

import asyncio
import json
import sys
import traceback
from typing import Any, Dict, Optional

import click
import pydantic
import yaml

from . import __version__
from .cache.spec_cache import SpecCache
from .config.logging import configure_logging, get_logger
from .config.settings import CacheConfig, LoggingConfig, Settings
from .fetcher.fetcher import SpecFetcher
from .parser.spec_parser import SpecParser
from .server.mcp_server import KnottyMcpServer
from .server.rate_limiter import RateLimiter
from .server.tool_handler import ToolHandler

logger = get_logger(__name__)


class CLIError(Exception):
    """CLI error with a user-friendly message."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)


def handle_cli_error(error: Exception, ctx: Optional[click.Context] = None):
    """Report an error on stderr and exit non-zero."""
    if isinstance(error, CLIError):
        click.echo(f"Error: {error.message}", err=True)
        if error.suggestion:
            click.echo(f"Suggestion: {error.suggestion}", err=True)
    elif isinstance(error, click.ClickException):
        error.show()
    else:
        verbose = bool(ctx and ctx.obj and ctx.obj.get("verbose"))
        click.echo(f"Unexpected error: {error}", err=True)
        if verbose:
            click.echo(traceback.format_exc(), err=True)
        else:
            click.echo("Run with --verbose for detailed error information", err=True)

    sys.exit(1)


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment with command-line overrides.

    Raises:
        CLIError: If the resulting configuration is invalid
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise CLIError(
            f"Configuration validation failed: {problems}",
            "Check the environment variables and command-line options",
        ) from e


@click.group()
@click.version_option(version=__version__, prog_name="knotty-mcp")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable debug logging"
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_level: Optional[str]):
    """Expose an OpenAPI/Swagger API description to AI assistants over MCP.

    \b
    Examples:
      OPENAPI_SPEC_URL=https://petstore.swagger.io/v2/swagger.json knotty-mcp serve
      knotty-mcp analyze https://example.com/swagger-ui.html --query users
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        logging_config = LoggingConfig()
    except pydantic.ValidationError:
        logging_config = LoggingConfig(level="INFO")

    level = "DEBUG" if verbose else (log_level or logging_config.level)
    configure_logging(
        level=level.upper(),
        log_file=logging_config.file_path,
        json_logs=logging_config.json_format,
    )


@cli.command()
@click.option("--spec-url", help="OpenAPI/Swagger spec or Swagger UI URL")
@click.option("--auth-token", help="Bearer token for the spec URL")
@click.option(
    "--cache-minutes", type=click.IntRange(min=1), help="Cache TTL in minutes"
)
@click.pass_context
def serve(
    ctx: click.Context,
    spec_url: Optional[str],
    auth_token: Optional[str],
    cache_minutes: Optional[int],
):
    """Run the MCP server over stdio.

    The spec URL, token and cache TTL default to OPENAPI_SPEC_URL,
    SWAGGER_AUTH_TOKEN and CACHE_REFRESH_MINUTES.
    """
    try:
        settings = load_settings(
            openapi_spec_url=spec_url,
            swagger_auth_token=auth_token,
            cache=CacheConfig(refresh_minutes=cache_minutes) if cache_minutes else None,
        )
        server = KnottyMcpServer(settings)
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as error:
        handle_cli_error(error, ctx)


async def _analyze(
    settings: Settings,
    url: str,
    auth_token: Optional[str],
    query: Optional[str],
    max_results: int,
) -> Dict[str, Any]:
    handler = ToolHandler(
        cache=SpecCache(ttl_seconds=settings.cache.ttl_seconds),
        rate_limiter=RateLimiter(settings.rate_limit.max),
        fetcher=SpecFetcher(settings.fetch),
        parser=SpecParser(settings.parser.max_schema_depth),
    )
    try:
        return await handler.analyze_api_from_url(
            url, auth_token=auth_token, query=query, max_results=max_results
        )
    finally:
        await handler.close()


@cli.command()
@click.argument("url")
@click.option("--auth-token", help="Bearer token for protected specs")
@click.option("--query", "-q", help="Search query for specific endpoints")
@click.option(
    "--max-results",
    type=click.IntRange(min=1, max=50),
    default=10,
    show_default=True,
    help="Maximum endpoints returned for --query",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"]),
    default="json",
    show_default=True,
    help="Output format",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    url: str,
    auth_token: Optional[str],
    query: Optional[str],
    max_results: int,
    output_format: str,
):
    """Analyze the API spec (or Swagger UI page) at URL and print a summary."""
    try:
        settings = load_settings()
        result = asyncio.run(
            _analyze(settings, url, auth_token, query, max_results)
        )
        if not result["success"]:
            raise CLIError(result["error"], result.get("suggestion"))

        if output_format == "yaml":
            click.echo(yaml.safe_dump(result["data"], sort_keys=False))
        else:
            click.echo(json.dumps(result["data"], indent=2, default=str))
    except Exception as error:
        handle_cli_error(error, ctx)


if __name__ == "__main__":
    cli()
