"""Structured logging for the knotty MCP server.

Everything is routed through structlog on top of the stdlib ``logging``
module. Records go to stderr because stdout is owned by the MCP stdio
transport. An optional rotating file receives the same rendered
records, JSON or console text depending on ``json_logs``.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from structlog.types import EventDict, FilteringBoundLogger, Processor

SENSITIVE_KEY_FRAGMENTS = (
    "password",
    "token",
    "secret",
    "authorization",
    "api_key",
    "apikey",
    "cookie",
    "jwt",
)

REDACTED = "[REDACTED]"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(fragment in lowered for fragment in SENSITIVE_KEY_FRAGMENTS)


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with credential-like values masked.

    Nested dictionaries (request headers, tool arguments) are masked
    recursively. The input mapping is left untouched.
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if _is_sensitive(key):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value
    return sanitized


def redact_credentials(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor masking auth tokens bound to a log call."""
    return sanitize_log_data(event_dict)


def _build_processors(json_logs: bool) -> List[Processor]:
    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_credentials,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
        return processors

    processors.append(
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        )
    )
    # No ANSI colours: stderr is usually captured by the MCP client.
    processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _file_handler(log_file: str, level: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_logs: bool = True,
) -> FilteringBoundLogger:
    """Install the process-wide logging setup.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a rotating log file
        json_logs: Render JSON lines instead of the console format

    Returns:
        Root structlog logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )
    if log_file:
        logging.getLogger().addHandler(_file_handler(log_file, numeric_level))

    structlog.configure(
        processors=_build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger()


def get_logger(name: str, **initial_context: Any) -> FilteringBoundLogger:
    """Module logger, optionally pre-bound with context such as ``component``."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


def log_performance(
    logger: FilteringBoundLogger,
    operation: str,
    duration_ms: float,
    **context: Any
) -> None:
    """Emit a timing record for a parse, search or tool call."""
    logger.info(
        "Performance metric",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        metric_type="performance",
        **context
    )
