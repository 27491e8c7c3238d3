"""Spec discovery and fetching."""

from .exceptions import (
    AuthenticationRequiredError,
    FetchConnectionError,
    FetchTimeoutError,
    HttpFailureError,
    SpecFetchError,
    SpecNotFoundError,
    SpecParseError,
    SpecValidationError,
    SwaggerUIScrapeError,
    UnsupportedSpecVersionError,
)
from .fetcher import SpecFetcher
from .http import HttpClient, HttpResponse
from .models import FetchResult, SpecGeneration

__all__ = [
    "AuthenticationRequiredError",
    "FetchConnectionError",
    "FetchResult",
    "FetchTimeoutError",
    "HttpClient",
    "HttpFailureError",
    "HttpResponse",
    "SpecFetchError",
    "SpecFetcher",
    "SpecGeneration",
    "SpecNotFoundError",
    "SpecParseError",
    "SpecValidationError",
    "SwaggerUIScrapeError",
    "UnsupportedSpecVersionError",
]
