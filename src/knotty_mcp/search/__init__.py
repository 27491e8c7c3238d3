"""Endpoint search and filtering."""

from .endpoint_search import (
    SEARCHED_FIELDS,
    SearchResult,
    filter_endpoints,
    rank_endpoints,
    score_endpoint,
    search_endpoints,
)

__all__ = [
    "SEARCHED_FIELDS",
    "SearchResult",
    "filter_endpoints",
    "rank_endpoints",
    "score_endpoint",
    "search_endpoints",
]
