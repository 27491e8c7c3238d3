"""Relevance ranking of normalized endpoints against a free-text query."""

from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from knotty_mcp.parser.models import NormalizedApiDescription, NormalizedEndpoint

SEARCHED_FIELDS = ["path", "operation_id", "summary", "description", "tags"]

# Whole-query matches
OPERATION_ID_EXACT = 100
OPERATION_ID_PARTIAL = 50
PATH_MATCH = 40
SUMMARY_MATCH = 30
DESCRIPTION_MATCH = 20
TAG_MATCH = 15

# Per-term matches
TERM_PATH = 5
TERM_OPERATION_ID = 5
TERM_SUMMARY = 3
TERM_DESCRIPTION = 2


class SearchResult(BaseModel):
    """Ranked endpoints for one query."""

    endpoints: List[NormalizedEndpoint] = Field(default_factory=list)
    query: str
    total_matches: int = Field(..., description="Matches before the limit")
    searched_fields: List[str] = Field(default_factory=lambda: list(SEARCHED_FIELDS))


def filter_endpoints(
    endpoints: Sequence[NormalizedEndpoint],
    method: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[NormalizedEndpoint]:
    """Apply structural filters.

    Args:
        endpoints: Endpoints to filter
        method: HTTP method, matched exactly and case-insensitively
        tag: Case-insensitive substring of any endpoint tag

    Returns:
        Matching endpoints in their original order
    """
    filtered = list(endpoints)
    if method:
        wanted = method.lower()
        filtered = [ep for ep in filtered if ep.method.lower() == wanted]
    if tag:
        needle = tag.lower()
        filtered = [
            ep for ep in filtered if any(needle in t.lower() for t in ep.tags)
        ]
    return filtered


def score_endpoint(endpoint: NormalizedEndpoint, query: str) -> int:
    """Additive relevance score of an endpoint for a query."""
    normalized_query = query.lower().strip()
    terms = normalized_query.split()

    path = endpoint.path.lower()
    operation_id = (endpoint.operation_id or "").lower()
    summary = (endpoint.summary or "").lower()
    description = (endpoint.description or "").lower()

    score = 0
    if endpoint.operation_id is not None and operation_id == normalized_query:
        score += OPERATION_ID_EXACT
    elif endpoint.operation_id is not None and normalized_query in operation_id:
        score += OPERATION_ID_PARTIAL

    if normalized_query in path:
        score += PATH_MATCH
    if endpoint.summary is not None and normalized_query in summary:
        score += SUMMARY_MATCH
    if endpoint.description is not None and normalized_query in description:
        score += DESCRIPTION_MATCH
    if any(normalized_query in t.lower() for t in endpoint.tags):
        score += TAG_MATCH

    for term in terms:
        if term in path:
            score += TERM_PATH
        if term in operation_id:
            score += TERM_OPERATION_ID
        if term in summary:
            score += TERM_SUMMARY
        if term in description:
            score += TERM_DESCRIPTION

    return score


def rank_endpoints(
    endpoints: Sequence[NormalizedEndpoint], query: str
) -> List[NormalizedEndpoint]:
    """Endpoints with a positive score, best first; ties keep input order."""
    scored = [(score_endpoint(ep, query), ep) for ep in endpoints]
    ranked = sorted(
        (item for item in scored if item[0] > 0), key=lambda item: -item[0]
    )
    return [ep for _, ep in ranked]


def search_endpoints(
    description: NormalizedApiDescription,
    query: str,
    method: Optional[str] = None,
    tag: Optional[str] = None,
    limit: Optional[int] = None,
) -> SearchResult:
    """Filter then rank the endpoints of an API description.

    Args:
        description: Normalized API description
        query: Free-text query
        method: Optional HTTP method filter
        tag: Optional tag substring filter
        limit: Maximum number of endpoints returned

    Returns:
        Search result with the total match count before the limit
    """
    candidates = filter_endpoints(description.endpoints, method=method, tag=tag)
    matches = rank_endpoints(candidates, query)
    limited = matches if limit is None else matches[: max(limit, 0)]
    return SearchResult(endpoints=limited, query=query, total_matches=len(matches))
