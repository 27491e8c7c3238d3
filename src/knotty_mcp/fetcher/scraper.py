"""Locating an API spec inside a rendered Swagger UI page.

These helpers are pure text operations over the page HTML and its scripts;
network access stays in :mod:`knotty_mcp.fetcher.fetcher`.
"""

import json
import re
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urlsplit

from knotty_mcp.config.logging import get_logger

logger = get_logger(__name__)

# Ordered by how specific each pattern is to a Swagger UI configuration.
SPEC_URL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        # SwaggerUIBundle({ url: "..." })
        r"""SwaggerUIBundle\s*\(\s*\{[^}]*url\s*:\s*["']([^"']+)["']""",
        r"""SwaggerUIStandalonePreset[^}]*url\s*:\s*["']([^"']+)["']""",
        # url: "...json|yaml|yml" in any config object
        r"""["']?url["']?\s*:\s*["']([^"']+\.(?:json|yaml|yml))["']""",
        r"""configUrl\s*:\s*["']([^"']+)["']""",
        r"""data-url\s*=\s*["']([^"']+)["']""",
        r"""href\s*=\s*["']([^"']*(?:swagger|openapi|api-docs)[^"']*\.(?:json|yaml|yml))["']""",
        r"""["']?url["']?\s*[=:]\s*["']([^"']+(?:api-docs|swagger|openapi)[^"']*)["']""",
        # Conventional spec paths quoted anywhere in the page
        r"""["']([^"']*/v[23]/api-docs[^"']*)["']""",
        r"""["']([^"']*/swagger\.json[^"']*)["']""",
        r"""["']([^"']*/openapi\.json[^"']*)["']""",
        r"""["']([^"']*/api/docs[^"']*)["']""",
        r"""["']([^"']*/api-docs[^"'/]*)["']""",
    )
]

STATIC_ASSET_PATTERN = re.compile(
    r"\.(css|js|png|jpg|jpeg|gif|svg|ico|woff|ttf|eot)(\?|$)", re.IGNORECASE
)

INIT_SCRIPT_PATTERNS = [
    re.compile(r"""src\s*=\s*["']([^"']*swagger-ui-init[^"']*\.js)["']""", re.IGNORECASE),
    re.compile(r"""src\s*=\s*["']([^"']*swagger-initializer[^"']*\.js)["']""", re.IGNORECASE),
    re.compile(r"""src\s*=\s*["']([^"']*swagger-config[^"']*\.js)["']""", re.IGNORECASE),
]

INLINE_SCRIPT_PATTERN = re.compile(r"<script[^>]*>([\s\S]*?)</script>", re.IGNORECASE)

EMBEDDED_SWAGGER_DOC_PATTERN = re.compile(r'"?swaggerDoc"?\s*:\s*(\{[\s\S]*)')
EMBEDDED_SPEC_PATTERN = re.compile(r'"?spec"?\s*:\s*(\{[\s\S]*"(?:openapi|swagger)"[\s\S]*)')

UI_SEGMENT_PATTERN = re.compile(r"/(api-docs|swagger-ui|swagger)$")


def is_static_asset(url: str) -> bool:
    return bool(STATIC_ASSET_PATTERN.search(url))


def resolve_url(url: str, page_url: str) -> str:
    """Resolve a URL found in a page against that page's URL.

    Args:
        url: URL as written in the page
        page_url: URL of the page itself

    Returns:
        Absolute URL
    """
    if url.startswith(("http://", "https://")):
        return url

    page = urlsplit(page_url)
    if url.startswith("//"):
        return f"{page.scheme}:{url}"
    if url.startswith("/"):
        return f"{page.scheme}://{page.netloc}{url}"

    directory = page.path[: page.path.rfind("/") + 1] or "/"
    return f"{page.scheme}://{page.netloc}{directory}{url}"


def extract_spec_url(html: str, page_url: str) -> Optional[str]:
    """Find the spec URL a Swagger UI page is configured to load.

    Patterns are tried in priority order; static asset references are
    skipped.

    Args:
        html: Page HTML
        page_url: URL of the page, for resolving relative references

    Returns:
        Absolute spec URL, or None if no pattern matched
    """
    for pattern in SPEC_URL_PATTERNS:
        for match in pattern.finditer(html):
            candidate = match.group(1)
            if not candidate or is_static_asset(candidate):
                continue
            resolved = resolve_url(candidate, page_url)
            logger.info(
                "Found spec URL in Swagger UI page",
                spec_url=resolved,
                pattern=pattern.pattern[:40],
            )
            return resolved
    return None


def find_init_scripts(html: str, page_url: str) -> List[str]:
    """Absolute URLs of referenced Swagger UI initializer scripts."""
    scripts = []
    for pattern in INIT_SCRIPT_PATTERNS:
        match = pattern.search(html)
        if match:
            script_url = resolve_url(match.group(1), page_url)
            if script_url not in scripts:
                scripts.append(script_url)
    return scripts


def iter_inline_scripts(html: str) -> Iterator[str]:
    for match in INLINE_SCRIPT_PATTERN.finditer(html):
        yield match.group(0)


def extract_json_object(text: str) -> Optional[str]:
    """Cut the first complete brace-delimited object from the start of text.

    Braces inside string literals are ignored and backslash escapes are
    honoured.

    Args:
        text: Text that starts with ``{``

    Returns:
        The object text, or None if text does not start with a brace or the
        object is never closed
    """
    if not text.startswith("{"):
        return None

    depth = 0
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[: index + 1]
    return None


def _decode_embedded(candidate: str) -> Optional[Dict[str, Any]]:
    object_text = extract_json_object(candidate)
    if object_text is None:
        return None
    try:
        document = json.loads(object_text)
    except ValueError:
        return None
    if isinstance(document, dict) and (
        document.get("openapi") or document.get("swagger")
    ):
        return document
    return None


def extract_embedded_spec(script: str) -> Optional[Dict[str, Any]]:
    """Pull a spec object literal out of JavaScript source.

    A ``swaggerDoc`` key is preferred; a generic ``spec`` key whose object
    mentions ``openapi``/``swagger`` is the fallback.

    Args:
        script: JavaScript (or a whole ``<script>`` element)

    Returns:
        The decoded spec document, or None
    """
    match = EMBEDDED_SWAGGER_DOC_PATTERN.search(script)
    if match:
        document = _decode_embedded(match.group(1))
        if document is not None:
            logger.debug("Found embedded swaggerDoc")
            return document

    match = EMBEDDED_SPEC_PATTERN.search(script)
    if match:
        document = _decode_embedded(match.group(1))
        if document is not None:
            logger.debug("Found embedded spec object")
            return document

    return None


def probe_candidates(page_url: str) -> List[str]:
    """Conventional spec locations to probe for a documentation page.

    Args:
        page_url: URL of the Swagger UI page

    Returns:
        Ordered, de-duplicated absolute URLs on the page's origin
    """
    page = urlsplit(page_url)
    base_path = page.path.rstrip("/")
    stripped = UI_SEGMENT_PATTERN.sub("", base_path)

    paths = [
        # Springdoc / Springfox
        "/v3/api-docs",
        "/v2/api-docs",
        f"{base_path}/v3/api-docs",
        f"{base_path}/v2/api-docs",
        f"{stripped}/v3/api-docs",
        f"{stripped}/v2/api-docs",
        "/swagger.json",
        "/openapi.json",
        f"{base_path}/swagger.json",
        f"{base_path}/openapi.json",
        f"{stripped}/swagger.json",
        "/api/swagger.json",
        "/api/openapi.json",
        "/api/v3/api-docs",
        "/api/v2/api-docs",
        # NestJS serves the document next to the UI as <path>-json
        f"{base_path}-json",
    ]

    origin = f"{page.scheme}://{page.netloc}"
    candidates: List[str] = []
    for path in paths:
        if not path.startswith("/"):
            continue
        url = origin + path
        if url not in candidates:
            candidates.append(url)
    return candidates
