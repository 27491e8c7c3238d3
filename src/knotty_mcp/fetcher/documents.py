"""Decoding and structural validation of raw spec documents."""

import json
from typing import Any, Dict, Optional

import yaml

from .exceptions import (
    SpecParseError,
    SpecValidationError,
    UnsupportedSpecVersionError,
)
from .models import SpecGeneration


def looks_like_html(content_type: str, body: str) -> bool:
    """Detect an HTML page by content type or by its leading markup."""
    if "html" in (content_type or "").lower():
        return True
    head = body.strip().lower()
    if head.startswith("<!doctype html") or head.startswith("<html"):
        return True
    return "<head" in head and "<body" in head


def parse_document(
    body: str, content_type: str = "", url: Optional[str] = None
) -> Dict[str, Any]:
    """Decode a response body as JSON or YAML.

    JSON is attempted first when the content type mentions json or the body
    opens with a brace; a JSON failure falls through to YAML, which must
    produce a mapping.

    Args:
        body: Response text
        content_type: Response Content-Type header
        url: Source URL, for error reporting

    Returns:
        The decoded mapping

    Raises:
        SpecParseError: If the body is neither a JSON nor a YAML mapping
    """
    text = body.strip()
    if "json" in (content_type or "").lower() or text.startswith("{"):
        try:
            document = json.loads(text)
        except ValueError:
            pass
        else:
            if isinstance(document, dict):
                return document

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecParseError(
            f"Response is neither valid JSON nor YAML: {e}", url=url
        ) from e

    if not isinstance(document, dict):
        raise SpecParseError(
            "Response did not decode to a JSON/YAML object", url=url
        )
    return document


def detect_generation(document: Dict[str, Any]) -> Optional[SpecGeneration]:
    if document.get("openapi") is not None:
        return SpecGeneration.V3
    if document.get("swagger") is not None:
        return SpecGeneration.V2
    return None


def validate_document(
    document: Any, url: Optional[str] = None
) -> SpecGeneration:
    """Check a decoded document is a structurally valid OpenAPI 3.x or Swagger 2.0 spec.

    Args:
        document: Decoded document
        url: Source URL, for error reporting

    Returns:
        The document's generation

    Raises:
        SpecValidationError: If required fields are missing
        UnsupportedSpecVersionError: If the declared version is not supported
    """
    if not isinstance(document, dict):
        raise SpecValidationError("Spec document must be an object", url=url)

    generation = detect_generation(document)
    if generation is None:
        raise SpecValidationError(
            "Document declares neither 'openapi' nor 'swagger' version", url=url
        )

    version = str(document[generation.root_key]).strip()
    if not version:
        raise SpecValidationError(
            f"Spec document is missing required '{generation.root_key}' version",
            url=url,
        )
    if generation is SpecGeneration.V3:
        if version.split(".")[0] != "3":
            raise UnsupportedSpecVersionError(
                f"Unsupported OpenAPI version: {version}", url=url
            )
    elif version != "2.0":
        raise UnsupportedSpecVersionError(
            f"Unsupported Swagger version: {version}", url=url
        )

    for required in ("info", "paths"):
        if document.get(required) is None:
            raise SpecValidationError(
                f"Spec document is missing required '{required}' section",
                url=url,
            )

    return generation


def spec_version_label(document: Dict[str, Any], generation: SpecGeneration) -> str:
    """Human-readable version label such as ``OpenAPI 3.0.3``."""
    version = str(document[generation.root_key]).strip()
    if generation is SpecGeneration.V3:
        return f"OpenAPI {version}"
    return f"Swagger {version}"
