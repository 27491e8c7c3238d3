"""Generation-specific normalization rules.

Each spec generation gets one :class:`GenerationRules` value whose fields are
plain functions, one per normalized field that differs between OpenAPI 3.x
and Swagger 2.0. The parser picks the rules once per document and never
branches on the generation again.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from knotty_mcp.fetcher.models import SpecGeneration

from .models import (
    NormalizedRequestBody,
    NormalizedResponse,
    NormalizedSchema,
    NormalizedSecurityScheme,
    ServerInfo,
)
from .schema import SchemaNormalizer
from .security import normalize_v2_scheme, normalize_v3_scheme

DEFAULT_CONTENT_TYPE = "application/json"

RawMapping = Mapping[str, Any]


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _content_types(value: Any) -> List[str]:
    if isinstance(value, list) and value:
        return [str(v) for v in value]
    return []


# OpenAPI 3.x


def v3_base_url(document: RawMapping) -> Optional[str]:
    servers = v3_servers(document)
    return servers[0].url if servers else None


def v3_servers(document: RawMapping) -> List[ServerInfo]:
    servers = document.get("servers")
    if not isinstance(servers, list):
        return []
    return [
        ServerInfo(url=str(server["url"]), description=_text(server.get("description")))
        for server in servers
        if isinstance(server, dict) and server.get("url")
    ]


def v3_parameter_schema(
    param: RawMapping, normalizer: SchemaNormalizer
) -> NormalizedSchema:
    if param.get("schema"):
        return normalizer.normalize(param["schema"])
    # content-style parameters carry their schema under a media type
    for media in _mapping(param.get("content")).values():
        if isinstance(media, dict) and media.get("schema"):
            return normalizer.normalize(media["schema"])
    return normalizer.normalize(None)


def v3_request_body(
    operation: RawMapping, document: RawMapping, normalizer: SchemaNormalizer
) -> Optional[NormalizedRequestBody]:
    body = operation.get("requestBody")
    if not isinstance(body, dict) or "$ref" in body:
        return None
    content = _mapping(body.get("content"))
    if not content:
        return None

    content_types = list(content.keys())
    first = _mapping(content[content_types[0]])
    examples = first.get("examples")
    return NormalizedRequestBody(
        description=body.get("description"),
        required=bool(body.get("required", False)),
        content_types=content_types,
        schema=normalizer.normalize(first.get("schema")),
        examples=examples if isinstance(examples, dict) else None,
    )


def v3_response(
    status_code: str,
    response: RawMapping,
    operation: RawMapping,
    document: RawMapping,
    normalizer: SchemaNormalizer,
) -> NormalizedResponse:
    content = _mapping(response.get("content"))
    content_types = list(content.keys())
    schema = None
    if content_types:
        first_schema = _mapping(content[content_types[0]]).get("schema")
        if first_schema:
            schema = normalizer.normalize(first_schema)
    return NormalizedResponse(
        status_code=status_code,
        description=response.get("description") or "",
        content_types=content_types,
        schema=schema,
    )


def v3_security_definitions(document: RawMapping) -> Dict[str, Any]:
    return _mapping(_mapping(document.get("components")).get("securitySchemes"))


# Swagger 2.0


def v2_base_url(document: RawMapping) -> Optional[str]:
    host = document.get("host")
    if not host:
        return None
    schemes = document.get("schemes")
    scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
    base_path = document.get("basePath") or ""
    return f"{scheme}://{host}{base_path}"


def v2_servers(document: RawMapping) -> List[ServerInfo]:
    base_url = v2_base_url(document)
    return [ServerInfo(url=base_url)] if base_url else []


def v2_parameter_schema(
    param: RawMapping, normalizer: SchemaNormalizer
) -> NormalizedSchema:
    # Swagger 2.0 non-body parameters carry their type information inline
    pseudo_schema = {"type": param.get("type") or "string"}
    for key in (
        "format", "enum", "default", "items", "minimum", "maximum",
        "minLength", "maxLength", "pattern",
    ):
        if key in param:
            pseudo_schema[key] = param[key]
    return normalizer.normalize(pseudo_schema)


def v2_request_body(
    operation: RawMapping, document: RawMapping, normalizer: SchemaNormalizer
) -> Optional[NormalizedRequestBody]:
    parameters = operation.get("parameters")
    if not isinstance(parameters, list):
        return None
    body_param = next(
        (p for p in parameters if isinstance(p, dict) and p.get("in") == "body"),
        None,
    )
    if body_param is None or not body_param.get("schema"):
        return None

    content_types = (
        _content_types(operation.get("consumes"))
        or _content_types(document.get("consumes"))
        or [DEFAULT_CONTENT_TYPE]
    )
    return NormalizedRequestBody(
        description=body_param.get("description"),
        required=bool(body_param.get("required", False)),
        content_types=content_types,
        schema=normalizer.normalize(body_param["schema"]),
    )


def v2_response(
    status_code: str,
    response: RawMapping,
    operation: RawMapping,
    document: RawMapping,
    normalizer: SchemaNormalizer,
) -> NormalizedResponse:
    content_types = (
        _content_types(operation.get("produces"))
        or _content_types(document.get("produces"))
        or [DEFAULT_CONTENT_TYPE]
    )
    schema = response.get("schema")
    return NormalizedResponse(
        status_code=status_code,
        description=response.get("description") or "",
        content_types=content_types,
        schema=normalizer.normalize(schema) if schema else None,
    )


def v2_security_definitions(document: RawMapping) -> Dict[str, Any]:
    return _mapping(document.get("securityDefinitions"))


@dataclass(frozen=True)
class GenerationRules:
    """Per-field normalization functions for one spec generation."""

    generation: SpecGeneration
    base_url: Callable[[RawMapping], Optional[str]]
    servers: Callable[[RawMapping], List[ServerInfo]]
    parameter_schema: Callable[[RawMapping, SchemaNormalizer], NormalizedSchema]
    request_body: Callable[
        [RawMapping, RawMapping, SchemaNormalizer], Optional[NormalizedRequestBody]
    ]
    response: Callable[
        [str, RawMapping, RawMapping, RawMapping, SchemaNormalizer],
        NormalizedResponse,
    ]
    security_definitions: Callable[[RawMapping], Dict[str, Any]]
    security_scheme: Callable[[str, RawMapping], NormalizedSecurityScheme]


V3_RULES = GenerationRules(
    generation=SpecGeneration.V3,
    base_url=v3_base_url,
    servers=v3_servers,
    parameter_schema=v3_parameter_schema,
    request_body=v3_request_body,
    response=v3_response,
    security_definitions=v3_security_definitions,
    security_scheme=normalize_v3_scheme,
)

V2_RULES = GenerationRules(
    generation=SpecGeneration.V2,
    base_url=v2_base_url,
    servers=v2_servers,
    parameter_schema=v2_parameter_schema,
    request_body=v2_request_body,
    response=v2_response,
    security_definitions=v2_security_definitions,
    security_scheme=normalize_v2_scheme,
)


def rules_for(generation: SpecGeneration) -> GenerationRules:
    return V3_RULES if generation is SpecGeneration.V3 else V2_RULES
