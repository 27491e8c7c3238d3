"""Security scheme normalization for both spec generations."""

from typing import Any, Dict, List, Mapping

from .models import NormalizedSecurityScheme, SecurityKind


def _text(raw: Mapping[str, Any], key: str):
    value = raw.get(key)
    return value if isinstance(value, str) else None


def normalize_v3_scheme(name: str, raw: Mapping[str, Any]) -> NormalizedSecurityScheme:
    """Normalize an OpenAPI 3.x ``components.securitySchemes`` entry."""
    scheme_type = raw.get("type")
    description = _text(raw, "description")

    if scheme_type == "apiKey":
        return NormalizedSecurityScheme(
            type=SecurityKind.API_KEY,
            name=name,
            location=_text(raw, "in"),
            parameter_name=_text(raw, "name"),
            description=description,
        )
    if scheme_type == "http":
        http_scheme = _text(raw, "scheme")
        is_bearer = (http_scheme or "").lower() == "bearer"
        return NormalizedSecurityScheme(
            type=SecurityKind.BEARER if is_bearer else SecurityKind.HTTP,
            name=name,
            scheme=http_scheme,
            description=description,
        )
    if scheme_type == "oauth2":
        return NormalizedSecurityScheme(
            type=SecurityKind.OAUTH2, name=name, description=description
        )
    if scheme_type == "openIdConnect":
        return NormalizedSecurityScheme(
            type=SecurityKind.OPEN_ID_CONNECT, name=name, description=description
        )
    return NormalizedSecurityScheme(
        type=SecurityKind.UNKNOWN, name=name, description=description
    )


def normalize_v2_scheme(name: str, raw: Mapping[str, Any]) -> NormalizedSecurityScheme:
    """Normalize a Swagger 2.0 ``securityDefinitions`` entry."""
    scheme_type = raw.get("type")
    description = _text(raw, "description")

    if scheme_type == "apiKey":
        return NormalizedSecurityScheme(
            type=SecurityKind.API_KEY,
            name=name,
            location=_text(raw, "in"),
            parameter_name=_text(raw, "name"),
            description=description,
        )
    if scheme_type == "basic":
        return NormalizedSecurityScheme(
            type=SecurityKind.BASIC, name=name, description=description
        )
    if scheme_type == "oauth2":
        return NormalizedSecurityScheme(
            type=SecurityKind.OAUTH2, name=name, description=description
        )
    return NormalizedSecurityScheme(
        type=SecurityKind.UNKNOWN, name=name, description=description
    )


def resolve_requirements(
    requirements: Any, schemes: Dict[str, NormalizedSecurityScheme]
) -> List[NormalizedSecurityScheme]:
    """Resolve security requirement objects against the known schemes.

    Names with no matching scheme are dropped.

    Args:
        requirements: Raw ``security`` list
        schemes: Normalized schemes by name

    Returns:
        Schemes in requirement order, each carrying its required scopes
    """
    if not isinstance(requirements, list):
        return []

    resolved = []
    for requirement in requirements:
        if not isinstance(requirement, dict):
            continue
        for name, scopes in requirement.items():
            scheme = schemes.get(name)
            if scheme is None:
                continue
            scope_list = [str(s) for s in scopes] if isinstance(scopes, list) else []
            resolved.append(scheme.model_copy(update={"scopes": scope_list}))
    return resolved
