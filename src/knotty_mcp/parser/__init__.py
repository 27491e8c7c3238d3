"""Normalization of OpenAPI 3.x and Swagger 2.0 documents."""

from .generations import V2_RULES, V3_RULES, GenerationRules, rules_for
from .models import (
    NormalizedApiDescription,
    NormalizedEndpoint,
    NormalizedParameter,
    NormalizedRequestBody,
    NormalizedResponse,
    NormalizedSchema,
    NormalizedSecurityScheme,
    SecurityKind,
    ServerInfo,
)
from .schema import DEFAULT_MAX_SCHEMA_DEPTH, SchemaNormalizer
from .spec_parser import SpecParser

__all__ = [
    "DEFAULT_MAX_SCHEMA_DEPTH",
    "GenerationRules",
    "NormalizedApiDescription",
    "NormalizedEndpoint",
    "NormalizedParameter",
    "NormalizedRequestBody",
    "NormalizedResponse",
    "NormalizedSchema",
    "NormalizedSecurityScheme",
    "SchemaNormalizer",
    "SecurityKind",
    "ServerInfo",
    "SpecParser",
    "V2_RULES",
    "V3_RULES",
    "rules_for",
]
