"""Parser turning fetched OpenAPI 3.x / Swagger 2.0 documents into the normalized model."""

import time
from typing import Any, Dict, List, Optional

from knotty_mcp.config.logging import get_logger, log_performance
from knotty_mcp.fetcher.models import FetchResult

from .generations import GenerationRules, rules_for
from .models import (
    NormalizedApiDescription,
    NormalizedEndpoint,
    NormalizedParameter,
    NormalizedSecurityScheme,
    ParameterLocation,
)
from .schema import DEFAULT_MAX_SCHEMA_DEPTH, SchemaNormalizer
from .security import resolve_requirements

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "options", "head", "trace")


def _label(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class SpecParser:
    """Normalizes validated spec documents of either generation.

    Parsing never raises for a structurally valid document: an operation
    that cannot be normalized is logged and left out.
    """

    def __init__(self, max_schema_depth: int = DEFAULT_MAX_SCHEMA_DEPTH):
        self.max_schema_depth = max_schema_depth
        self.logger = get_logger(__name__)

    def parse(self, fetch_result: FetchResult) -> NormalizedApiDescription:
        """Normalize a fetched document.

        Args:
            fetch_result: Validated raw document with provenance

        Returns:
            The normalized API description
        """
        start_time = time.time()
        document = fetch_result.document
        rules = rules_for(fetch_result.generation)
        normalizer = SchemaNormalizer(document, max_depth=self.max_schema_depth)

        self.logger.info(
            "Parsing OpenAPI specification", spec_version=fetch_result.spec_version
        )

        security_schemes = self._security_schemes(document, rules)
        endpoints = self._endpoints(document, rules, normalizer, security_schemes)

        info = document.get("info") if isinstance(document.get("info"), dict) else {}
        description = NormalizedApiDescription(
            title=_label(info.get("title")),
            version=_label(info.get("version")),
            description=_text(info.get("description")),
            base_url=rules.base_url(document),
            servers=rules.servers(document),
            endpoints=endpoints,
            security_schemes=security_schemes,
            fetched_at=fetch_result.fetched_at,
            source_url=fetch_result.source_url,
            spec_version=fetch_result.spec_version,
        )

        log_performance(
            self.logger,
            "parse_spec",
            (time.time() - start_time) * 1000,
            total_endpoints=description.total_endpoints,
        )
        return description

    def _security_schemes(
        self, document: Dict[str, Any], rules: GenerationRules
    ) -> Dict[str, NormalizedSecurityScheme]:
        schemes = {}
        for name, raw in rules.security_definitions(document).items():
            if not isinstance(raw, dict) or "$ref" in raw:
                continue
            schemes[str(name)] = rules.security_scheme(str(name), raw)
        return schemes

    def _endpoints(
        self,
        document: Dict[str, Any],
        rules: GenerationRules,
        normalizer: SchemaNormalizer,
        security_schemes: Dict[str, NormalizedSecurityScheme],
    ) -> List[NormalizedEndpoint]:
        endpoints = []
        paths = document.get("paths") or {}
        if not isinstance(paths, dict):
            return endpoints

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if operation is None:
                    continue
                try:
                    endpoints.append(
                        self._endpoint(
                            str(path), method, operation, path_item,
                            document, rules, normalizer, security_schemes,
                        )
                    )
                except Exception as e:
                    self.logger.warning(
                        "Failed to parse endpoint, skipping",
                        path=path,
                        method=method,
                        error=str(e),
                    )
        return endpoints

    def _endpoint(
        self,
        path: str,
        method: str,
        operation: Any,
        path_item: Dict[str, Any],
        document: Dict[str, Any],
        rules: GenerationRules,
        normalizer: SchemaNormalizer,
        security_schemes: Dict[str, NormalizedSecurityScheme],
    ) -> NormalizedEndpoint:
        """Build one endpoint; raises on malformed operations.

        An operation without its own ``security`` inherits the document-level
        requirements, as OpenAPI defines. An explicit empty list opts out.
        """
        if not isinstance(operation, dict):
            raise TypeError(f"operation must be an object, got {type(operation).__name__}")

        merged = self._merge_parameters(path_item.get("parameters"), operation.get("parameters"))
        by_location: Dict[str, List[NormalizedParameter]] = {
            location.value: [] for location in ParameterLocation
        }
        for param in merged:
            location = param.get("in")
            if location in by_location:
                by_location[location].append(
                    self._parameter(param, rules, normalizer)
                )

        responses = []
        raw_responses = operation.get("responses")
        if isinstance(raw_responses, dict):
            for status_code, response in raw_responses.items():
                if not isinstance(response, dict) or "$ref" in response:
                    continue
                responses.append(
                    rules.response(str(status_code), response, operation, document, normalizer)
                )

        security = operation.get("security")
        if security is None:
            security = document.get("security")

        tags = operation.get("tags")
        return NormalizedEndpoint(
            path=path,
            method=method,
            operation_id=operation.get("operationId"),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
            deprecated=bool(operation.get("deprecated", False)),
            path_parameters=by_location[ParameterLocation.PATH.value],
            query_parameters=by_location[ParameterLocation.QUERY.value],
            header_parameters=by_location[ParameterLocation.HEADER.value],
            cookie_parameters=by_location[ParameterLocation.COOKIE.value],
            request_body=rules.request_body(operation, document, normalizer),
            responses=responses,
            security=resolve_requirements(security, security_schemes),
        )

    @staticmethod
    def _merge_parameters(
        path_level: Optional[Any], operation_level: Optional[Any]
    ) -> List[Dict[str, Any]]:
        """Merge parameter lists by (location, name), operation level winning.

        Reference-only parameters are dropped.
        """
        merged: Dict[tuple, Dict[str, Any]] = {}
        for params in (path_level, operation_level):
            if not isinstance(params, list):
                continue
            for param in params:
                if not isinstance(param, dict) or "$ref" in param:
                    continue
                merged[(param.get("in"), param.get("name"))] = param
        return list(merged.values())

    @staticmethod
    def _parameter(
        param: Dict[str, Any], rules: GenerationRules, normalizer: SchemaNormalizer
    ) -> NormalizedParameter:
        return NormalizedParameter(
            name=str(param.get("name") or ""),
            description=param.get("description"),
            required=bool(param.get("required", False)),
            deprecated=bool(param.get("deprecated", False)),
            schema=rules.parameter_schema(param, normalizer),
            example=param.get("example"),
        )
