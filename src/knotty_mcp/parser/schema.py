"""Schema normalization with local reference resolution."""

from typing import Any, Dict, Optional, Tuple

from .models import NormalizedSchema

DEFAULT_MAX_SCHEMA_DEPTH = 10

OPAQUE_OBJECT = NormalizedSchema(type="object")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_pointer(document: Dict[str, Any], ref: str) -> Optional[Any]:
    """Resolve a local ``#/...`` JSON pointer against a document.

    Args:
        document: Root document
        ref: Reference string

    Returns:
        The referenced node, or None for external or dangling references
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return None

    current: Any = document
    for raw_part in ref[2:].split("/"):
        part = raw_part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


class SchemaNormalizer:
    """Normalizes raw schema objects of one document.

    Recursion is bounded by ``max_depth``: anything deeper, including
    self-referencing schemas, collapses into an opaque object schema.
    """

    def __init__(
        self, document: Dict[str, Any], max_depth: int = DEFAULT_MAX_SCHEMA_DEPTH
    ):
        self.document = document
        self.max_depth = max_depth

    def normalize(self, schema: Any, depth: int = 0) -> NormalizedSchema:
        if depth > self.max_depth or not schema or not isinstance(schema, dict):
            return OPAQUE_OBJECT

        ref = schema.get("$ref")
        if ref:
            resolved = resolve_pointer(self.document, ref)
            if isinstance(resolved, dict) and resolved:
                return self.normalize(resolved, depth + 1).model_copy(
                    update={"ref": ref}
                )
            return NormalizedSchema(type="object", ref=str(ref))

        fields: Dict[str, Any] = {}
        schema_type, nullable = self._schema_type(schema)
        fields["type"] = schema_type

        for key in ("format", "description", "pattern"):
            if isinstance(schema.get(key), str) and schema[key]:
                fields[key] = schema[key]
        if isinstance(schema.get("enum"), list):
            fields["enum"] = schema["enum"]
        if "default" in schema:
            fields["default"] = schema["default"]
        if "example" in schema:
            fields["example"] = schema["example"]
        for key in ("minimum", "maximum"):
            if _is_number(schema.get(key)):
                fields[key] = schema[key]
        for key, target in (("minLength", "min_length"), ("maxLength", "max_length")):
            if isinstance(schema.get(key), int) and not isinstance(schema[key], bool):
                fields[target] = schema[key]
        if nullable or schema.get("nullable") is True:
            fields["nullable"] = True

        if schema_type == "array" and schema.get("items"):
            fields["items"] = self.normalize(schema["items"], depth + 1)

        properties = schema.get("properties")
        if schema_type == "object" or properties:
            required = schema.get("required")
            if isinstance(required, list):
                fields["required"] = [str(name) for name in required]
            if isinstance(properties, dict):
                fields["properties"] = {
                    str(name): self.normalize(prop, depth + 1)
                    for name, prop in properties.items()
                }

        for key, target in (("oneOf", "one_of"), ("anyOf", "any_of"), ("allOf", "all_of")):
            if isinstance(schema.get(key), list):
                fields[target] = [
                    self.normalize(member, depth + 1) for member in schema[key]
                ]

        return NormalizedSchema(**fields)

    @staticmethod
    def _schema_type(schema: Dict[str, Any]) -> Tuple[str, bool]:
        """Schema type and whether a type list allowed null."""
        declared = schema.get("type")
        if isinstance(declared, list):
            # OpenAPI 3.1 type lists, e.g. ["string", "null"]
            concrete = [t for t in declared if t != "null"]
            nullable = len(concrete) < len(declared)
            if concrete:
                return str(concrete[0]), nullable
            if nullable:
                return "null", True
        elif declared:
            return str(declared), False

        if schema.get("properties"):
            return "object", False
        if "items" in schema:
            return "array", False
        if schema.get("enum"):
            return "string", False
        return "object", False
