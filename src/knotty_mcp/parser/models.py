"""Normalized data models for OpenAPI/Swagger documents.

The models are generation-independent: OpenAPI 3.x and Swagger 2.0
documents both normalize into the same shapes. All models are frozen once
built.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SecurityKind(str, Enum):
    """Normalized security scheme kinds."""

    API_KEY = "apiKey"
    HTTP = "http"
    BEARER = "bearer"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"
    BASIC = "basic"
    UNKNOWN = "unknown"


class ParameterLocation(str, Enum):
    """Parameter locations kept on normalized endpoints."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class NormalizedModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary without unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NormalizedSchema(NormalizedModel):
    """Depth-bounded, reference-resolved schema."""

    type: str = Field(default="object", description="Schema type")
    format: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    default: Any = None
    example: Any = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    nullable: Optional[bool] = None
    items: Optional["NormalizedSchema"] = None
    properties: Optional[Dict[str, "NormalizedSchema"]] = None
    required: Optional[List[str]] = None
    one_of: Optional[List["NormalizedSchema"]] = None
    any_of: Optional[List["NormalizedSchema"]] = None
    all_of: Optional[List["NormalizedSchema"]] = None
    ref: Optional[str] = Field(
        default=None, description="Original $ref path the schema came from"
    )


NormalizedSchema.model_rebuild()


class NormalizedParameter(NormalizedModel):
    name: str
    description: Optional[str] = None
    required: bool = False
    deprecated: bool = False
    schema_: NormalizedSchema = Field(
        default_factory=NormalizedSchema, alias="schema"
    )
    example: Any = None


class NormalizedRequestBody(NormalizedModel):
    description: Optional[str] = None
    required: bool = False
    content_types: List[str] = Field(default_factory=list)
    schema_: NormalizedSchema = Field(
        default_factory=NormalizedSchema,
        alias="schema",
        description="Schema of the first declared content type",
    )
    examples: Optional[Dict[str, Any]] = None


class NormalizedResponse(NormalizedModel):
    status_code: str
    description: str = ""
    content_types: List[str] = Field(default_factory=list)
    schema_: Optional[NormalizedSchema] = Field(default=None, alias="schema")


class NormalizedSecurityScheme(NormalizedModel):
    """Security scheme, optionally with the scopes an endpoint requires."""

    type: SecurityKind
    name: str = Field(..., description="Declared scheme name")
    location: Optional[str] = Field(
        default=None, description="apiKey location: header, query or cookie"
    )
    parameter_name: Optional[str] = Field(
        default=None, description="apiKey header/query/cookie parameter name"
    )
    scheme: Optional[str] = Field(default=None, description="HTTP auth scheme")
    description: Optional[str] = None
    scopes: Optional[List[str]] = None


class ServerInfo(NormalizedModel):
    url: str
    description: Optional[str] = None


class NormalizedEndpoint(NormalizedModel):
    """One operation: a path template and an HTTP method."""

    path: str
    method: str = Field(..., description="Lowercase HTTP method")
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    deprecated: bool = False
    path_parameters: List[NormalizedParameter] = Field(default_factory=list)
    query_parameters: List[NormalizedParameter] = Field(default_factory=list)
    header_parameters: List[NormalizedParameter] = Field(default_factory=list)
    cookie_parameters: List[NormalizedParameter] = Field(default_factory=list)
    request_body: Optional[NormalizedRequestBody] = None
    responses: List[NormalizedResponse] = Field(default_factory=list)
    security: List[NormalizedSecurityScheme] = Field(default_factory=list)

    def brief(self) -> Dict[str, Any]:
        """Compact listing form."""
        data = {
            "method": self.method.upper(),
            "path": self.path,
            "operation_id": self.operation_id,
            "summary": self.summary,
        }
        return {k: v for k, v in data.items() if v is not None}


class NormalizedApiDescription(NormalizedModel):
    """A whole API description in normalized form."""

    title: str
    version: str
    description: Optional[str] = None
    base_url: Optional[str] = None
    servers: List[ServerInfo] = Field(default_factory=list)
    endpoints: List[NormalizedEndpoint] = Field(default_factory=list)
    security_schemes: Dict[str, NormalizedSecurityScheme] = Field(
        default_factory=dict
    )
    fetched_at: datetime
    source_url: str
    spec_version: str

    @computed_field
    @property
    def total_endpoints(self) -> int:
        return len(self.endpoints)

    @property
    def tags(self) -> List[str]:
        """Sorted set of tags used by any endpoint."""
        return sorted({tag for endpoint in self.endpoints for tag in endpoint.tags})
