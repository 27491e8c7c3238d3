"""Raw fetch result models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SpecGeneration(str, Enum):
    """Specification schema generations."""

    V3 = "3.x"
    V2 = "2.0"

    @property
    def root_key(self) -> str:
        return "openapi" if self is SpecGeneration.V3 else "swagger"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FetchResult(BaseModel):
    """A validated raw spec document together with its provenance."""

    model_config = ConfigDict(frozen=True)

    document: Dict[str, Any] = Field(..., description="Parsed raw spec document")
    generation: SpecGeneration = Field(..., description="Spec generation")
    source_url: str = Field(..., description="URL the caller asked for")
    spec_version: str = Field(
        ..., description="Version label, e.g. 'OpenAPI 3.0.3' or 'Swagger 2.0'"
    )
    fetched_at: datetime = Field(default_factory=_utcnow)
    scraped_from_ui: bool = Field(
        default=False, description="Spec was located via a Swagger UI page"
    )
    resolved_spec_url: Optional[str] = Field(
        default=None, description="Actual spec location when scraped"
    )
