"""Entity and relationship models for the ingestion pipeline.

ExtractedEntity -> ClassifiedEntity -> CanonicalEntity is a one-way,
single-pass pipeline per ingestion request.
"""

import uuid
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from lore_graph.schemas.enums import EntityType


class ExtractedEntity(BaseModel):
    """Entity as produced by the extractor (LLM output, untrusted)."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    name: str | None = None
    aliases: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("aliases", "mentions")
    )
    properties: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("properties", "attributes")
    )
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def name_from_properties(cls, data: Any) -> Any:
        # Extractors often put the name inside the attribute map, or only
        # list it as the first mention.
        if isinstance(data, dict) and not data.get("name"):
            props = data.get("properties") or data.get("attributes") or {}
            mentions = data.get("mentions") or data.get("aliases") or []
            if isinstance(props, dict) and props.get("name"):
                data = {**data, "name": props["name"]}
            elif mentions and isinstance(mentions[0], str):
                data = {**data, "name": mentions[0]}
        return data


class RawRelationshipMention(BaseModel):
    """Relationship between two entity mentions, by name."""

    model_config = ConfigDict(populate_by_name=True)

    from_name: str = Field(validation_alias=AliasChoices("from_name", "from"))
    to_name: str = Field(validation_alias=AliasChoices("to_name", "to"))
    type: str
    evidence: str | None = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class ExtractionResult(BaseModel):
    """Output of the Extract step."""

    entities: list[ExtractedEntity] = Field(default_factory=list)
    relationships: list[RawRelationshipMention] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    extraction_time_ms: int = 0


class ClassifiedEntity(BaseModel):
    """Extracted entity whose type is mapped onto the closed type set."""

    source_id: str  # Temporary identifier for this extraction
    type: EntityType
    name: str | None
    aliases: list[str] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class CanonicalEntity(BaseModel):
    """
    Deduplicated entity keyed by a deterministic canonical ID.

    ``id`` is a pure function of ``(type, normalized name)``; the display name
    lives in ``properties["name"]``.
    """

    id: str
    type: EntityType
    properties: dict[str, Any] = Field(default_factory=dict)
    merged_from: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def name(self) -> str:
        return str(self.properties.get("name", ""))


class CanonicalRelationship(BaseModel):
    """Relationship whose endpoints are canonical entity IDs."""

    type: str
    from_id: str
    to_id: str
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.from_id, self.type, self.to_id)


class CanonicalizationResult(BaseModel):
    """Output of one canonicalization pass."""

    entities: list[CanonicalEntity] = Field(default_factory=list)
    relationships: list[CanonicalRelationship] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class IngestionStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class IngestionResult(BaseModel):
    """Summary of one Extract -> Define -> Canonicalize -> Write job."""

    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: IngestionStatus
    entities: list[CanonicalEntity] = Field(default_factory=list)
    relationships: list[CanonicalRelationship] = Field(default_factory=list)
    entities_created: int = 0
    relationships_created: int = 0
    extraction_time_ms: int = 0
    define_time_ms: int = 0
    canonicalize_time_ms: int = 0
    graph_write_time_ms: int = 0
    total_time_ms: int = 0
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
