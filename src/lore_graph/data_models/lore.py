"""Models exchanged between the retriever, the generator and the validator."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from lore_graph.data_models.entities import CanonicalEntity


class LoreEntity(BaseModel):
    """
    Candidate entity as claimed by generated lore.

    ``type`` is kept as a raw label: an unknown type is a schema violation to
    report, not something to drop silently.
    """

    type: str
    name: str
    properties: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_canonical(cls, entity: CanonicalEntity) -> "LoreEntity":
        properties = {k: v for k, v in entity.properties.items() if k != "name"}
        return cls(type=entity.type.value, name=entity.name, properties=properties)

    def as_properties(self) -> dict[str, Any]:
        """Properties with the name folded in, as the schema expects them."""
        return {**self.properties, "name": self.name}


class LoreRelationship(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    from_name: str = Field(validation_alias=AliasChoices("from_name", "from"))
    to_name: str = Field(validation_alias=AliasChoices("to_name", "to"))


class GeneratedLore(BaseModel):
    """Parsed output of the generator for one iteration."""

    text: str = ""
    entities: list[LoreEntity] = Field(default_factory=list)
    relationships: list[LoreRelationship] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = "No reasoning provided"
    generation_time_ms: int = 0


class GraphEntitySummary(BaseModel):
    id: str
    type: str
    properties: dict[str, Any] = Field(default_factory=dict)


class GraphRelationshipSummary(BaseModel):
    type: str
    from_id: str
    to_id: str
    properties: dict[str, Any] = Field(default_factory=dict)


class LoreDocument(BaseModel):
    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievedContext(BaseModel):
    """Context assembled by the retriever for one query."""

    entities: list[GraphEntitySummary] = Field(default_factory=list)
    relationships: list[GraphRelationshipSummary] = Field(default_factory=list)
    documents: list[LoreDocument] = Field(default_factory=list)
    relevance_score: float = 0.0
    retrieval_time_ms: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.entities or self.relationships or self.documents)
