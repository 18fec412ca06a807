"""Schema registry: per-entity-type property schemas and validation.

Each entity type in the closed ``EntityType`` set maps to exactly one pydantic
model. ``validate`` is a pure function (no state, no I/O) shared by the
canonicalization engine and the consistency validator.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from lore_graph.data_models.validation import SchemaViolation
from lore_graph.schemas.enums import (
    Alignment,
    EntityType,
    EventType,
    LocationType,
    RelationshipType,
    ResourceType,
)

# Identity/bookkeeping keys written by the graph store, never part of lore
BOOKKEEPING_FIELDS = frozenset({"id", "updated_at"})


def _lenient(enum_cls):
    """Coerce loosely-cased strings into ``enum_cls`` before validation."""

    def coerce(value: Any) -> Any:
        try:
            return enum_cls(value)
        except ValueError:
            return value

    return BeforeValidator(coerce)


NonEmptyStr = Annotated[str, Field(min_length=1)]


class _LoreSchema(BaseModel):
    """Base for entity property schemas; unknown properties are allowed."""

    model_config = ConfigDict(extra="allow")

    name: NonEmptyStr


class CharacterRelationship(BaseModel):
    character_id: NonEmptyStr
    type: Annotated[RelationshipType, _lenient(RelationshipType)]
    description: NonEmptyStr


class SourcePerspective(BaseModel):
    source: NonEmptyStr
    perspective: NonEmptyStr


class FactionSchema(_LoreSchema):
    """A political group, organization or military force."""

    alignment: Annotated[Alignment, _lenient(Alignment)]
    core_motivation: NonEmptyStr | None = None
    leader_name: NonEmptyStr | None = None
    controlled_resources: list[str] = Field(default_factory=list)
    relationship_to_hegemony: str | None = None
    justification: NonEmptyStr | None = None


class CharacterSchema(_LoreSchema):
    """A named individual."""

    role: NonEmptyStr
    faction_affiliation: NonEmptyStr | None = None
    relationships: list[CharacterRelationship] = Field(default_factory=list)
    historical_events: list[str] = Field(default_factory=list)


class LocationSchema(_LoreSchema):
    """A city, region or stronghold."""

    type: Annotated[LocationType, _lenient(LocationType)]
    climate: NonEmptyStr | None = None
    connected_locations: list[str] = Field(default_factory=list)
    controlling_faction: NonEmptyStr | None = None
    resources: list[str] = Field(default_factory=list)


class ResourceSchema(_LoreSchema):
    """A strategic asset (military, economic, technological...)."""

    type: Annotated[ResourceType, _lenient(ResourceType)]
    location: NonEmptyStr | None = None
    controlling_faction: NonEmptyStr | None = None
    strategic_value: int | None = Field(default=None, ge=0, le=100)


class EventSchema(_LoreSchema):
    """A battle, treaty, discovery or other historical event."""

    type: Annotated[EventType, _lenient(EventType)]
    date: str
    participants: list[str] = Field(default_factory=list)
    consequences: NonEmptyStr | None = None
    source_perspective: list[SourcePerspective] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def date_is_iso_8601(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError("Date must be ISO 8601 compliant") from e
        return value


ENTITY_SCHEMAS: dict[EntityType, type[_LoreSchema]] = {
    EntityType.FACTION: FactionSchema,
    EntityType.CHARACTER: CharacterSchema,
    EntityType.LOCATION: LocationSchema,
    EntityType.RESOURCE: ResourceSchema,
    EntityType.EVENT: EventSchema,
}

_missing_schemas = set(EntityType) - set(ENTITY_SCHEMAS)
if _missing_schemas:
    raise RuntimeError(f"No schema registered for entity types: {_missing_schemas}")

# Allowed (source types, target types) per canonical relationship type
RELATIONSHIP_ENDPOINTS: dict[
    RelationshipType, tuple[frozenset[EntityType], frozenset[EntityType]]
] = {
    RelationshipType.CONTROLS_RESOURCE: (
        frozenset({EntityType.FACTION}),
        frozenset({EntityType.RESOURCE}),
    ),
    RelationshipType.IS_ALLY_OF: (
        frozenset({EntityType.FACTION}),
        frozenset({EntityType.FACTION}),
    ),
    RelationshipType.PARTICIPATED_IN: (
        frozenset({EntityType.CHARACTER, EntityType.FACTION}),
        frozenset({EntityType.EVENT}),
    ),
    RelationshipType.LOCATED_IN: (
        frozenset({EntityType.RESOURCE, EntityType.FACTION, EntityType.CHARACTER}),
        frozenset({EntityType.LOCATION}),
    ),
    RelationshipType.COMMANDS: (
        frozenset({EntityType.CHARACTER}),
        frozenset({EntityType.FACTION}),
    ),
    RelationshipType.MEMBER_OF: (
        frozenset({EntityType.CHARACTER}),
        frozenset({EntityType.FACTION}),
    ),
}


def relationship_endpoints(
    relationship_type: str,
) -> tuple[frozenset[EntityType], frozenset[EntityType]] | None:
    """Allowed endpoint types for a canonical relationship type, if known."""
    try:
        return RELATIONSHIP_ENDPOINTS[RelationshipType(relationship_type)]
    except ValueError:
        return None


def resolve_entity_type(entity_type: str | EntityType) -> EntityType | None:
    """Map a raw type label onto the closed entity type set, or None."""
    if isinstance(entity_type, EntityType):
        return entity_type
    try:
        return EntityType(entity_type)
    except ValueError:
        return None


def schema_for(entity_type: str | EntityType) -> type[_LoreSchema] | None:
    resolved = resolve_entity_type(entity_type)
    return ENTITY_SCHEMAS[resolved] if resolved is not None else None


def required_fields(entity_type: str | EntityType) -> list[str]:
    """
    List the required property names for an entity type.

    Args:
        entity_type: Entity type label or enum member

    Returns:
        Required field names in declaration order (empty for unknown types)
    """
    schema = schema_for(entity_type)
    if schema is None:
        return []
    return [name for name, info in schema.model_fields.items() if info.is_required()]


def validate(
    entity_type: str | EntityType, properties: dict[str, Any]
) -> list[SchemaViolation]:
    """
    Validate entity properties against the schema for ``entity_type``.

    Args:
        entity_type: Entity type label or enum member
        properties: Property map, including ``name``

    Returns:
        One violation per failing field; empty when the properties are valid
    """
    resolved = resolve_entity_type(entity_type)
    if resolved is None:
        return [
            SchemaViolation(field="type", issue=f"Unknown entity type: {entity_type}")
        ]

    payload = {k: v for k, v in properties.items() if k not in BOOKKEEPING_FIELDS}
    try:
        ENTITY_SCHEMAS[resolved].model_validate(payload)
    except ValidationError as e:
        return [_to_violation(resolved, error) for error in e.errors()]
    return []


def _to_violation(entity_type: EntityType, error: dict[str, Any]) -> SchemaViolation:
    field = ".".join(str(part) for part in error["loc"]) or "properties"
    if error["type"] == "missing":
        issue = f"{entity_type.value} requires {field} attribute"
    else:
        issue = error["msg"]
    return SchemaViolation(field=field, issue=issue)
