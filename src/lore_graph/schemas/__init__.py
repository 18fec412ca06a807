"""Entity type vocabulary and schema registry."""

from .enums import (
    Alignment,
    EntityType,
    EventType,
    LocationType,
    RelationshipType,
    ResourceType,
)
from .registry import (
    BOOKKEEPING_FIELDS,
    ENTITY_SCHEMAS,
    RELATIONSHIP_ENDPOINTS,
    relationship_endpoints,
    required_fields,
    resolve_entity_type,
    schema_for,
    validate,
)

__all__ = [
    "Alignment",
    "EntityType",
    "EventType",
    "LocationType",
    "RelationshipType",
    "ResourceType",
    "BOOKKEEPING_FIELDS",
    "ENTITY_SCHEMAS",
    "RELATIONSHIP_ENDPOINTS",
    "relationship_endpoints",
    "required_fields",
    "resolve_entity_type",
    "schema_for",
    "validate",
]
