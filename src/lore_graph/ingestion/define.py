"""Define step: classify extracted entities against the graph ontology."""

import logging
import re

from lore_graph.data_models.entities import ClassifiedEntity, ExtractedEntity
from lore_graph.schemas.registry import resolve_entity_type

logger = logging.getLogger(__name__)

# Free-text relationship descriptions -> canonical edge types
RELATIONSHIP_MAPPING: dict[str, str] = {
    # Faction relationships
    "controls": "CONTROLS_RESOURCE",
    "owns": "CONTROLS_RESOURCE",
    "possesses": "CONTROLS_RESOURCE",
    "allied with": "IS_ALLY_OF",
    "allies": "IS_ALLY_OF",
    "partner of": "IS_ALLY_OF",
    # Character relationships
    "member of": "MEMBER_OF",
    "belongs to": "MEMBER_OF",
    "serves": "MEMBER_OF",
    "leads": "COMMANDS",
    "commands": "COMMANDS",
    "heads": "COMMANDS",
    "participated in": "PARTICIPATED_IN",
    "fought in": "PARTICIPATED_IN",
    "attended": "PARTICIPATED_IN",
    # Location relationships
    "located in": "LOCATED_IN",
    "situated in": "LOCATED_IN",
    "found in": "LOCATED_IN",
}


def normalize_relationship_type(raw_type: str) -> str:
    """
    Map a free-text relationship description to a canonical edge type.

    Exact matches win, then the first mapping key contained in the text;
    anything else becomes UPPER_SNAKE_CASE.

    Args:
        raw_type: Relationship type as described in the text

    Returns:
        Canonical relationship type
    """
    normalized = " ".join(raw_type.lower().replace("_", " ").split())

    if normalized in RELATIONSHIP_MAPPING:
        return RELATIONSHIP_MAPPING[normalized]

    for key, value in RELATIONSHIP_MAPPING.items():
        if key in normalized:
            return value

    return re.sub(r"[^A-Z0-9_]", "", normalized.upper().replace(" ", "_"))


def classify_entities(
    extracted: list[ExtractedEntity], source_id: str = "extract"
) -> tuple[list[ClassifiedEntity], list[str]]:
    """
    Classify extracted entities onto the closed entity type set.

    Entities with an unmapped type are dropped with a warning. Temporary IDs
    are ``<source_id>#<index>`` so reprocessing the same batch is stable.

    Args:
        extracted: Entities in extraction order
        source_id: Identifier of the source document

    Returns:
        Tuple of (classified entities, warnings)
    """
    classified: list[ClassifiedEntity] = []
    warnings: list[str] = []

    for index, entity in enumerate(extracted):
        temp_id = f"{source_id}#{index}"
        entity_type = resolve_entity_type(entity.type)
        if entity_type is None:
            message = (
                f"Dropped {temp_id} ({entity.name or 'unnamed'}): "
                f"unmapped entity type '{entity.type}'"
            )
            logger.warning(message)
            warnings.append(message)
            continue

        classified.append(
            ClassifiedEntity(
                source_id=temp_id,
                type=entity_type,
                name=entity.name,
                aliases=list(entity.aliases),
                properties=dict(entity.properties),
                confidence=entity.confidence,
            )
        )

    logger.info(
        f"Classified {len(classified)}/{len(extracted)} entities from {source_id}"
    )
    return classified, warnings
