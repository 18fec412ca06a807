"""Canonicalization engine.

Turns classified entity mentions into deduplicated canonical entities with
deterministic IDs, and resolves name-based relationship mentions onto those
IDs. Everything here is pure: same input, same output, no I/O.
"""

import logging
import re

from lore_graph.data_models.entities import (
    CanonicalEntity,
    CanonicalizationResult,
    CanonicalRelationship,
    ClassifiedEntity,
    RawRelationshipMention,
)
from lore_graph.ingestion.define import normalize_relationship_type
from lore_graph.schemas.enums import EntityType
from lore_graph.schemas.registry import relationship_endpoints, validate

logger = logging.getLogger(__name__)

_STRIP_PATTERN = re.compile(r"[^\w\s]|_")


def normalize_name(name: str) -> str:
    """Lowercase, drop non-alphanumerics and collapse whitespace runs to '-'."""
    stripped = _STRIP_PATTERN.sub("", name.lower())
    return "-".join(stripped.split())


def canonical_id(entity_type: str | EntityType, name: str) -> str:
    """
    Deterministic identifier for an entity.

    Args:
        entity_type: Entity type label or enum member
        name: Display name or any surface form of the entity

    Returns:
        ``<type>-<normalized-name>``, e.g. ``faction-iron-covenant``

    Raises:
        ValueError: If the name normalizes to an empty string
    """
    type_label = (
        entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)
    )
    normalized = normalize_name(name or "")
    if not normalized:
        raise ValueError(f"Name {name!r} has no alphanumeric characters")
    return f"{type_label.strip().lower()}-{normalized}"


def canonicalize(
    entities: list[ClassifiedEntity],
    relationships: list[RawRelationshipMention] | None = None,
    reject_schema_violations: bool = False,
) -> CanonicalizationResult:
    """
    Merge entity mentions and resolve relationship mentions.

    Entities sharing a canonical ID are merged: each property comes from the
    highest-confidence mention that carries it (earlier mentions win ties),
    and the display name from the highest-confidence mention overall.
    Relationship endpoints are resolved by normalized name or alias; a
    relationship whose endpoint does not resolve is dropped with a warning.

    Args:
        entities: Classified entities in extraction order
        relationships: Relationship mentions in extraction order
        reject_schema_violations: Drop entities failing schema validation
            instead of only warning

    Returns:
        CanonicalizationResult with entities, relationships and warnings
    """
    warnings: list[str] = []
    groups: dict[str, list[ClassifiedEntity]] = {}

    for entity in entities:
        try:
            entity_id = canonical_id(entity.type, entity.name or "")
        except ValueError:
            _warn(warnings, f"Rejected {entity.source_id}: entity has no usable name")
            continue

        violations = validate(entity.type, {**entity.properties, "name": entity.name})
        if violations:
            issues = "; ".join(f"{v.field}: {v.issue}" for v in violations)
            if reject_schema_violations:
                _warn(warnings, f"Rejected {entity.source_id} ({entity_id}): {issues}")
                continue
            _warn(warnings, f"Schema issues for {entity_id}: {issues}")

        groups.setdefault(entity_id, []).append(entity)

    canonical = [_merge_group(entity_id, members) for entity_id, members in groups.items()]
    resolved = _resolve_relationships(canonical, relationships or [], warnings)

    logger.info(
        f"Canonicalized {len(entities)} mentions into {len(canonical)} entities "
        f"and {len(resolved)} relationships ({len(warnings)} warnings)"
    )
    return CanonicalizationResult(
        entities=canonical, relationships=resolved, warnings=warnings
    )


def as_classified(entities: list[CanonicalEntity]) -> list[ClassifiedEntity]:
    """Feed canonical entities back in as classified mentions."""
    return [
        ClassifiedEntity(
            source_id=entity.id,
            type=entity.type,
            name=entity.name,
            aliases=list(entity.aliases),
            properties={k: v for k, v in entity.properties.items() if k != "name"},
            confidence=entity.confidence,
        )
        for entity in entities
    ]


def _merge_group(entity_id: str, members: list[ClassifiedEntity]) -> CanonicalEntity:
    # sorted() is stable, so equal confidences keep extraction order
    ranked = sorted(members, key=lambda m: m.confidence, reverse=True)
    display_name = ranked[0].name.strip()

    properties: dict = {}
    for key in _ordered_keys(members):
        if key == "name":
            continue
        for member in ranked:
            if member.properties.get(key) is not None:
                properties[key] = member.properties[key]
                break
    properties["name"] = display_name

    aliases: list[str] = []
    for member in members:
        for surface in (member.name, *member.aliases):
            surface = (surface or "").strip()
            if surface and surface != display_name and surface not in aliases:
                aliases.append(surface)

    return CanonicalEntity(
        id=entity_id,
        type=ranked[0].type,
        properties=properties,
        merged_from=[m.source_id for m in members],
        aliases=aliases,
        confidence=ranked[0].confidence,
    )


def _ordered_keys(members: list[ClassifiedEntity]) -> list[str]:
    keys: dict[str, None] = {}
    for member in members:
        keys.update(dict.fromkeys(member.properties))
    return list(keys)


def _build_name_table(entities: list[CanonicalEntity]) -> dict[str, list[str]]:
    """Normalized surface form -> canonical IDs that carry it."""
    table: dict[str, list[str]] = {}
    for entity in entities:
        for surface in (entity.name, *entity.aliases):
            key = normalize_name(surface)
            if key and entity.id not in table.setdefault(key, []):
                table[key].append(entity.id)
    return table


def _resolve_relationships(
    entities: list[CanonicalEntity],
    mentions: list[RawRelationshipMention],
    warnings: list[str],
) -> list[CanonicalRelationship]:
    table = _build_name_table(entities)
    types = {entity.id: entity.type for entity in entities}

    for key, ids in table.items():
        if len(ids) > 1:
            _warn(warnings, f"Name '{key}' is shared by {', '.join(ids)}")

    resolved: dict[tuple[str, str, str], CanonicalRelationship] = {}
    for mention in mentions:
        rel_type = normalize_relationship_type(mention.type)
        endpoints = relationship_endpoints(rel_type)
        from_types, to_types = endpoints if endpoints else (None, None)

        from_id = _resolve_endpoint(mention.from_name, from_types, table, types)
        to_id = _resolve_endpoint(mention.to_name, to_types, table, types)
        if from_id is None or to_id is None:
            missing = mention.from_name if from_id is None else mention.to_name
            _warn(
                warnings,
                f"Dropped relationship '{mention.from_name}' -[{rel_type}]-> "
                f"'{mention.to_name}': cannot resolve '{missing}'",
            )
            continue

        properties: dict = {"confidence": mention.confidence}
        if mention.evidence:
            properties["evidence"] = mention.evidence

        relationship = CanonicalRelationship(
            type=rel_type, from_id=from_id, to_id=to_id, properties=properties
        )
        existing = resolved.get(relationship.key)
        if existing is None or mention.confidence > existing.properties["confidence"]:
            resolved[relationship.key] = relationship

    return list(resolved.values())


def _resolve_endpoint(
    surface: str,
    allowed_types: frozenset[EntityType] | None,
    table: dict[str, list[str]],
    types: dict[str, EntityType],
) -> str | None:
    candidates = table.get(normalize_name(surface or ""), [])
    if len(candidates) > 1 and allowed_types:
        candidates = [c for c in candidates if types[c] in allowed_types]
    return candidates[0] if len(candidates) == 1 else None


def _warn(warnings: list[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)
