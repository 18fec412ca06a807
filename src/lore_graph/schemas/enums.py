"""Closed vocabularies used by the lore knowledge graph."""

from enum import Enum


class LoreEnum(str, Enum):
    """String enum that accepts values case-insensitively.

    LLM output is inconsistent about casing ("ally", "Ally", "ALLY"), so
    lookups fall back to a case-insensitive match on value or member name.
    """

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().upper().replace(" ", "_")
            for member in cls:
                if member.value.upper() == wanted or member.name.upper() == wanted:
                    return member
        return None


class EntityType(LoreEnum):
    """Node labels of the knowledge graph."""

    FACTION = "Faction"
    CHARACTER = "Character"
    LOCATION = "Location"
    RESOURCE = "Resource"
    EVENT = "Event"


class Alignment(LoreEnum):
    ALLY = "ALLY"
    NEUTRAL = "NEUTRAL"
    RIVAL = "RIVAL"
    UNKNOWN = "UNKNOWN"


class ResourceType(LoreEnum):
    MILITARY = "MILITARY"
    ECONOMIC = "ECONOMIC"
    TECHNOLOGICAL = "TECHNOLOGICAL"
    CULTURAL = "CULTURAL"
    INTELLIGENCE = "INTELLIGENCE"


class LocationType(LoreEnum):
    CITY = "CITY"
    STRONGHOLD = "STRONGHOLD"
    OUTPOST = "OUTPOST"
    REGION = "REGION"
    CAPITAL = "CAPITAL"
    WILDERNESS = "WILDERNESS"


class EventType(LoreEnum):
    BATTLE = "BATTLE"
    TREATY = "TREATY"
    DISCOVERY = "DISCOVERY"
    UPRISING = "UPRISING"
    DIPLOMACY = "DIPLOMACY"
    CATASTROPHE = "CATASTROPHE"


class RelationshipType(LoreEnum):
    """Canonical relationship (edge) types."""

    CONTROLS_RESOURCE = "CONTROLS_RESOURCE"
    IS_ALLY_OF = "IS_ALLY_OF"
    PARTICIPATED_IN = "PARTICIPATED_IN"
    LOCATED_IN = "LOCATED_IN"
    COMMANDS = "COMMANDS"
    MEMBER_OF = "MEMBER_OF"
