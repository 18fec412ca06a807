"""Tests for lore_graph.ingestion.define"""

import pytest

from lore_graph.data_models.entities import ExtractedEntity
from lore_graph.ingestion.define import classify_entities, normalize_relationship_type
from lore_graph.schemas.enums import EntityType


class TestClassifyEntities:
    def test_types_map_case_insensitively(self):
        extracted = [
            ExtractedEntity(type="faction", name="Iron Covenant"),
            ExtractedEntity(type="CHARACTER", name="Aria"),
        ]
        classified, warnings = classify_entities(extracted, "chronicle")
        assert [c.type for c in classified] == [EntityType.FACTION, EntityType.CHARACTER]
        assert warnings == []

    def test_source_ids_are_positional(self):
        extracted = [
            ExtractedEntity(type="Faction", name="Iron Covenant"),
            ExtractedEntity(type="Dragon", name="Smaug"),
            ExtractedEntity(type="Location", name="Vael"),
        ]
        classified, _ = classify_entities(extracted, "chronicle")
        assert [c.source_id for c in classified] == ["chronicle#0", "chronicle#2"]

    def test_unmapped_type_is_dropped_with_warning(self):
        classified, warnings = classify_entities(
            [ExtractedEntity(type="Dragon", name="Smaug")]
        )
        assert classified == []
        assert len(warnings) == 1
        assert "Dragon" in warnings[0]
        assert "Smaug" in warnings[0]

    def test_extractor_field_aliases(self):
        entity = ExtractedEntity.model_validate(
            {
                "type": "Faction",
                "mentions": ["The Covenant", "Iron Covenant"],
                "attributes": {"alignment": "ALLY"},
                "confidence": 0.8,
            }
        )
        assert entity.name == "The Covenant"
        assert entity.properties == {"alignment": "ALLY"}

        classified, _ = classify_entities([entity])
        assert classified[0].aliases == ["The Covenant", "Iron Covenant"]
        assert classified[0].confidence == 0.8


class TestNormalizeRelationshipType:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("controls", "CONTROLS_RESOURCE"),
            ("Allied With", "IS_ALLY_OF"),
            ("member_of", "MEMBER_OF"),
            ("leads", "COMMANDS"),
            ("fought in", "PARTICIPATED_IN"),
            ("is located in", "LOCATED_IN"),
        ],
    )
    def test_known_descriptions(self, raw, expected):
        assert normalize_relationship_type(raw) == expected

    def test_unknown_description_becomes_upper_snake_case(self):
        assert normalize_relationship_type("rivals of") == "RIVALS_OF"

    def test_canonical_type_is_stable(self):
        assert normalize_relationship_type("CONTROLS_RESOURCE") == "CONTROLS_RESOURCE"
