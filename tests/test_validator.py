"""
Tests for lore_graph.consistency.validator

Covers:
    - Consistency score arithmetic and rounding
    - The AND-gated validity verdict
    - requires_revision against the iteration budget
    - Unverifiable lookups
"""

import pytest

from lore_graph.consistency.contradictions import ContradictionDetector
from lore_graph.consistency.validator import ConsistencyValidator, IterationContext
from lore_graph.data_models.lore import LoreEntity
from lore_graph.graph.exceptions import GraphLookupError
from lore_graph.graph.interfaces import GraphLookup


class UnavailableLookup(GraphLookup):
    def find_existing(self, entity_type, name):
        raise GraphLookupError("graph store unavailable")


def new_faction(index):
    return LoreEntity(
        type="Faction", name=f"Free Company {index}", properties={"alignment": "NEUTRAL"}
    )


@pytest.fixture
def validator(ruby_store):
    return ConsistencyValidator(ContradictionDetector(ruby_store))


class TestScore:
    def test_no_entities_is_valid(self, validator):
        result = validator.validate([])
        assert result.consistency_score == 1.0
        assert result.is_valid
        assert result.suggested_fixes == ["No issues found - lore is consistent"]

    def test_clean_entities(self, validator):
        result = validator.validate([new_faction(i) for i in range(3)])
        assert result.is_valid
        assert result.schema_compliant
        assert result.consistency_score == 1.0

    def test_contradiction_fails_despite_high_score(self, validator):
        candidates = [new_faction(i) for i in range(8)]
        candidates.append(LoreEntity(type="Character", name="Aria"))  # missing role
        candidates.append(
            LoreEntity(
                type="Resource",
                name="Ruby Mines",
                properties={"type": "ECONOMIC", "controlling_faction": "Silver Covenant"},
            )
        )

        result = validator.validate(candidates)

        assert len(result.schema_violations) == 1
        assert len(result.contradictions) == 1
        assert result.consistency_score == 0.90
        assert not result.schema_compliant
        assert not result.is_valid
        assert result.suggested_fixes == [
            "Fix 1 schema violations by adding required fields",
            "Resolve 1 contradictions by aligning with existing knowledge",
        ]

    def test_score_is_rounded_to_two_decimals(self, validator):
        candidates = [new_faction(1), new_faction(2), LoreEntity(type="Character", name="Aria")]
        result = validator.validate(candidates)
        # (6 - 1) / 6
        assert result.consistency_score == 0.83

    def test_schema_violation_alone_invalidates(self, validator):
        result = validator.validate([LoreEntity(type="Dragon", name="Smaug")])
        assert not result.is_valid
        assert result.schema_violations[0].issue == "Unknown entity type: Dragon"

    def test_custom_threshold(self, ruby_store):
        strict = ConsistencyValidator(ContradictionDetector(ruby_store), threshold=1.0)
        assert strict.validate([new_faction(1)]).is_valid


class TestRequiresRevision:
    def test_revision_requested_within_budget(self, validator):
        result = validator.validate(
            [LoreEntity(type="Character", name="Aria")],
            IterationContext(iteration_count=1, max_iterations=3),
        )
        assert result.requires_revision

    def test_no_revision_when_budget_spent(self, validator):
        result = validator.validate(
            [LoreEntity(type="Character", name="Aria")],
            IterationContext(iteration_count=3, max_iterations=3),
        )
        assert not result.requires_revision

    def test_valid_result_never_requires_revision(self, validator):
        result = validator.validate([new_faction(1)], IterationContext(1, 3))
        assert not result.requires_revision


class TestUnverifiable:
    def test_lookup_failure_is_never_valid(self):
        validator = ConsistencyValidator(ContradictionDetector(UnavailableLookup()))
        result = validator.validate([new_faction(1), new_faction(2)])

        assert result.unverifiable == ["Faction:Free Company 1", "Faction:Free Company 2"]
        assert result.contradictions == []
        assert result.consistency_score == 1.0
        assert not result.is_valid
        assert any("could not be verified" in fix for fix in result.suggested_fixes)

    def test_unverifiable_checks_are_excluded_from_total(self):
        validator = ConsistencyValidator(ContradictionDetector(UnavailableLookup()))
        result = validator.validate([LoreEntity(type="Character", name="Aria")])
        # one schema check, failed; the contradiction check is not counted
        assert result.consistency_score == 0.0
