"""
Shared pytest fixtures for the lore graph test suite.

Provides:
    - store: an empty in-process graph store
    - ruby_store: a store holding the Crimson Empire / Ruby Mines facts
    - fake_llm: factory for scripted langchain fake chat models
    - lore_json: helper serializing generator output as the model would
"""

import json

import pytest
from langchain_core.language_models import FakeListChatModel

from lore_graph.data_models.entities import CanonicalEntity, CanonicalRelationship
from lore_graph.graph.memory_store import NetworkXGraphStore
from lore_graph.schemas.enums import EntityType


@pytest.fixture(autouse=True)
def no_tracing(monkeypatch):
    """Keep langsmith from exporting traces during tests."""
    monkeypatch.setenv("LANGSMITH_TRACING", "false")
    monkeypatch.setenv("LANGCHAIN_TRACING_V2", "false")


# ---------------------------------------------------------------------------
# Graph fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    return NetworkXGraphStore()


@pytest.fixture
def ruby_store(store):
    """Store with the Crimson Empire controlling the Ruby Mines."""
    store.upsert_entity(
        CanonicalEntity(
            id="faction-crimson-empire",
            type=EntityType.FACTION,
            properties={"name": "Crimson Empire", "alignment": "RIVAL"},
        )
    )
    store.upsert_entity(
        CanonicalEntity(
            id="resource-ruby-mines",
            type=EntityType.RESOURCE,
            properties={
                "name": "Ruby Mines",
                "type": "ECONOMIC",
                "controlling_faction": "Crimson Empire",
            },
        )
    )
    store.upsert_relationship(
        CanonicalRelationship(
            type="CONTROLS_RESOURCE",
            from_id="faction-crimson-empire",
            to_id="resource-ruby-mines",
        )
    )
    return store


# ---------------------------------------------------------------------------
# LLM fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_llm():
    """Return a factory building a fake chat model that replies in order."""

    def build(*responses: str) -> FakeListChatModel:
        return FakeListChatModel(responses=list(responses))

    return build


def _lore_json(text: str, entities: list[dict], confidence: float = 0.85) -> str:
    return json.dumps(
        {
            "text": text,
            "entities": entities,
            "relationships": [],
            "confidence": confidence,
            "reasoning": "Follows the stored record",
        }
    )


@pytest.fixture
def lore_json():
    """Return a helper serializing generator output as the model would."""
    return _lore_json


@pytest.fixture
def ruby_answers():
    """Generator replies: first contradicts the stored owner, then agrees."""
    wrong = _lore_json(
        "The Silver Covenant holds the Ruby Mines.",
        [
            {
                "type": "Resource",
                "name": "Ruby Mines",
                "properties": {
                    "type": "ECONOMIC",
                    "controlling_faction": "Silver Covenant",
                },
            }
        ],
    )
    right = _lore_json(
        "The Crimson Empire controls the Ruby Mines.",
        [
            {
                "type": "Resource",
                "name": "Ruby Mines",
                "properties": {
                    "type": "ECONOMIC",
                    "controlling_faction": "Crimson Empire",
                },
            }
        ],
    )
    return wrong, right
