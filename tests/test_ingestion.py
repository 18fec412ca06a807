"""
Tests for lore_graph.ingestion.extractor and lore_graph.ingestion.service

Covers:
    - Per-item validation of extractor output
    - The full Extract -> Define -> Canonicalize -> Write job
    - Re-ingestion idempotence against the graph store
    - Job status on extractor and writer failures
"""

import json

import pytest

from lore_graph.config.workflow_config import IngestionConfig
from lore_graph.data_models.entities import IngestionStatus
from lore_graph.graph.exceptions import GraphWriteError
from lore_graph.graph.memory_store import NetworkXGraphStore
from lore_graph.ingestion.extractor import LoreExtractor
from lore_graph.ingestion.service import IngestionService
from lore_graph.llm.exceptions import LLMResponseError
from lore_graph.prompts.metadata import PromptUsageLog

CHRONICLE = (
    "The Crimson Empire, led by Empress Vey, seized the Ruby Mines. "
    "The Empire is allied with the Ash Legion."
)


def extraction_reply(**overrides):
    payload = {
        "entities": [
            {
                "type": "Faction",
                "name": "Crimson Empire",
                "mentions": ["the Empire"],
                "attributes": {"alignment": "RIVAL", "leader_name": "Empress Vey"},
                "confidence": 0.9,
            },
            {
                "type": "Resource",
                "name": "Ruby Mines",
                "attributes": {"type": "ECONOMIC", "controlling_faction": "Crimson Empire"},
                "confidence": 0.85,
            },
            {
                "type": "Faction",
                "name": "Ash Legion",
                "attributes": {"alignment": "RIVAL"},
                "confidence": 0.7,
            },
        ],
        "relationships": [
            {"from": "Crimson Empire", "to": "Ruby Mines", "type": "controls"},
            {"from": "the Empire", "to": "Ash Legion", "type": "allied with"},
        ],
    }
    payload.update(overrides)
    return json.dumps(payload)


class TestExtractor:
    def test_extract(self, fake_llm):
        log = PromptUsageLog()
        result = LoreExtractor(fake_llm(extraction_reply()), prompt_log=log).extract(
            CHRONICLE
        )
        assert [e.name for e in result.entities] == [
            "Crimson Empire",
            "Ruby Mines",
            "Ash Legion",
        ]
        assert result.relationships[1].from_name == "the Empire"
        assert result.warnings == []
        assert len(log.find_by_prompt_id("extractor")) == 1

    def test_malformed_items_are_skipped(self, fake_llm):
        reply = extraction_reply(
            entities=[
                {"type": "Faction", "name": "Crimson Empire", "confidence": 7},
                {"type": "Faction", "name": "Ash Legion"},
            ],
            relationships=[{"from": "Crimson Empire", "type": "controls"}],
        )
        result = LoreExtractor(fake_llm(reply)).extract(CHRONICLE)
        assert [e.name for e in result.entities] == ["Ash Legion"]
        assert result.relationships == []
        assert len(result.warnings) == 2

    def test_non_json_reply_raises(self, fake_llm):
        with pytest.raises(LLMResponseError):
            LoreExtractor(fake_llm("Sorry, no.")).extract(CHRONICLE)


class TestIngestionService:
    def test_ingest_writes_canonical_graph(self, fake_llm, store):
        service = IngestionService(LoreExtractor(fake_llm(extraction_reply())), store)

        result = service.ingest(CHRONICLE, source_id="chronicle")

        assert result.status == IngestionStatus.COMPLETED
        assert result.entities_created == 3
        assert result.relationships_created == 2
        assert store.find_existing("Faction", "Crimson Empire")["leader_name"] == "Empress Vey"
        keys = {r.key for r in result.relationships}
        assert keys == {
            ("faction-crimson-empire", "CONTROLS_RESOURCE", "resource-ruby-mines"),
            ("faction-crimson-empire", "IS_ALLY_OF", "faction-ash-legion"),
        }
        assert result.entities[0].merged_from == ["chronicle#0"]

    def test_reingestion_creates_nothing_new(self, fake_llm, store):
        service = IngestionService(
            LoreExtractor(fake_llm(extraction_reply(), extraction_reply())), store
        )
        service.ingest(CHRONICLE)
        second = service.ingest(CHRONICLE)

        assert second.status == IngestionStatus.COMPLETED
        assert second.entities_created == 0
        assert second.relationships_created == 0
        assert store.count() == {"entities": 3, "relationships": 2}

    def test_dangling_relationship_is_a_warning(self, fake_llm, store):
        reply = extraction_reply(
            relationships=[{"from": "Crimson Empire", "to": "Ghost Legion", "type": "allies"}]
        )
        result = IngestionService(LoreExtractor(fake_llm(reply)), store).ingest(CHRONICLE)

        assert result.status == IngestionStatus.COMPLETED
        assert result.relationships == []
        assert any("Ghost Legion" in w for w in result.warnings)

    def test_extractor_failure_fails_the_job(self, fake_llm, store):
        result = IngestionService(LoreExtractor(fake_llm("not json")), store).ingest(
            CHRONICLE
        )
        assert result.status == IngestionStatus.FAILED
        assert result.entities == []
        assert result.errors and result.errors[0].startswith("Extraction failed")

    def test_write_failure_is_partial(self, fake_llm):
        class FlakyStore(NetworkXGraphStore):
            def upsert_entity(self, entity):
                if entity.id == "faction-ash-legion":
                    raise GraphWriteError("disk full")
                return super().upsert_entity(entity)

        store = FlakyStore()
        result = IngestionService(
            LoreExtractor(fake_llm(extraction_reply())), store
        ).ingest(CHRONICLE)

        assert result.status == IngestionStatus.PARTIAL
        assert result.entities_created == 2
        assert result.relationships_created == 1
        assert len(result.errors) == 2

    def test_dry_run_does_not_write(self, fake_llm, store):
        service = IngestionService(
            LoreExtractor(fake_llm(extraction_reply())),
            store,
            IngestionConfig(write_to_graph=False),
        )
        result = service.ingest(CHRONICLE)
        assert result.status == IngestionStatus.COMPLETED
        assert len(result.entities) == 3
        assert len(store) == 0
