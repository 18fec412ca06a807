"""
Tests for lore_graph.workflow.controller

Covers:
    - The retry decision and its iteration bound
    - Escalation to human review
    - Retrieval failures (no retry)
    - Generator failures and timeouts counting against the budget
    - The end-to-end Ruby Mines session
"""

import asyncio
import time

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.vectorstores import InMemoryVectorStore

from lore_graph.config.workflow_config import WorkflowConfig
from lore_graph.consistency.contradictions import ContradictionDetector
from lore_graph.consistency.validator import ConsistencyValidator
from lore_graph.data_models.lore import (
    GeneratedLore,
    GraphEntitySummary,
    LoreEntity,
    RetrievedContext,
)
from lore_graph.data_models.validation import ValidationResult
from lore_graph.data_models.workflow_state import WorkflowPhase
from lore_graph.graph.exceptions import GraphLookupError
from lore_graph.graph.interfaces import GraphLookup
from lore_graph.workflow.controller import WorkflowController, decide
from lore_graph.workflow.exceptions import GenerationError, RetrievalError
from lore_graph.workflow.interfaces import Generator, Retriever

QUERY = "Who controls the Ruby Mines?"


# ---------------------------------------------------------------------------
# Scripted collaborators
# ---------------------------------------------------------------------------


class ScriptedRetriever(Retriever):
    def __init__(self, context=None, error=None, delay=0.0):
        self.context = context
        self.error = error
        self.delay = delay
        self.calls = 0

    def retrieve(self, query):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.context


class ScriptedGenerator(Generator):
    """Replays a list of outcomes; exceptions are raised, lore is returned."""

    def __init__(self, *outcomes, delay_first=0.0):
        self.outcomes = list(outcomes)
        self.delay_first = delay_first
        self.feedback = []

    def generate(self, query, context, feedback=None):
        call = len(self.feedback)
        self.feedback.append(feedback)
        if call == 0 and self.delay_first:
            time.sleep(self.delay_first)
        outcome = self.outcomes[min(call, len(self.outcomes) - 1)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class HangingLookup(GraphLookup):
    """Graph lookup that stalls longer than any stage timeout used here."""

    def find_existing(self, entity_type, name):
        time.sleep(1.0)
        return None


class FailingValidator(ConsistencyValidator):
    def __init__(self):
        super().__init__(ContradictionDetector(HangingLookup()))

    def validate(self, candidates, context=None):
        raise GraphLookupError("store down")


def ruby_lore(controlling_faction):
    return GeneratedLore(
        text=f"The {controlling_faction} controls the Ruby Mines.",
        entities=[
            LoreEntity(
                type="Resource",
                name="Ruby Mines",
                properties={"type": "ECONOMIC", "controlling_faction": controlling_faction},
            )
        ],
    )


WRONG = ruby_lore("Silver Covenant")
RIGHT = ruby_lore("Crimson Empire")


@pytest.fixture
def context():
    return RetrievedContext(
        entities=[
            GraphEntitySummary(
                id="resource-ruby-mines", type="Resource", properties={"name": "Ruby Mines"}
            )
        ],
        relevance_score=0.03,
    )


@pytest.fixture
def build(ruby_store, context):
    """Return a factory wiring a controller around scripted collaborators."""

    def make(generator, retriever=None, **config):
        return WorkflowController(
            retriever=retriever or ScriptedRetriever(context),
            generator=generator,
            validator=ConsistencyValidator(ContradictionDetector(ruby_store)),
            config=WorkflowConfig(**config),
        )

    return make


# ---------------------------------------------------------------------------
# Retry decision
# ---------------------------------------------------------------------------


def state(iteration, valid, generation_failed=False):
    result = ValidationResult(
        is_valid=valid, schema_compliant=valid, consistency_score=1.0 if valid else 0.5
    )
    return {
        "iteration_count": iteration,
        "max_iterations": 3,
        "validation_result": result,
        "generation_failed": generation_failed,
    }


class TestDecide:
    def test_valid_completes(self):
        assert decide(state(1, True)) == "complete"

    def test_invalid_within_budget_retries(self):
        assert decide(state(1, False)) == "retry"
        assert decide(state(2, False)) == "retry"

    def test_invalid_at_budget_escalates(self):
        assert decide(state(3, False)) == "escalate"

    def test_failed_generation_never_completes(self):
        assert decide(state(3, True, generation_failed=True)) == "escalate"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestRunWorkflow:
    def test_valid_first_time(self, build):
        result = build(ScriptedGenerator(RIGHT)).run_workflow(QUERY, session_id="s-1")
        assert result.success
        assert result.session_id == "s-1"
        assert result.phase == WorkflowPhase.COMPLETE
        assert result.iterations == 1
        assert result.response == RIGHT.text
        assert result.errors == []

    def test_session_id_is_generated(self, build):
        result = build(ScriptedGenerator(RIGHT)).run_workflow(QUERY)
        assert result.session_id.startswith("session-")

    def test_retry_then_complete_passes_feedback(self, build):
        generator = ScriptedGenerator(WRONG, RIGHT)
        result = build(generator).run_workflow(QUERY)

        assert result.success
        assert result.iterations == 2
        assert generator.feedback[0] is None
        assert len(generator.feedback[1].contradictions) == 1

    def test_retry_bound_escalates_to_human_review(self, build):
        generator = ScriptedGenerator(WRONG)
        result = build(generator, max_iterations=3).run_workflow(QUERY)

        assert not result.success
        assert result.phase == WorkflowPhase.REQUIRE_HUMAN_REVIEW
        assert result.requires_human_review
        assert result.iterations == 3
        assert len(generator.feedback) == 3
        # Partial output is kept for the reviewer
        assert result.response == WRONG.text
        assert not result.validation_result.requires_revision

    def test_single_iteration_budget(self, build):
        result = build(ScriptedGenerator(WRONG), max_iterations=1).run_workflow(QUERY)
        assert result.iterations == 1
        assert result.requires_human_review

    def test_generation_error_counts_as_failed_iteration(self, build):
        generator = ScriptedGenerator(GenerationError("Narrator output parsing failed"), RIGHT)
        result = build(generator).run_workflow(QUERY)

        assert result.success
        assert result.iterations == 2
        assert len(result.errors) == 1
        assert "parsing failed" in result.errors[0]
        assert generator.feedback[1].schema_violations[0].field == "generation"

    def test_validation_error_counts_as_failed_iteration(self, context):
        controller = WorkflowController(
            retriever=ScriptedRetriever(context),
            generator=ScriptedGenerator(RIGHT),
            validator=FailingValidator(),
            config=WorkflowConfig(max_iterations=2),
        )
        result = controller.run_workflow(QUERY)

        assert result.phase == WorkflowPhase.REQUIRE_HUMAN_REVIEW
        assert result.requires_human_review
        assert result.iterations == 2
        assert result.errors == [
            "Iteration 1: validation failed: store down",
            "Iteration 2: validation failed: store down",
        ]
        assert result.validation_result.schema_violations[0].field == "validation"
        # Partial output survives the failed validation
        assert result.response == RIGHT.text

    def test_validation_timeout_on_hung_lookup(self, context):
        controller = WorkflowController(
            retriever=ScriptedRetriever(context),
            generator=ScriptedGenerator(RIGHT),
            validator=ConsistencyValidator(ContradictionDetector(HangingLookup())),
            config=WorkflowConfig(stage_timeout_seconds=0.1, max_iterations=1),
        )
        start = time.perf_counter()
        result = controller.run_workflow(QUERY)

        assert time.perf_counter() - start < 0.8
        assert result.phase == WorkflowPhase.REQUIRE_HUMAN_REVIEW
        assert result.iterations == 1
        assert result.errors == [
            "Iteration 1: validation failed: validation timed out after 0.1s"
        ]

    def test_generation_always_failing_escalates(self, build):
        generator = ScriptedGenerator(GenerationError("bad JSON"))
        result = build(generator).run_workflow(QUERY)

        assert not result.success
        assert result.requires_human_review
        assert result.iterations == 3
        assert len(result.errors) == 3
        assert result.response == ""

    def test_generation_timeout_counts_as_failed_iteration(self, build):
        generator = ScriptedGenerator(RIGHT, delay_first=0.5)
        result = build(generator, stage_timeout_seconds=0.05).run_workflow(QUERY)

        assert result.success
        assert result.iterations == 2
        assert "timed out" in result.errors[0]

    def test_async_variant(self, build):
        controller = build(ScriptedGenerator(WRONG, RIGHT))
        result = asyncio.run(controller.arun_workflow(QUERY))
        assert result.success
        assert result.iterations == 2


class TestRetrievalFailure:
    def test_retriever_error_fails_without_retry(self, build):
        generator = ScriptedGenerator(RIGHT)
        retriever = ScriptedRetriever(error=RetrievalError("graph offline"))
        result = build(generator, retriever=retriever).run_workflow(QUERY)

        assert not result.success
        assert result.phase == WorkflowPhase.FAILED
        assert result.requires_human_review
        assert result.iterations == 0
        assert generator.feedback == []
        assert "graph offline" in result.errors[0]

    def test_empty_context_fails(self, build):
        retriever = ScriptedRetriever(RetrievedContext())
        result = build(ScriptedGenerator(RIGHT), retriever=retriever).run_workflow(QUERY)
        assert result.phase == WorkflowPhase.FAILED
        assert result.errors == ["Retrieval returned no context"]

    def test_empty_context_allowed_when_not_required(self, build):
        retriever = ScriptedRetriever(RetrievedContext())
        result = build(
            ScriptedGenerator(RIGHT), retriever=retriever, require_context=False
        ).run_workflow(QUERY)
        assert result.success

    def test_retriever_timeout(self, build, context):
        retriever = ScriptedRetriever(context, delay=0.5)
        result = build(
            ScriptedGenerator(RIGHT), retriever=retriever, stage_timeout_seconds=0.05
        ).run_workflow(QUERY)
        assert result.phase == WorkflowPhase.FAILED
        assert "timed out" in result.errors[0]
        assert retriever.calls == 1


class TestRubyMinesSession:
    def test_contradiction_then_consistent_answer(self, ruby_store, fake_llm, ruby_answers):
        documents = InMemoryVectorStore(DeterministicFakeEmbedding(size=16))
        documents.add_documents(
            [Document(page_content=QUERY, id="chronicle-1")]
        )
        controller = WorkflowController.from_store(
            ruby_store,
            fake_llm(*ruby_answers),
            documents=documents,
            config=WorkflowConfig(document_score_threshold=None),
        )

        result = controller.run_workflow(QUERY)

        assert result.success
        assert result.iterations == 2
        assert result.phase == WorkflowPhase.COMPLETE
        assert result.response == "The Crimson Empire controls the Ruby Mines."
        assert len(result.retrieved_context.documents) == 1
        assert result.validation_result.is_valid
        assert result.validation_result.consistency_score == 1.0
