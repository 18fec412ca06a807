"""LangGraph-based controller for the Retrieve -> Generate -> Validate loop."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Literal

from langchain_core.language_models import BaseChatModel
from langchain_core.vectorstores import VectorStore
from langgraph.graph import END, START, StateGraph
from langsmith import traceable

from lore_graph.config.workflow_config import WorkflowConfig
from lore_graph.consistency.contradictions import ContradictionDetector
from lore_graph.consistency.validator import ConsistencyValidator, IterationContext
from lore_graph.data_models.validation import ValidationResult
from lore_graph.data_models.workflow_state import (
    WorkflowPhase,
    WorkflowResult,
    WorkflowState,
)
from lore_graph.graph.interfaces import GraphStore
from lore_graph.prompts.metadata import PromptUsageLog
from lore_graph.workflow.exceptions import StageTimeoutError
from lore_graph.workflow.historian import HistorianRetriever
from lore_graph.workflow.interfaces import Generator, Retriever
from lore_graph.workflow.narrator import NarratorGenerator

logger = logging.getLogger(__name__)

Decision = Literal["complete", "retry", "escalate"]


def decide(state: WorkflowState) -> Decision:
    """
    Retry policy after a validation pass (or a failed generation).

    Valid output completes; otherwise regenerate while the iteration budget
    allows, and escalate to human review once it is spent.
    """
    validation = state.get("validation_result")
    if validation is not None and validation.is_valid and not state["generation_failed"]:
        return "complete"
    if state["iteration_count"] < state["max_iterations"]:
        return "retry"
    return "escalate"


class WorkflowController:
    """
    Orchestrate one lore query session as an explicit state machine.

    Graph structure:
    START → retrieve → [generate OR fail]
    generate → [validate OR retry OR escalate]
    validate → [complete OR retry OR escalate]
    retry → generate

    Collaborator failures never escape ``run_workflow``: a retrieval failure
    ends the session in ``FAILED``, and a generation or validation failure
    counts as a failed iteration against the retry budget.
    """

    def __init__(
        self,
        retriever: Retriever,
        generator: Generator,
        validator: ConsistencyValidator,
        config: WorkflowConfig | None = None,
    ):
        """
        Initialize the workflow controller.

        Args:
            retriever: Context retriever, called once per session
            generator: Lore generator, called once per iteration
            validator: Consistency validator for generated entities
            config: Optional WorkflowConfig. If not provided, will use
                environment-based config.
        """
        self.retriever = retriever
        self.generator = generator
        self.validator = validator
        self.config = config or WorkflowConfig()
        self.graph = self._create_graph()

    @classmethod
    def from_store(
        cls,
        store: GraphStore,
        llm: BaseChatModel,
        documents: VectorStore | None = None,
        config: WorkflowConfig | None = None,
        prompt_log: PromptUsageLog | None = None,
    ) -> "WorkflowController":
        """Wire the historian, narrator and validator around one graph store."""
        config = config or WorkflowConfig()
        return cls(
            retriever=HistorianRetriever(store, documents=documents, config=config),
            generator=NarratorGenerator(llm, prompt_log=prompt_log),
            validator=ConsistencyValidator(
                ContradictionDetector(store), threshold=config.consistency_threshold
            ),
            config=config,
        )

    def _create_graph(self):
        workflow = StateGraph(WorkflowState)

        workflow.add_node("retrieve", self._retrieve_node)
        workflow.add_node("generate", self._generate_node)
        workflow.add_node("validate", self._validate_node)
        workflow.add_node("retry", self._retry_node)
        workflow.add_node("complete", self._complete_node)
        workflow.add_node("escalate", self._escalate_node)
        workflow.add_node("fail", self._fail_node)

        workflow.add_edge(START, "retrieve")
        workflow.add_conditional_edges(
            "retrieve",
            self._route_after_retrieve,
            {"generate": "generate", "fail": "fail"},
        )
        workflow.add_conditional_edges(
            "generate",
            self._route_after_generate,
            {"validate": "validate", "retry": "retry", "escalate": "escalate"},
        )
        workflow.add_conditional_edges(
            "validate",
            decide,
            {"complete": "complete", "retry": "retry", "escalate": "escalate"},
        )
        workflow.add_edge("retry", "generate")
        workflow.add_edge("complete", END)
        workflow.add_edge("escalate", END)
        workflow.add_edge("fail", END)

        return workflow.compile()

    # Stage execution

    def _call_with_timeout(self, stage: str, fn: Callable[..., Any], *args) -> Any:
        timeout = self.config.stage_timeout_seconds
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"lore-{stage}")
        future = pool.submit(fn, *args)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            raise StageTimeoutError(stage, timeout) from e
        finally:
            # A timed out call keeps running in its thread; do not wait for it
            pool.shutdown(wait=False, cancel_futures=True)

    # Nodes

    def _retrieve_node(self, state: WorkflowState) -> dict:
        logger.info(f"[{state['session_id']}] Retrieving context for: {state['query']}")
        try:
            context = self._call_with_timeout(
                "retrieval", self.retriever.retrieve, state["query"]
            )
        except Exception as e:
            logger.error(f"[{state['session_id']}] Retrieval failed: {e}")
            return {"phase": WorkflowPhase.FAILED, "errors": [f"Retrieval failed: {e}"]}

        if context is None or (self.config.require_context and context.is_empty):
            logger.error(f"[{state['session_id']}] Retrieval returned no context")
            return {
                "phase": WorkflowPhase.FAILED,
                "retrieved_context": context,
                "errors": ["Retrieval returned no context"],
            }

        return {"phase": WorkflowPhase.GENERATING, "retrieved_context": context}

    def _generate_node(self, state: WorkflowState) -> dict:
        iteration = state["iteration_count"] + 1
        logger.info(
            f"[{state['session_id']}] Generating "
            f"(iteration {iteration}/{state['max_iterations']})"
        )
        try:
            lore = self._call_with_timeout(
                "generation",
                self.generator.generate,
                state["query"],
                state["retrieved_context"],
                state.get("validation_result"),
            )
        except Exception as e:
            logger.error(f"[{state['session_id']}] Generation failed: {e}")
            return {
                "phase": WorkflowPhase.VALIDATING,
                "iteration_count": iteration,
                "generation_failed": True,
                "validation_result": ValidationResult.failed(
                    str(e), requires_revision=iteration < state["max_iterations"]
                ),
                "errors": [f"Iteration {iteration}: generation failed: {e}"],
            }

        return {
            "phase": WorkflowPhase.VALIDATING,
            "iteration_count": iteration,
            "generation_failed": False,
            "generated_content": lore,
        }

    def _validate_node(self, state: WorkflowState) -> dict:
        iteration = state["iteration_count"]
        lore = state["generated_content"]
        try:
            result = self._call_with_timeout(
                "validation",
                self.validator.validate,
                lore.entities,
                IterationContext(
                    iteration_count=iteration,
                    max_iterations=state["max_iterations"],
                ),
            )
        except Exception as e:
            logger.error(f"[{state['session_id']}] Validation failed: {e}")
            return {
                "validation_result": ValidationResult.failed(
                    str(e),
                    field="validation",
                    requires_revision=iteration < state["max_iterations"],
                ),
                "errors": [f"Iteration {iteration}: validation failed: {e}"],
            }
        return {"validation_result": result}

    def _retry_node(self, state: WorkflowState) -> dict:
        logger.info(
            f"[{state['session_id']}] Validation failed "
            f"(iteration {state['iteration_count']}), retrying generation"
        )
        return {"phase": WorkflowPhase.RETRY}

    def _complete_node(self, state: WorkflowState) -> dict:
        logger.info(
            f"[{state['session_id']}] Completed after "
            f"{state['iteration_count']} iteration(s)"
        )
        return {"phase": WorkflowPhase.COMPLETE}

    def _escalate_node(self, state: WorkflowState) -> dict:
        logger.warning(
            f"[{state['session_id']}] Max iterations ({state['max_iterations']}) "
            "reached without valid output, requiring human review"
        )
        return {"phase": WorkflowPhase.REQUIRE_HUMAN_REVIEW, "requires_human_review": True}

    def _fail_node(self, state: WorkflowState) -> dict:
        return {"phase": WorkflowPhase.FAILED, "requires_human_review": True}

    # Routing

    def _route_after_retrieve(self, state: WorkflowState) -> str:
        return "fail" if state["phase"] == WorkflowPhase.FAILED else "generate"

    def _route_after_generate(self, state: WorkflowState) -> str:
        if state["generation_failed"]:
            return decide(state)
        return "validate"

    # Entry points

    def _initial_state(self, query: str, session_id: str | None) -> WorkflowState:
        return {
            "query": query,
            "session_id": session_id or f"session-{uuid.uuid4()}",
            "phase": WorkflowPhase.RETRIEVING,
            "retrieved_context": None,
            "generated_content": None,
            "validation_result": None,
            "iteration_count": 0,
            "max_iterations": self.config.max_iterations,
            "requires_human_review": False,
            "generation_failed": False,
            "errors": [],
        }

    def _run_config(self) -> dict:
        # retrieve + (generate, validate, retry) per iteration + terminal node
        return {"recursion_limit": 3 * self.config.max_iterations + 5}

    @traceable(name="Workflow Controller: Run Workflow")
    def run_workflow(self, query: str, session_id: str | None = None) -> WorkflowResult:
        """
        Run one query session to a terminal state.

        Args:
            query: User query
            session_id: Optional session identifier; generated if omitted

        Returns:
            WorkflowResult; ``success`` is True only when the session reached
            ``COMPLETE`` with a valid validation result
        """
        state = self._initial_state(query, session_id)
        try:
            final_state = self.graph.invoke(state, config=self._run_config())
        except Exception as e:
            logger.error(f"[{state['session_id']}] Workflow execution failed: {e}")
            return self._crashed(state, e)
        return WorkflowResult.from_state(final_state)

    async def arun_workflow(
        self, query: str, session_id: str | None = None
    ) -> WorkflowResult:
        """Async variant of ``run_workflow`` for use inside an event loop."""
        state = self._initial_state(query, session_id)
        try:
            final_state = await self.graph.ainvoke(state, config=self._run_config())
        except Exception as e:
            logger.error(f"[{state['session_id']}] Workflow execution failed: {e}")
            return self._crashed(state, e)
        return WorkflowResult.from_state(final_state)

    def _crashed(self, state: WorkflowState, error: Exception) -> WorkflowResult:
        return WorkflowResult.from_state(
            {
                **state,
                "phase": WorkflowPhase.FAILED,
                "requires_human_review": True,
                "errors": [*state["errors"], f"Workflow error: {error}"],
            }
        )
