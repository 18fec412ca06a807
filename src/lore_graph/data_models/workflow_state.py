"""State schema for the LangGraph consistency workflow."""

import operator
from enum import Enum
from typing import Annotated, Any, TypedDict

from pydantic import BaseModel, Field

from lore_graph.data_models.lore import (
    GeneratedLore,
    LoreEntity,
    LoreRelationship,
    RetrievedContext,
)
from lore_graph.data_models.validation import ValidationResult


class WorkflowPhase(str, Enum):
    """
    States of the Retrieve -> Generate -> Validate machine.

    A phase names the stage the session is entering, so a new session starts
    in RETRIEVING.
    """

    RETRIEVING = "retrieving"
    GENERATING = "generating"
    VALIDATING = "validating"
    RETRY = "retry"
    COMPLETE = "complete"
    REQUIRE_HUMAN_REVIEW = "require_human_review"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            WorkflowPhase.COMPLETE,
            WorkflowPhase.REQUIRE_HUMAN_REVIEW,
            WorkflowPhase.FAILED,
        )


class WorkflowState(TypedDict):
    """
    State for one workflow session.

    Owned by the workflow controller for the lifetime of a single query
    session. Nodes return partial updates; ``errors`` uses an additive
    reducer so every node can append without reading the list back.

    Attributes:
        query: User query being answered.
        session_id: Session identifier.
        phase: Current state machine phase.
        retrieved_context: Context from the retriever (None until retrieved).
        generated_content: Latest parsed generator output (kept across
            failed iterations so partial results survive).
        validation_result: Latest validation verdict.
        iteration_count: Number of Generating entries so far.
        max_iterations: Retry budget.
        requires_human_review: Set on escalation.
        generation_failed: The latest Generating entry raised or timed out.
        errors: Accumulated session-level error strings.
    """

    query: str
    session_id: str
    phase: WorkflowPhase
    retrieved_context: RetrievedContext | None
    generated_content: GeneratedLore | None
    validation_result: ValidationResult | None
    iteration_count: int
    max_iterations: int
    requires_human_review: bool
    generation_failed: bool
    errors: Annotated[list[str], operator.add]


class WorkflowResult(BaseModel):
    """Caller-facing outcome of ``run_workflow``; always fully populated."""

    success: bool
    session_id: str
    phase: WorkflowPhase
    response: str = ""
    entities: list[LoreEntity] = Field(default_factory=list)
    relationships: list[LoreRelationship] = Field(default_factory=list)
    validation_result: ValidationResult | None = None
    retrieved_context: RetrievedContext | None = None
    iterations: int = 0
    requires_human_review: bool = False
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "WorkflowResult":
        lore = state.get("generated_content")
        validation = state.get("validation_result")
        phase = state.get("phase", WorkflowPhase.FAILED)
        return cls(
            success=phase == WorkflowPhase.COMPLETE
            and validation is not None
            and validation.is_valid,
            session_id=state["session_id"],
            phase=phase,
            response=lore.text if lore else "",
            entities=list(lore.entities) if lore else [],
            relationships=list(lore.relationships) if lore else [],
            validation_result=validation,
            retrieved_context=state.get("retrieved_context"),
            iterations=state.get("iteration_count", 0),
            requires_human_review=state.get("requires_human_review", False),
            errors=list(state.get("errors", [])),
        )
