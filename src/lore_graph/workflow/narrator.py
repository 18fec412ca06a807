"""Narrator generator: writes lore grounded in retrieved context."""

import logging
import time
import uuid

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langsmith import traceable
from pydantic import ValidationError

from lore_graph.data_models.lore import GeneratedLore, RetrievedContext
from lore_graph.data_models.validation import ValidationResult
from lore_graph.llm.exceptions import LLMError
from lore_graph.llm.utils import invoke_with_retry, parse_json_object
from lore_graph.prompts.metadata import PromptUsageLog, sha256_hex
from lore_graph.prompts.templates import NARRATOR_PROMPT
from lore_graph.workflow.exceptions import GenerationError
from lore_graph.workflow.interfaces import Generator

logger = logging.getLogger(__name__)

_HIDDEN_PROPERTIES = frozenset({"id", "type", "updated_at"})


def build_context_summary(context: RetrievedContext | None) -> str:
    """Render retrieved context as the bullet list shown to the model."""
    if context is None:
        return "No context available."

    parts: list[str] = []
    if context.entities:
        parts.append("**Existing Entities:**")
        for entity in context.entities[:10]:
            props = ", ".join(
                f"{k}: {v}"
                for k, v in entity.properties.items()
                if k not in _HIDDEN_PROPERTIES
            )
            parts.append(f"- {entity.type}: {entity.id} ({props})")

    if context.relationships:
        parts.append("\n**Existing Relationships:**")
        for rel in context.relationships[:10]:
            parts.append(f"- {rel.from_id} {rel.type} {rel.to_id}")

    if context.documents:
        parts.append("\n**Similar Lore:**")
        for doc in context.documents[:3]:
            parts.append(f"- (Score: {doc.score:.2f}) {doc.text[:200]}...")

    parts.append(f"\n**Relevance Score:** {context.relevance_score}")
    return "\n".join(parts)


def build_feedback(feedback: ValidationResult | None) -> str:
    """Describe the previous iteration's problems so the model can fix them."""
    if feedback is None or feedback.is_valid:
        return ""

    lines = ["\nYour previous answer was rejected by the consistency checker:"]
    for contradiction in feedback.contradictions:
        lines.append(
            f"- You claimed {contradiction.new_claim}, "
            f"but the record says {contradiction.existing_fact}"
        )
    for violation in feedback.schema_violations:
        lines.append(f"- {violation.field}: {violation.issue}")
    lines.extend(f"- {fix}" for fix in feedback.suggested_fixes)
    return "\n".join(lines) + "\n"


def parse_generated_lore(raw: str) -> GeneratedLore:
    """
    Parse raw model output into GeneratedLore.

    Raises:
        GenerationError: If the output is not a JSON object of the expected shape
    """
    try:
        payload = parse_json_object(raw)
        return GeneratedLore.model_validate(payload)
    except (LLMError, ValidationError) as e:
        raise GenerationError(f"Narrator output parsing failed: {e}", e) from e


class NarratorGenerator(Generator):
    """Generate lore with a chat model, one call per workflow iteration."""

    def __init__(self, llm: BaseChatModel, prompt_log: PromptUsageLog | None = None):
        """
        Args:
            llm: Chat model, normally created with the ``narration`` role config
            prompt_log: Optional usage log recording which prompt produced output
        """
        self.llm = llm
        self.prompt_log = prompt_log
        self.chain = NARRATOR_PROMPT.to_chat_prompt() | llm | StrOutputParser()

    @traceable(name="Narrator: Generate Lore")
    def generate(
        self,
        query: str,
        context: RetrievedContext,
        feedback: ValidationResult | None = None,
    ) -> GeneratedLore:
        start = time.perf_counter()
        inputs = {
            "query": query,
            "context": build_context_summary(context),
            "feedback": build_feedback(feedback),
        }

        try:
            raw = invoke_with_retry(self.chain, inputs)
        except Exception as e:
            raise GenerationError(f"Narrator call failed: {e}", e) from e

        lore = parse_generated_lore(raw)
        lore = lore.model_copy(
            update={"generation_time_ms": int((time.perf_counter() - start) * 1000)}
        )

        if self.prompt_log is not None:
            self.prompt_log.record_usage(
                NARRATOR_PROMPT.metadata(),
                output_id=str(uuid.uuid4()),
                input_hash=sha256_hex(query),
            )

        logger.info(
            f"Generated lore in {lore.generation_time_ms}ms: "
            f"{len(lore.entities)} entities, {len(lore.relationships)} relationships"
        )
        return lore
