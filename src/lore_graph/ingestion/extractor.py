"""LLM-backed entity and relationship extraction."""

import logging
import time
import uuid

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langsmith import traceable
from pydantic import ValidationError

from lore_graph.data_models.entities import (
    ExtractedEntity,
    ExtractionResult,
    RawRelationshipMention,
)
from lore_graph.llm.exceptions import LLMResponseError
from lore_graph.llm.utils import invoke_with_retry, parse_json_object
from lore_graph.prompts.metadata import PromptUsageLog, sha256_hex
from lore_graph.prompts.templates import EXTRACTION_PROMPT

logger = logging.getLogger(__name__)


class LoreExtractor:
    """
    Extract entity and relationship mentions from raw lore text.

    The model output is untrusted: each entity and relationship is validated
    on its own, and malformed items are skipped with a warning rather than
    failing the whole batch.
    """

    def __init__(self, llm: BaseChatModel, prompt_log: PromptUsageLog | None = None):
        """
        Args:
            llm: Chat model, normally created with the ``extraction`` role config
            prompt_log: Optional usage log recording which prompt produced output
        """
        self.llm = llm
        self.prompt_log = prompt_log
        self.chain = EXTRACTION_PROMPT.to_chat_prompt() | llm | StrOutputParser()

    @traceable(name="Extractor: Extract Mentions")
    def extract(self, text: str) -> ExtractionResult:
        """
        Extract mentions from ``text``.

        Raises:
            LLMResponseError: If the model output is not a JSON object
            LLMRateLimitError: If the provider keeps rate limiting
        """
        start = time.perf_counter()
        raw = invoke_with_retry(self.chain, {"text": text})
        try:
            payload = parse_json_object(raw)
        except LLMResponseError as e:
            logger.error(f"Unparseable extraction output: {e.raw_output!r}")
            raise

        warnings: list[str] = []
        entities = _validate_items(
            payload.get("entities", []), ExtractedEntity, "entity", warnings
        )
        relationships = _validate_items(
            payload.get("relationships", []),
            RawRelationshipMention,
            "relationship",
            warnings,
        )

        if self.prompt_log is not None:
            self.prompt_log.record_usage(
                EXTRACTION_PROMPT.metadata(),
                output_id=str(uuid.uuid4()),
                input_hash=sha256_hex(text),
            )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"Extracted {len(entities)} entities and {len(relationships)} "
            f"relationships in {elapsed_ms}ms"
        )
        return ExtractionResult(
            entities=entities,
            relationships=relationships,
            warnings=warnings,
            extraction_time_ms=elapsed_ms,
        )


def _validate_items(items, model, label: str, warnings: list[str]) -> list:
    if not isinstance(items, list):
        message = f"Expected a list of {label} items, got {type(items).__name__}"
        logger.warning(message)
        warnings.append(message)
        return []

    valid = []
    for index, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            message = f"Skipped malformed {label} #{index}: {e.error_count()} error(s)"
            logger.warning(f"{message}: {e}")
            warnings.append(message)
    return valid
