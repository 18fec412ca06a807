"""Utility functions for LLM calls."""

import json
import logging
from typing import Any

from langchain_core.runnables import Runnable
from langchain_core.utils.json import parse_json_markdown
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lore_graph.llm.exceptions import LLMRateLimitError, LLMResponseError

logger = logging.getLogger(__name__)


def _is_rate_limited(error: Exception) -> bool:
    # openai and anthropic both expose the HTTP status on their error types
    return getattr(error, "status_code", None) == 429


@retry(
    retry=retry_if_exception_type(LLMRateLimitError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
def invoke_with_retry(chain: Runnable, inputs: dict[str, Any]) -> Any:
    """
    Invoke a chain, retrying with exponential backoff on rate limits.

    Args:
        chain: Runnable to invoke
        inputs: Chain inputs

    Returns:
        Chain output

    Raises:
        LLMRateLimitError: If the provider is still rate limiting after 3 attempts
    """
    try:
        return chain.invoke(inputs)
    except Exception as e:
        if _is_rate_limited(e):
            raise LLMRateLimitError(str(e), e) from e
        raise


def parse_json_object(raw: str) -> dict[str, Any]:
    """
    Parse model output into a JSON object.

    Markdown code fences around the JSON are tolerated.

    Raises:
        LLMResponseError: If the output is not a JSON object
    """
    if not raw or not raw.strip():
        raise LLMResponseError("Empty model output", raw)
    try:
        # Strict parser: truncated output must fail rather than be completed
        parsed = parse_json_markdown(raw, parser=json.loads)
    except (json.JSONDecodeError, ValueError) as e:
        raise LLMResponseError(f"Invalid JSON in model output: {e}", raw, e) from e
    if not isinstance(parsed, dict):
        raise LLMResponseError(
            f"Expected a JSON object, got {type(parsed).__name__}", raw
        )
    return parsed
