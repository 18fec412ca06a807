"""Retrieve -> Generate -> Validate workflow with bounded retries."""

from .controller import WorkflowController, decide
from .exceptions import GenerationError, RetrievalError, StageTimeoutError, WorkflowError
from .historian import HistorianRetriever, calculate_relevance, extract_keywords
from .interfaces import Generator, Retriever
from .narrator import NarratorGenerator, build_context_summary, parse_generated_lore

__all__ = [
    "GenerationError",
    "Generator",
    "HistorianRetriever",
    "NarratorGenerator",
    "RetrievalError",
    "Retriever",
    "StageTimeoutError",
    "WorkflowController",
    "WorkflowError",
    "build_context_summary",
    "calculate_relevance",
    "decide",
    "extract_keywords",
    "parse_generated_lore",
]
