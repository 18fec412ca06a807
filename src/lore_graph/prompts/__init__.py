"""Prompt templates and prompt provenance tracking."""

from .metadata import PromptMetadata, PromptUsageLog, PromptUsageRecord, sha256_hex
from .templates import EXTRACTION_PROMPT, NARRATOR_PROMPT, PromptSpec

__all__ = [
    "EXTRACTION_PROMPT",
    "NARRATOR_PROMPT",
    "PromptMetadata",
    "PromptSpec",
    "PromptUsageLog",
    "PromptUsageRecord",
    "sha256_hex",
]
