"""LLM configuration and helpers for the extractor and narrator."""

from . import utils
from .config import LLMConfig
from .exceptions import (
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMValidationError,
)
from .factory import create_chat_model

__all__ = [
    "LLMConfig",
    "LLMError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMValidationError",
    "LLMResponseError",
    "utils",
    "create_chat_model",
]
