"""LLM configuration management."""

import os
from dataclasses import dataclass, field
from typing import Any

from lore_graph.llm.exceptions import LLMValidationError

DEFAULT_MODEL_NAME = "gpt-4o-mini"

# Per-role sampling defaults: extraction wants determinism, narration some
# creative latitude.
ROLE_DEFAULTS: dict[str, dict[str, float]] = {
    "extraction": {"temperature": 0.3, "top_p": 1.0},
    "narration": {"temperature": 0.7, "top_p": 0.9},
}


@dataclass
class LLMConfig:
    """Configuration for one LLM collaborator (extractor or narrator)."""

    role: str = "narration"
    provider: str = "openai"  # openai, anthropic
    model_name: str = DEFAULT_MODEL_NAME
    api_key: str | None = None
    api_base: str | None = None

    temperature: float = 0.7
    top_p: float = 0.9
    max_tokens: int | None = 2000
    timeout: float | None = 60.0

    provider_kwargs: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_role(cls, role: str, **overrides: Any) -> "LLMConfig":
        """Build a config with the sampling defaults for ``role``."""
        if role not in ROLE_DEFAULTS:
            raise ValueError(f"Unknown LLM role: {role}")
        return cls(role=role, **{**ROLE_DEFAULTS[role], **overrides})

    @classmethod
    def from_environment(cls, role: str = "narration") -> "LLMConfig":
        """
        Create LLM configuration from environment variables.

        Role-specific variables (``LLM_EXTRACTION_TEMPERATURE``) take
        precedence over the shared ones (``LLM_TEMPERATURE``).

        Args:
            role: "extraction" or "narration"

        Returns:
            LLMConfig instance
        """
        config = cls.for_role(role)
        prefix = f"LLM_{role.upper()}_"

        def env(name: str) -> str | None:
            return os.getenv(prefix + name) or os.getenv("LLM_" + name)

        config.provider = env("PROVIDER") or "openai"
        config.model_name = env("MODEL_NAME") or DEFAULT_MODEL_NAME
        config.api_key = env("API_KEY") or os.getenv("OPENAI_API_KEY")
        config.api_base = env("API_BASE")

        if temp := env("TEMPERATURE"):
            config.temperature = float(temp)
        if top_p := env("TOP_P"):
            config.top_p = float(top_p)
        if max_tokens := env("MAX_TOKENS"):
            config.max_tokens = int(max_tokens)
        if timeout := env("TIMEOUT"):
            config.timeout = float(timeout)

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            LLMValidationError: If configuration is invalid (also a ValueError)
        """
        if not self.provider:
            raise LLMValidationError("provider", "Provider must be specified")

        if not self.model_name:
            raise LLMValidationError("model_name", "Model name must be specified")

        if self.provider == "openai" and not self.api_key:
            raise LLMValidationError(
                "api_key", "API key is required for OpenAI provider"
            )

        if not 0 <= self.temperature <= 2:
            raise LLMValidationError(
                "temperature", "Temperature must be between 0 and 2"
            )

        if not 0 <= self.top_p <= 1:
            raise LLMValidationError("top_p", "Top-p must be between 0 and 1")

        if self.max_tokens is not None and self.max_tokens <= 0:
            raise LLMValidationError("max_tokens", "Max tokens must be positive")

        if self.timeout is not None and self.timeout <= 0:
            raise LLMValidationError("timeout", "Timeout must be positive")
