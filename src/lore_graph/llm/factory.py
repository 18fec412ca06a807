"""Factory for LangChain chat models used by the extractor and the narrator."""

import logging

from langchain_core.language_models import BaseChatModel

from lore_graph.llm.config import LLMConfig
from lore_graph.llm.exceptions import LLMConnectionError, LLMValidationError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic")


def create_chat_model(config: LLMConfig | None = None) -> BaseChatModel:
    """
    Create a LangChain chat model from configuration.

    Args:
        config: LLM configuration. If None, loads the narration role from
            the environment.

    Returns:
        ChatOpenAI or ChatAnthropic instance

    Raises:
        LLMValidationError: If the provider is not supported
        LLMConnectionError: If the provider package is missing or the model
            cannot be constructed

    Example:
        >>> extractor_llm = create_chat_model(LLMConfig.from_environment("extraction"))
    """
    if config is None:
        config = LLMConfig.from_environment()

    if config.provider not in SUPPORTED_PROVIDERS:
        raise LLMValidationError(
            "provider", f"Unsupported provider: {config.provider}"
        )

    logger.info(
        f"Creating {config.role} chat model {config.provider}/{config.model_name} "
        f"(temperature={config.temperature})"
    )

    try:
        if config.provider == "openai":
            from langchain_openai import ChatOpenAI  # noqa: PLC0415

            return ChatOpenAI(
                model=config.model_name,
                api_key=config.api_key,
                base_url=config.api_base,
                temperature=config.temperature,
                top_p=config.top_p,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
                **config.provider_kwargs,
            )

        from langchain_anthropic import ChatAnthropic  # noqa: PLC0415

        return ChatAnthropic(
            model=config.model_name,
            api_key=config.api_key,
            temperature=config.temperature,
            top_p=config.top_p,
            max_tokens=config.max_tokens or 2000,
            timeout=config.timeout,
            **config.provider_kwargs,
        )

    except ImportError as e:
        raise LLMConnectionError(
            config.provider, f"Missing dependency: {e}", e
        ) from e
    except Exception as e:
        raise LLMConnectionError(
            config.provider, f"Failed to create chat model: {e}", e
        ) from e
