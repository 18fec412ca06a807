"""Exceptions raised by the extractor and narrator LLM collaborators."""


class LLMError(Exception):
    """Base exception for LLM collaborator failures."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class LLMConnectionError(LLMError):
    """Raised when a provider's chat model cannot be built or reached."""

    def __init__(
        self, provider: str, message: str, original_error: Exception | None = None
    ):
        self.provider = provider
        super().__init__(f"[{provider}] {message}", original_error)


class LLMRateLimitError(LLMError):
    """Raised when the provider rejects a call with HTTP 429."""

    pass


class LLMValidationError(LLMError, ValueError):
    """Raised when an LLMConfig field holds an unusable value."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class LLMResponseError(LLMError):
    """
    Raised when model output cannot be parsed into the expected shape.

    ``raw_output`` keeps the start of the offending text so a rejected
    extraction or narration can be inspected from the logs.
    """

    RAW_OUTPUT_LIMIT = 500

    def __init__(
        self,
        message: str,
        raw_output: str | None = None,
        original_error: Exception | None = None,
    ):
        self.raw_output = raw_output[: self.RAW_OUTPUT_LIMIT] if raw_output else None
        super().__init__(message, original_error)
