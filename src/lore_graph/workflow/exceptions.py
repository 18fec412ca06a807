"""Exceptions raised inside the lore workflow."""


class WorkflowError(Exception):
    """Base exception for workflow stage failures."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class RetrievalError(WorkflowError):
    """Raised when context retrieval fails or returns nothing usable."""

    pass


class GenerationError(WorkflowError):
    """Raised when the generator fails or its output cannot be parsed."""

    pass


class StageTimeoutError(WorkflowError):
    """Raised when a collaborator call exceeds the per-stage timeout."""

    def __init__(self, stage: str, timeout_seconds: float):
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{stage} timed out after {timeout_seconds}s")
