"""Prompt provenance: metadata records and the append-only usage log."""

import hashlib
import threading
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class PromptMetadata(BaseModel):
    """Identity of the exact prompt text used to produce an output."""

    model_config = ConfigDict(frozen=True)

    prompt_id: str = Field(min_length=1)
    version: str = Field(pattern=r"^\d+\.\d+\.\d+$")
    agent_role: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    hash: str = Field(
        min_length=64,
        max_length=64,
        description="SHA-256 of the prompt template text",
    )


class PromptUsageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: PromptMetadata
    output_id: str
    input_hash: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class PromptUsageLog:
    """
    Append-only log of which prompt version produced which output.

    Injected into the collaborators that call an LLM.
    """

    def __init__(self):
        self._records: list[PromptUsageRecord] = []
        self._lock = threading.Lock()

    def record_usage(
        self, metadata: PromptMetadata, output_id: str, input_hash: str | None = None
    ) -> PromptUsageRecord:
        record = PromptUsageRecord(
            prompt=metadata, output_id=output_id, input_hash=input_hash
        )
        with self._lock:
            self._records.append(record)
        return record

    def find_by_prompt_id(self, prompt_id: str) -> list[PromptUsageRecord]:
        with self._lock:
            return [r for r in self._records if r.prompt.prompt_id == prompt_id]

    def all(self) -> list[PromptUsageRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)
