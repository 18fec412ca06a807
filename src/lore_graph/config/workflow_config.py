"""Settings for the consistency workflow and the ingestion pipeline."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowConfig(BaseSettings):
    """
    Configuration for the Retrieve -> Generate -> Validate workflow.

    Values can be overridden with ``LORE_``-prefixed environment variables,
    e.g. ``LORE_MAX_ITERATIONS=5``.
    """

    model_config = SettingsConfigDict(env_prefix="LORE_")

    # Retry policy
    max_iterations: int = Field(default=3, ge=1)
    consistency_threshold: float = Field(default=0.8, ge=0.0, le=1.0)

    # Per-stage timeout for retriever and generator calls
    stage_timeout_seconds: float = Field(default=60.0, gt=0)

    # Fail the session when retrieval returns nothing at all
    require_context: bool = True

    # Historian retrieval parameters
    max_keywords: int = 3
    graph_entities_per_keyword: int = 5
    max_relationships: int = 20
    max_documents: int = 5
    document_score_threshold: float | None = 0.7


class IngestionConfig(BaseSettings):
    """Configuration for Extract -> Define -> Canonicalize -> Write jobs."""

    model_config = SettingsConfigDict(env_prefix="LORE_INGEST_")

    reject_schema_violations: bool = False
    write_to_graph: bool = True
