"""Service running Extract -> Define -> Canonicalize -> Write jobs."""

import logging
import time

from langsmith import traceable

from lore_graph.config.workflow_config import IngestionConfig
from lore_graph.data_models.entities import (
    CanonicalizationResult,
    ExtractionResult,
    IngestionResult,
    IngestionStatus,
)
from lore_graph.graph.interfaces import GraphWriter
from lore_graph.ingestion.canonicalize import canonicalize
from lore_graph.ingestion.define import classify_entities
from lore_graph.ingestion.extractor import LoreExtractor

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class IngestionService:
    """Ingest free-form lore text into the knowledge graph."""

    def __init__(
        self,
        extractor: LoreExtractor,
        graph_writer: GraphWriter,
        config: IngestionConfig | None = None,
    ):
        """
        Initialize the ingestion service.

        Args:
            extractor: Produces entity and relationship mentions from text
            graph_writer: Idempotent upsert target for canonical results
            config: Optional IngestionConfig. If not provided, will use
                environment-based config.
        """
        self.extractor = extractor
        self.graph_writer = graph_writer
        self.config = config or IngestionConfig()

    @traceable(name="Ingestion Service: Ingest Text")
    def ingest(self, text: str, source_id: str = "document") -> IngestionResult:
        """
        Run one ingestion job.

        Never raises for collaborator failures: an extractor failure yields a
        ``failed`` job with zero extractions, and individual write failures
        make the job ``partial``.

        Args:
            text: Raw narrative text
            source_id: Identifier of the source, used for provenance IDs

        Returns:
            IngestionResult describing what was written
        """
        job_start = time.perf_counter()
        errors: list[str] = []

        stage_start = time.perf_counter()
        try:
            extraction = self.extractor.extract(text)
        except Exception as e:
            logger.error(f"Extraction failed for {source_id}: {e}")
            errors.append(f"Extraction failed: {e}")
            extraction = ExtractionResult()
        extraction_ms = _elapsed_ms(stage_start)

        stage_start = time.perf_counter()
        classified, define_warnings = classify_entities(extraction.entities, source_id)
        define_ms = _elapsed_ms(stage_start)

        stage_start = time.perf_counter()
        canonical = canonicalize(
            classified,
            extraction.relationships,
            reject_schema_violations=self.config.reject_schema_violations,
        )
        canonicalize_ms = _elapsed_ms(stage_start)

        stage_start = time.perf_counter()
        entities_created, relationships_created, entities_written = 0, 0, 0
        if self.config.write_to_graph:
            entities_created, relationships_created, entities_written = self._write(
                canonical, errors
            )
        graph_write_ms = _elapsed_ms(stage_start)

        if errors and not entities_written:
            status = IngestionStatus.FAILED
        elif errors:
            status = IngestionStatus.PARTIAL
        else:
            status = IngestionStatus.COMPLETED

        result = IngestionResult(
            status=status,
            entities=canonical.entities,
            relationships=canonical.relationships,
            entities_created=entities_created,
            relationships_created=relationships_created,
            extraction_time_ms=extraction_ms,
            define_time_ms=define_ms,
            canonicalize_time_ms=canonicalize_ms,
            graph_write_time_ms=graph_write_ms,
            total_time_ms=_elapsed_ms(job_start),
            warnings=[*extraction.warnings, *define_warnings, *canonical.warnings],
            errors=errors,
        )
        logger.info(
            f"Ingestion job {result.job_id} for {source_id} {status.value}: "
            f"{len(result.entities)} entities ({entities_created} new), "
            f"{len(result.relationships)} relationships "
            f"({relationships_created} new) in {result.total_time_ms}ms"
        )
        return result

    def _write(
        self, canonical: CanonicalizationResult, errors: list[str]
    ) -> tuple[int, int, int]:
        entities_created = 0
        written: set[str] = set()
        for entity in canonical.entities:
            try:
                if self.graph_writer.upsert_entity(entity):
                    entities_created += 1
                written.add(entity.id)
            except Exception as e:
                logger.error(f"Failed to write entity {entity.id}: {e}")
                errors.append(f"Failed to write entity {entity.id}: {e}")

        relationships_created = 0
        for relationship in canonical.relationships:
            if relationship.from_id not in written or relationship.to_id not in written:
                message = f"Skipped relationship {relationship.key}: endpoint not written"
                logger.warning(message)
                errors.append(message)
                continue
            try:
                if self.graph_writer.upsert_relationship(relationship):
                    relationships_created += 1
            except Exception as e:
                logger.error(f"Failed to write relationship {relationship.key}: {e}")
                errors.append(f"Failed to write relationship {relationship.key}: {e}")

        return entities_created, relationships_created, len(written)
