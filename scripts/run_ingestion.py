#!/usr/bin/env python3
"""
Ingest lore text files into a JSON-backed knowledge graph snapshot.

Each file runs through Extract -> Define -> Canonicalize -> Write. Entity IDs
are deterministic, so re-running on the same files updates the snapshot in
place instead of duplicating entities.

    poetry run python scripts/run_ingestion.py data/lore/*.txt --graph output/lore_graph.json
"""

import argparse
import logging
from pathlib import Path

from lore_graph.config.workflow_config import IngestionConfig
from lore_graph.data_models.entities import IngestionStatus
from lore_graph.graph.memory_store import NetworkXGraphStore
from lore_graph.ingestion import IngestionService, LoreExtractor
from lore_graph.llm import LLMConfig, create_chat_model

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

DEFAULT_GRAPH = Path("output") / "lore_graph.json"


def main():
    parser = argparse.ArgumentParser(
        description="Ingest lore text files into the knowledge graph."
    )
    parser.add_argument("files", type=Path, nargs="+", help="Text files to ingest")
    parser.add_argument(
        "--graph",
        type=Path,
        default=DEFAULT_GRAPH,
        help=f"Graph snapshot to extend (default: {DEFAULT_GRAPH})",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject entities that fail schema validation instead of warning",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Extract and canonicalize without writing to the graph",
    )
    args = parser.parse_args()

    store = NetworkXGraphStore.load(args.graph)
    llm_config = LLMConfig.from_environment("extraction")
    llm_config.validate()
    extractor = LoreExtractor(create_chat_model(llm_config))
    service = IngestionService(
        extractor,
        store,
        IngestionConfig(
            reject_schema_violations=args.strict, write_to_graph=not args.dry_run
        ),
    )

    failed = 0
    for path in args.files:
        if not path.exists():
            logger.error(f"File not found: {path}")
            failed += 1
            continue

        result = service.ingest(path.read_text(encoding="utf-8"), source_id=path.stem)
        logger.info(
            f"{path.name}: {result.status.value}, "
            f"{len(result.entities)} entities ({result.entities_created} new), "
            f"{len(result.relationships)} relationships "
            f"({result.relationships_created} new), "
            f"{len(result.warnings)} warnings"
        )
        for error in result.errors:
            logger.error(f"  {error}")
        if result.status == IngestionStatus.FAILED:
            failed += 1

    if not args.dry_run:
        store.save(args.graph)
    logger.info(f"Done: {len(args.files) - failed}/{len(args.files)} files ingested")


if __name__ == "__main__":
    main()
