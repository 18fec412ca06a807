#!/usr/bin/env python3
"""
Ask a question against a knowledge graph snapshot.

Runs one Retrieve -> Generate -> Validate session and prints the answer, or
the reason it was escalated to human review.

    poetry run python scripts/run_workflow.py "Who controls the Ruby Mines?"
    poetry run python scripts/run_workflow.py "..." --documents data/lore
"""

import argparse
import json
import logging
from pathlib import Path

from langchain_core.documents import Document
from langchain_core.vectorstores import InMemoryVectorStore
from langchain_openai import OpenAIEmbeddings

from lore_graph.config.workflow_config import WorkflowConfig
from lore_graph.graph.memory_store import NetworkXGraphStore
from lore_graph.llm import LLMConfig, create_chat_model
from lore_graph.workflow import WorkflowController

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

DEFAULT_GRAPH = Path("output") / "lore_graph.json"


def build_document_index(directory: Path) -> InMemoryVectorStore:
    """Embed every .txt file in ``directory`` into an in-memory vector store."""
    documents = [
        Document(page_content=path.read_text(encoding="utf-8"), id=path.stem)
        for path in sorted(directory.glob("*.txt"))
    ]
    index = InMemoryVectorStore(OpenAIEmbeddings(model="text-embedding-3-small"))
    if documents:
        index.add_documents(documents)
    logger.info(f"Indexed {len(documents)} lore documents from {directory}")
    return index


def main():
    parser = argparse.ArgumentParser(description="Run one lore query session.")
    parser.add_argument("query", help="Question to answer")
    parser.add_argument(
        "--graph",
        type=Path,
        default=DEFAULT_GRAPH,
        help=f"Graph snapshot to read (default: {DEFAULT_GRAPH})",
    )
    parser.add_argument(
        "--documents",
        type=Path,
        default=None,
        help="Directory of .txt lore documents for similarity search",
    )
    parser.add_argument("--session-id", default=None, help="Session identifier")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Generation attempts before escalating (default: 3)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the full result as JSON"
    )
    args = parser.parse_args()

    config = WorkflowConfig()
    if args.max_iterations is not None:
        config = config.model_copy(update={"max_iterations": args.max_iterations})

    llm_config = LLMConfig.from_environment("narration")
    llm_config.validate()

    store = NetworkXGraphStore.load(args.graph)
    documents = build_document_index(args.documents) if args.documents else None
    controller = WorkflowController.from_store(
        store, create_chat_model(llm_config), documents=documents, config=config
    )

    result = controller.run_workflow(args.query, session_id=args.session_id)

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    if result.success:
        print(result.response)
        logger.info(f"Completed in {result.iterations} iteration(s)")
    elif result.requires_human_review:
        logger.warning(
            f"Session {result.session_id} needs human review "
            f"after {result.iterations} iteration(s)"
        )
        if result.validation_result:
            for fix in result.validation_result.suggested_fixes:
                logger.warning(f"  {fix}")
        if result.response:
            print(f"[UNVERIFIED] {result.response}")
    for error in result.errors:
        logger.error(f"  {error}")


if __name__ == "__main__":
    main()
