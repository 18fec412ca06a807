"""Historian retriever: hybrid graph + document context for a query."""

import logging
import re
import time

from langchain_core.vectorstores import VectorStore
from langsmith import traceable

from lore_graph.config.workflow_config import WorkflowConfig
from lore_graph.data_models.lore import (
    GraphEntitySummary,
    GraphRelationshipSummary,
    LoreDocument,
    RetrievedContext,
)
from lore_graph.graph.interfaces import GraphSearch
from lore_graph.workflow.exceptions import RetrievalError
from lore_graph.workflow.interfaces import Retriever

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "what", "who", "where", "when", "why",
        "how", "tell", "me", "about",
    }
)  # fmt: skip


def extract_keywords(query: str, limit: int = 5) -> list[str]:
    """Lowercased query words longer than two characters, minus stop words."""
    words = re.sub(r"[^\w\s]", "", query.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS][:limit]


def calculate_relevance(
    document_count: int, entity_count: int, relationship_count: int
) -> float:
    """
    Weighted coverage score in [0, 1].

    Documents contribute up to 0.4 (saturating at 5), entities up to 0.3
    (saturating at 10) and relationships up to 0.3 (saturating at 20).
    """
    document_score = min(document_count / 5, 1) * 0.4
    entity_score = min(entity_count / 10, 1) * 0.3
    relationship_score = min(relationship_count / 20, 1) * 0.3
    return round(document_score + entity_score + relationship_score, 2)


class HistorianRetriever(Retriever):
    """
    Retrieve context from the knowledge graph and an optional document index.

    Graph lookups are keyword based: each of the top keywords is matched
    against entity names, then relationships touching the found entities are
    added. Documents come from any LangChain ``VectorStore``.
    """

    def __init__(
        self,
        graph: GraphSearch,
        documents: VectorStore | None = None,
        config: WorkflowConfig | None = None,
    ):
        self.graph = graph
        self.documents = documents
        self.config = config or WorkflowConfig()

    @traceable(name="Historian: Retrieve Context")
    def retrieve(self, query: str) -> RetrievedContext:
        start = time.perf_counter()
        keywords = extract_keywords(query)[: self.config.max_keywords]
        logger.info(f"Retrieving context for keywords {keywords}")

        documents = self._search_documents(query)
        entities = self._search_entities(keywords)
        relationships = self._expand_relationships(entities)

        context = RetrievedContext(
            entities=entities,
            relationships=relationships,
            documents=documents,
            relevance_score=calculate_relevance(
                len(documents), len(entities), len(relationships)
            ),
            retrieval_time_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info(
            f"Context retrieved in {context.retrieval_time_ms}ms: "
            f"{len(entities)} entities, {len(relationships)} relationships, "
            f"{len(documents)} documents"
        )
        return context

    def _search_documents(self, query: str) -> list[LoreDocument]:
        if self.documents is None:
            return []
        try:
            hits = self.documents.similarity_search_with_score(
                query, k=self.config.max_documents
            )
        except Exception as e:
            raise RetrievalError(f"Document search failed: {e}", e) from e

        threshold = self.config.document_score_threshold
        documents = []
        for index, (doc, score) in enumerate(hits):
            if threshold is not None and score < threshold:
                continue
            documents.append(
                LoreDocument(
                    id=str(doc.id or doc.metadata.get("id", f"doc-{index}")),
                    text=doc.page_content,
                    score=float(score),
                    metadata=dict(doc.metadata),
                )
            )
        return documents

    def _search_entities(self, keywords: list[str]) -> list[GraphEntitySummary]:
        found: dict[str, GraphEntitySummary] = {}
        for keyword in keywords:
            try:
                matches = self.graph.search_entities(
                    keyword, limit=self.config.graph_entities_per_keyword
                )
            except Exception as e:
                logger.warning(f"Graph search failed for keyword '{keyword}': {e}")
                continue
            for entity in matches:
                found.setdefault(entity.id, entity)
        return list(found.values())

    def _expand_relationships(
        self, entities: list[GraphEntitySummary]
    ) -> list[GraphRelationshipSummary]:
        if not entities:
            return []
        try:
            return self.graph.relationships_for(
                [entity.id for entity in entities],
                limit=self.config.max_relationships,
            )
        except Exception as e:
            logger.warning(f"Relationship lookup failed: {e}")
            return []
