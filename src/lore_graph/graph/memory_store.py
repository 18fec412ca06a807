"""In-process graph store backed by a NetworkX MultiDiGraph."""

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import networkx as nx

from lore_graph.data_models.entities import CanonicalEntity, CanonicalRelationship
from lore_graph.data_models.lore import GraphEntitySummary, GraphRelationshipSummary
from lore_graph.graph.exceptions import (
    DanglingRelationshipError,
    GraphLookupError,
    GraphStoreError,
)
from lore_graph.graph.interfaces import GraphStore
from lore_graph.ingestion.canonicalize import canonical_id

logger = logging.getLogger(__name__)


class NetworkXGraphStore(GraphStore):
    """
    Graph store keeping lore in memory.

    Nodes are keyed by canonical ID and carry ``type`` and ``properties``;
    edges are keyed by relationship type, so ``(from, type, to)`` is unique
    and writes are idempotent upserts. A lock serializes access so a lookup
    always sees earlier writes from any thread of the process.
    """

    def __init__(self, graph: nx.MultiDiGraph | None = None):
        self._graph = graph if graph is not None else nx.MultiDiGraph()
        self._lock = threading.RLock()

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def upsert_entity(self, entity: CanonicalEntity) -> bool:
        with self._lock:
            created = entity.id not in self._graph
            if created:
                self._graph.add_node(entity.id, type=entity.type.value, properties={})
            node = self._graph.nodes[entity.id]
            node["properties"] = {
                **node["properties"],
                **entity.properties,
                "id": entity.id,
                "updated_at": datetime.now(UTC).isoformat(),
            }
        logger.debug(
            f"{'Created' if created else 'Updated'} {entity.type.value} node {entity.id}"
        )
        return created

    def upsert_relationship(self, relationship: CanonicalRelationship) -> bool:
        with self._lock:
            for endpoint in (relationship.from_id, relationship.to_id):
                if endpoint not in self._graph:
                    raise DanglingRelationshipError(relationship.type, endpoint)

            created = not self._graph.has_edge(
                relationship.from_id, relationship.to_id, key=relationship.type
            )
            existing = (
                {}
                if created
                else self._graph.edges[
                    relationship.from_id, relationship.to_id, relationship.type
                ]["properties"]
            )
            self._graph.add_edge(
                relationship.from_id,
                relationship.to_id,
                key=relationship.type,
                properties={**existing, **relationship.properties},
            )
        return created

    def find_existing(self, entity_type: str, name: str) -> dict[str, Any] | None:
        try:
            node_id = canonical_id(entity_type, name)
        except ValueError as e:
            raise GraphLookupError(
                f"Cannot look up {entity_type} '{name}': {e}", e
            ) from e

        with self._lock:
            if node_id not in self._graph:
                return None
            return dict(self._graph.nodes[node_id]["properties"])

    def get_entity(self, entity_id: str) -> GraphEntitySummary | None:
        with self._lock:
            if entity_id not in self._graph:
                return None
            return self._summarize(entity_id)

    def search_entities(self, keyword: str, limit: int = 5) -> list[GraphEntitySummary]:
        needle = keyword.lower()
        with self._lock:
            matches = [
                node_id
                for node_id, data in self._graph.nodes(data=True)
                if needle in str(data["properties"].get("name", "")).lower()
            ]
            return [self._summarize(node_id) for node_id in matches[:limit]]

    def relationships_for(
        self, entity_ids: list[str], limit: int = 20
    ) -> list[GraphRelationshipSummary]:
        wanted = set(entity_ids)
        results: list[GraphRelationshipSummary] = []
        with self._lock:
            for from_id, to_id, rel_type, data in self._graph.edges(
                keys=True, data=True
            ):
                if from_id in wanted or to_id in wanted:
                    results.append(
                        GraphRelationshipSummary(
                            type=rel_type,
                            from_id=from_id,
                            to_id=to_id,
                            properties=dict(data.get("properties", {})),
                        )
                    )
                    if len(results) >= limit:
                        break
        return results

    def count(self) -> dict[str, int]:
        with self._lock:
            return {
                "entities": self._graph.number_of_nodes(),
                "relationships": self._graph.number_of_edges(),
            }

    def _summarize(self, node_id: str) -> GraphEntitySummary:
        data = self._graph.nodes[node_id]
        return GraphEntitySummary(
            id=node_id, type=data["type"], properties=dict(data["properties"])
        )

    # Snapshot persistence

    def save(self, path: Path) -> None:
        """Write the graph to ``path`` as node-link JSON."""
        with self._lock:
            payload = nx.node_link_data(self._graph, edges="edges")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        logger.info(f"Saved graph snapshot ({self.count()}) to {path}")

    @classmethod
    def load(cls, path: Path) -> "NetworkXGraphStore":
        """Load a snapshot written by ``save``; a missing file yields an empty store."""
        if not path.exists():
            logger.info(f"No graph snapshot at {path}, starting empty")
            return cls()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            graph = nx.node_link_graph(
                payload, directed=True, multigraph=True, edges="edges"
            )
        except (json.JSONDecodeError, KeyError, nx.NetworkXError) as e:
            raise GraphStoreError(f"Corrupt graph snapshot {path}: {e}", e) from e
        return cls(graph)
