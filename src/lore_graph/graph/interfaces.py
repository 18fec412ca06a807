"""Abstract interfaces for the external graph store."""

from abc import ABC, abstractmethod
from typing import Any

from lore_graph.data_models.entities import CanonicalEntity, CanonicalRelationship
from lore_graph.data_models.lore import GraphEntitySummary, GraphRelationshipSummary


class GraphLookup(ABC):
    """Read access used by the contradiction detector."""

    @abstractmethod
    def find_existing(self, entity_type: str, name: str) -> dict[str, Any] | None:
        """
        Look up the persisted version of an entity.

        Must see writes made earlier in the same process.

        Args:
            entity_type: Entity type label
            name: Entity name (any casing/spacing that normalizes to the same ID)

        Returns:
            Stored properties, or None if no such entity exists

        Raises:
            GraphLookupError: If the store cannot be read
        """
        pass


class GraphWriter(ABC):
    """Idempotent upsert access used by the ingestion service."""

    @abstractmethod
    def upsert_entity(self, entity: CanonicalEntity) -> bool:
        """
        Create or update an entity node.

        Repeated writes of identical data must not create duplicates.

        Returns:
            True if a new node was created, False if an existing one was updated
        """
        pass

    @abstractmethod
    def upsert_relationship(self, relationship: CanonicalRelationship) -> bool:
        """
        Create or update a relationship edge.

        Returns:
            True if a new edge was created

        Raises:
            DanglingRelationshipError: If either endpoint is not stored
        """
        pass


class GraphSearch(ABC):
    """Keyword and neighbourhood queries used by the retriever."""

    @abstractmethod
    def search_entities(self, keyword: str, limit: int = 5) -> list[GraphEntitySummary]:
        """Entities whose name contains ``keyword`` (case-insensitive)."""
        pass

    @abstractmethod
    def relationships_for(
        self, entity_ids: list[str], limit: int = 20
    ) -> list[GraphRelationshipSummary]:
        """Relationships touching any of ``entity_ids``."""
        pass


class GraphStore(GraphLookup, GraphWriter, GraphSearch):
    """Full store interface: lookup, write and search."""

    pass
