"""Collaborator interfaces consumed by the workflow controller."""

from abc import ABC, abstractmethod

from lore_graph.data_models.lore import GeneratedLore, RetrievedContext
from lore_graph.data_models.validation import ValidationResult


class Retriever(ABC):
    """Assembles graph and document context for a user query."""

    @abstractmethod
    def retrieve(self, query: str) -> RetrievedContext:
        """
        Retrieve context for ``query``.

        Raises:
            RetrievalError: If the backing stores cannot be queried
        """
        pass


class Generator(ABC):
    """Produces candidate lore from retrieved context."""

    @abstractmethod
    def generate(
        self,
        query: str,
        context: RetrievedContext,
        feedback: ValidationResult | None = None,
    ) -> GeneratedLore:
        """
        Generate lore answering ``query``.

        Args:
            query: User query
            context: Context from the retriever
            feedback: Validation result of the previous iteration, if any

        Raises:
            GenerationError: If the model fails or its output does not parse
        """
        pass
