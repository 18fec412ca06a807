"""Exceptions raised by graph store implementations."""


class GraphStoreError(Exception):
    """Base exception for graph store failures."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class GraphLookupError(GraphStoreError):
    """Raised when a read against the graph store fails."""

    pass


class GraphWriteError(GraphStoreError):
    """Raised when an upsert cannot be applied."""

    pass


class DanglingRelationshipError(GraphWriteError):
    """Raised when a relationship endpoint does not exist in the store."""

    def __init__(self, relationship_type: str, missing_id: str):
        self.relationship_type = relationship_type
        self.missing_id = missing_id
        super().__init__(
            f"Cannot write {relationship_type}: entity '{missing_id}' not found"
        )
