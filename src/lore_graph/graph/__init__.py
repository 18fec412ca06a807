"""Graph store contracts and the in-process NetworkX implementation."""

from .exceptions import (
    DanglingRelationshipError,
    GraphLookupError,
    GraphStoreError,
    GraphWriteError,
)
from .interfaces import GraphLookup, GraphSearch, GraphStore, GraphWriter
from .memory_store import NetworkXGraphStore

__all__ = [
    "DanglingRelationshipError",
    "GraphLookup",
    "GraphLookupError",
    "GraphSearch",
    "GraphStore",
    "GraphStoreError",
    "GraphWriteError",
    "GraphWriter",
    "NetworkXGraphStore",
]
