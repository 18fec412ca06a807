"""Ingestion pipeline: Extract -> Define -> Canonicalize -> Write."""

from .canonicalize import as_classified, canonical_id, canonicalize, normalize_name
from .define import RELATIONSHIP_MAPPING, classify_entities, normalize_relationship_type
from .extractor import LoreExtractor
from .service import IngestionService

__all__ = [
    "RELATIONSHIP_MAPPING",
    "IngestionService",
    "LoreExtractor",
    "as_classified",
    "canonical_id",
    "canonicalize",
    "classify_entities",
    "normalize_name",
    "normalize_relationship_type",
]
