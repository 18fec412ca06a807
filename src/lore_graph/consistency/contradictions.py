"""Contradiction detection against persisted graph facts."""

import logging
from dataclasses import dataclass, field

from lore_graph.data_models.lore import LoreEntity
from lore_graph.data_models.validation import Contradiction
from lore_graph.graph.interfaces import GraphLookup
from lore_graph.schemas.registry import BOOKKEEPING_FIELDS

logger = logging.getLogger(__name__)

PROPERTY_MISMATCH = "property_mismatch"


@dataclass
class ContradictionReport:
    """Outcome of checking one candidate entity."""

    contradictions: list[Contradiction] = field(default_factory=list)
    verified: bool = True
    warning: str | None = None


class ContradictionDetector:
    """
    Compare candidate entities with their stored versions.

    Comparison is exact: any property present on both sides with a different
    value is a ``property_mismatch``. A missing stored entity is a new fact,
    not a contradiction.
    """

    def __init__(self, lookup: GraphLookup):
        self.lookup = lookup

    def detect(self, entity: LoreEntity) -> ContradictionReport:
        try:
            existing = self.lookup.find_existing(entity.type, entity.name)
        except Exception as e:
            warning = f"Cannot verify {entity.type} '{entity.name}': {e}"
            logger.warning(warning)
            return ContradictionReport(verified=False, warning=warning)

        if existing is None:
            return ContradictionReport()

        contradictions = []
        for key, new_value in entity.properties.items():
            if key in BOOKKEEPING_FIELDS or key == "name":
                continue
            existing_value = existing.get(key)
            if existing_value is None or new_value is None:
                continue
            if existing_value != new_value:
                contradictions.append(
                    Contradiction(
                        new_claim=f"{entity.name}.{key} = {new_value}",
                        existing_fact=f"{entity.name}.{key} = {existing_value}",
                        conflict_type=PROPERTY_MISMATCH,
                    )
                )

        if contradictions:
            logger.info(
                f"{len(contradictions)} contradiction(s) for {entity.type} '{entity.name}'"
            )
        return ContradictionReport(contradictions=contradictions)
