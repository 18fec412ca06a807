"""Schema and contradiction checks for generated lore."""

from .contradictions import ContradictionDetector, ContradictionReport
from .validator import ConsistencyValidator, IterationContext, suggest_fixes

__all__ = [
    "ConsistencyValidator",
    "ContradictionDetector",
    "ContradictionReport",
    "IterationContext",
    "suggest_fixes",
]
