"""Consistency validator: schema checks plus contradiction checks."""

import logging
import time
from dataclasses import dataclass

from lore_graph.consistency.contradictions import ContradictionDetector
from lore_graph.data_models.lore import LoreEntity
from lore_graph.data_models.validation import (
    Contradiction,
    SchemaViolation,
    ValidationResult,
)
from lore_graph.schemas import registry

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.8


@dataclass(frozen=True)
class IterationContext:
    """Where the workflow is in its retry budget."""

    iteration_count: int = 1
    max_iterations: int = 3


class ConsistencyValidator:
    """
    Turn candidate entities into a single pass/fail verdict.

    Each entity gets one schema check and one contradiction check. The
    consistency score is the fraction of checks without an issue, but the
    verdict also hard-fails on any schema violation, any contradiction, or
    any entity whose stored version could not be looked up.
    """

    def __init__(
        self, detector: ContradictionDetector, threshold: float = DEFAULT_THRESHOLD
    ):
        self.detector = detector
        self.threshold = threshold

    def validate(
        self,
        candidates: list[LoreEntity],
        context: IterationContext | None = None,
    ) -> ValidationResult:
        """
        Validate candidate entities from one generation.

        Args:
            candidates: Entities claimed by the generated lore
            context: Iteration counters, used for ``requires_revision``

        Returns:
            A fresh ValidationResult
        """
        context = context or IterationContext()
        start = time.perf_counter()

        schema_violations: list[SchemaViolation] = []
        for entity in candidates:
            schema_violations.extend(
                registry.validate(entity.type, entity.as_properties())
            )

        contradictions: list[Contradiction] = []
        unverifiable: list[str] = []
        for entity in candidates:
            report = self.detector.detect(entity)
            if not report.verified:
                unverifiable.append(f"{entity.type}:{entity.name}")
                continue
            contradictions.extend(report.contradictions)

        # Unverifiable lookups are neither passes nor failures
        total_checks = 2 * len(candidates) - len(unverifiable)
        total_issues = len(schema_violations) + len(contradictions)
        if total_checks > 0:
            score = max(0.0, (total_checks - total_issues) / total_checks)
        else:
            score = 1.0
        score = round(score, 2)

        schema_compliant = not schema_violations
        is_valid = (
            schema_compliant
            and not contradictions
            and not unverifiable
            and score >= self.threshold
        )

        result = ValidationResult(
            is_valid=is_valid,
            schema_compliant=schema_compliant,
            consistency_score=score,
            schema_violations=schema_violations,
            contradictions=contradictions,
            unverifiable=unverifiable,
            suggested_fixes=suggest_fixes(
                schema_violations, contradictions, unverifiable
            ),
            requires_revision=(
                not is_valid and context.iteration_count < context.max_iterations
            ),
            validation_time_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info(
            f"Validation complete in {result.validation_time_ms}ms: "
            f"valid={is_valid}, score={score}, violations={len(schema_violations)}, "
            f"contradictions={len(contradictions)}, unverifiable={len(unverifiable)}"
        )
        return result


def suggest_fixes(
    schema_violations: list[SchemaViolation],
    contradictions: list[Contradiction],
    unverifiable: list[str] | None = None,
) -> list[str]:
    fixes = []
    if schema_violations:
        fixes.append(
            f"Fix {len(schema_violations)} schema violations by adding required fields"
        )
    if contradictions:
        fixes.append(
            f"Resolve {len(contradictions)} contradictions by aligning with "
            "existing knowledge"
        )
    if unverifiable:
        fixes.append(
            f"Re-check {len(unverifiable)} entities that could not be verified "
            "against the graph"
        )
    if not fixes:
        fixes.append("No issues found - lore is consistent")
    return fixes
