"""Validation result models produced by the consistency validator."""

from pydantic import BaseModel, ConfigDict, Field


class SchemaViolation(BaseModel):
    """A single field that failed schema validation."""

    model_config = ConfigDict(frozen=True)

    field: str
    issue: str


class Contradiction(BaseModel):
    """A property conflict between a new claim and a persisted fact."""

    model_config = ConfigDict(frozen=True)

    new_claim: str
    existing_fact: str
    conflict_type: str = "property_mismatch"


class ValidationResult(BaseModel):
    """
    Verdict of one validation pass over generated lore.

    A fresh instance is produced on every pass; instances are frozen and are
    replaced, never mutated.

    Attributes:
        is_valid: Schema compliant, no contradictions, nothing unverifiable,
            and consistency_score at or above the threshold.
        schema_compliant: No schema violations were found.
        consistency_score: Fraction of passed checks, rounded to 2 decimals.
        schema_violations: Per-field schema issues.
        contradictions: Conflicts with previously stored facts.
        unverifiable: Entities whose stored version could not be looked up.
        suggested_fixes: Human-readable summary of what to change.
        requires_revision: Invalid and the retry budget is not yet spent.
        validation_time_ms: Wall time spent validating.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    schema_compliant: bool
    consistency_score: float = Field(ge=0.0, le=1.0)
    schema_violations: list[SchemaViolation] = Field(default_factory=list)
    contradictions: list[Contradiction] = Field(default_factory=list)
    unverifiable: list[str] = Field(default_factory=list)
    suggested_fixes: list[str] = Field(default_factory=list)
    requires_revision: bool = False
    validation_time_ms: int = 0

    @classmethod
    def failed(
        cls, reason: str, field: str = "generation", requires_revision: bool = True
    ) -> "ValidationResult":
        """Result standing in for an iteration that could not be validated."""
        return cls(
            is_valid=False,
            schema_compliant=False,
            consistency_score=0.0,
            schema_violations=[SchemaViolation(field=field, issue=reason)],
            suggested_fixes=[f"Regenerate: {reason}"],
            requires_revision=requires_revision,
        )
