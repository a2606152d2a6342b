"""Verdicts and decisions produced by the policy engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Decision",
    "Dimension",
    "DimensionResult",
    "DimensionVerdicts",
    "Verdict",
]

Dimension = Literal["phase", "period", "payment_status"]


class Verdict(str, Enum):
    """Per-dimension outcome."""

    ALLOW = "allow"
    DENY = "deny"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class DimensionResult:
    """Outcome of one dimension evaluator.

    Attributes:
        dimension: Which dimension produced the result.
        verdict: ALLOW, DENY or NOT_APPLICABLE.
        rule_ids: Ids of the rules that decided the verdict.
        reason: Short human-readable explanation.
    """

    dimension: Dimension
    verdict: Verdict
    rule_ids: tuple[str, ...] = field(default_factory=tuple)
    reason: str = ""


class DimensionVerdicts(BaseModel):
    """Verdicts of the three contextual dimensions, for explanations."""

    phase: Verdict = Verdict.NOT_APPLICABLE
    period: Verdict = Verdict.NOT_APPLICABLE
    payment_status: Verdict = Verdict.NOT_APPLICABLE

    model_config = ConfigDict(frozen=True)


class Decision(BaseModel):
    """Final access decision returned to the caller.

    Attributes:
        allowed: Whether the action is permitted.
        reason: Human-readable explanation of the outcome.
        evaluated_at: Instant the decision was computed for (the injected
            ``now`` or the wall clock).
        verdicts: Per-dimension verdicts (all NOT_APPLICABLE when the
            evaluation stopped at the base grant or failed).
        matched_rules: Ids of the rules that decided the outcome.
        error: Exception class name when evaluation could not complete.
    """

    allowed: bool
    reason: str
    evaluated_at: datetime
    verdicts: DimensionVerdicts = Field(default_factory=DimensionVerdicts)
    matched_rules: list[str] = Field(default_factory=list)
    error: str | None = None

    model_config = ConfigDict(frozen=True)
