"""Audit log event models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DecisionEvent(BaseModel):
    """One policy decision log entry (audit/decisions.jsonl).

    Records the outcome of a single evaluation with enough context to
    replay it: the evaluated instant, the request attributes, the
    per-dimension verdicts and the deciding rule ids.
    """

    # --- core ---
    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )
    event: Literal["policy_decision"] = "policy_decision"

    # --- decision outcome ---
    decision: Literal["allow", "deny"]
    reason: str
    matched_rules: list[str] = Field(default_factory=list)
    phase_verdict: str
    period_verdict: str
    payment_status_verdict: str
    error_type: str | None = None  # Set when evaluation could not complete

    # --- request ---
    subject_id: str | None = None
    roles: list[str] = Field(default_factory=list)
    resource: str
    action: str
    institution_id: str | None = None
    polo_id: str | None = None
    institution_phase: str | None = None
    payment_status: str | None = None

    # --- replay ---
    evaluated_at: str  # Instant the decision was computed for (ISO 8601)

    # --- performance ---
    eval_ms: float

    model_config = ConfigDict(extra="forbid")
