"""System log event model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SystemEvent(BaseModel):
    """One system/operational log entry (system/system.jsonl).

    Used for WARNING, ERROR and CRITICAL events that indicate operational
    issues: unreachable stores, malformed rules, blown deadlines.
    """

    # --- core ---
    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )
    event: str  # machine-friendly event name
    message: str | None = None

    # --- component / context ---
    component: str | None = None  # "engine", "store", "audit"
    resource: str | None = None
    action: str | None = None
    institution_id: str | None = None

    # --- error details ---
    error_type: str | None = None
    error_message: str | None = None

    details: dict[str, Any] | None = None

    model_config = ConfigDict(extra="allow")
