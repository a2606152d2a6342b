"""Audit logging for policy decisions."""

from institution_abac.telemetry.audit.decision_logger import (
    DecisionLogger,
    DecisionSink,
    create_decision_logger,
)

__all__ = [
    "DecisionLogger",
    "DecisionSink",
    "create_decision_logger",
]
