"""Decision logging for policy evaluation.

This module provides the audit sink for policy decisions (ALLOW, DENY).
Logs are written to <log_dir>/institution_abac_logs/audit/decisions.jsonl.

The engine talks to any object implementing DecisionSink; DecisionLogger is
the JSONL implementation. Its handler is fail-closed: a write error raises
OSError out of log_decision, which the engine reports on the system logger;
the decision itself is never changed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from institution_abac.context import RequestContext, Subject
from institution_abac.pdp.decision import Decision
from institution_abac.telemetry.models.audit import DecisionEvent
from institution_abac.utils.logging import setup_failclosed_audit_logger

__all__ = [
    "DecisionLogger",
    "DecisionSink",
    "create_decision_logger",
]

DECISION_LOGGER_NAME = "institution-abac.audit.decisions"


@runtime_checkable
class DecisionSink(Protocol):
    """Anything that can record a decision."""

    def log_decision(
        self,
        decision: Decision,
        *,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext,
        eval_ms: float,
    ) -> None: ...


class DecisionLogger:
    """JSONL audit logger for policy decisions.

    Usage:
        logger = create_decision_logger(config.logging.decisions_log_path)
        engine = PolicyEngine(..., decision_sink=logger)
    """

    def __init__(self, logger: logging.Logger) -> None:
        """Initialize decision logger.

        Args:
            logger: Configured logger writing JSONL.
        """
        self._logger = logger

    def log_decision(
        self,
        decision: Decision,
        *,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext,
        eval_ms: float,
    ) -> None:
        """Write one DecisionEvent.

        Raises:
            OSError: If the audit file cannot be written.
        """
        event = DecisionEvent(
            decision="allow" if decision.allowed else "deny",
            reason=decision.reason,
            matched_rules=list(decision.matched_rules),
            phase_verdict=decision.verdicts.phase.value,
            period_verdict=decision.verdicts.period.value,
            payment_status_verdict=decision.verdicts.payment_status.value,
            error_type=decision.error,
            subject_id=subject.id,
            roles=list(subject.roles),
            resource=resource,
            action=action,
            institution_id=context.institution_id,
            polo_id=context.polo_id,
            institution_phase=context.institution_phase,
            payment_status=context.payment_status,
            evaluated_at=decision.evaluated_at.isoformat(),
            eval_ms=round(eval_ms, 3),
        )
        self._logger.info(event.model_dump(mode="json", exclude={"time"}, exclude_none=True))


def create_decision_logger(log_path: Path) -> DecisionLogger:
    """Create the JSONL decision logger.

    Args:
        log_path: Path to decisions.jsonl.

    Returns:
        DecisionLogger writing to log_path.
    """
    return DecisionLogger(setup_failclosed_audit_logger(DECISION_LOGGER_NAME, log_path, log_level=logging.INFO))
