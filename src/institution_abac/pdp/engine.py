"""Policy engine - evaluate (subject, resource, action, context) requests.

This module provides the PolicyEngine facade that orchestrates the rule
store, period resolver, dimension evaluators and decision combinator.

Evaluation flow:
1. Bypass roles → ALLOW (only if configured; empty by default)
2. Base grant lookup → no grant for any role → DENY
3. Scope membership → subject outside the institution/polo → DENY
4. Phase, period and payment-status evaluators run against the same context
5. Combinator: any DENY → DENY, otherwise ALLOW
6. Decision handed to the audit sink

Design principles:
1. Default deny: contextual rules only restrict a role grant
2. Deny-wins across and within dimensions
3. Never allow on failure: an unreachable store, a malformed rule or a blown
   deadline yields DENY with the error type (or a raise, in "raise" mode)
4. Stateless per call: caches are the only shared state

Steps 1-5 run on a worker thread. The caller waits at most
deadline_seconds for them; a store call still running after that is
abandoned and the request is denied with EvaluationTimeoutError.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from institution_abac.config import EngineConfig
from institution_abac.constants import EVALUATION_WORKERS
from institution_abac.context import RequestContext, Subject
from institution_abac.exceptions import (
    AbacError,
    ConfigurationError,
    EvaluationTimeoutError,
    PolicyEvaluationError,
    StoreUnavailableError,
)
from institution_abac.pdp.combinator import combine
from institution_abac.pdp.decision import Decision
from institution_abac.pdp.evaluators import evaluate_payment_status, evaluate_period, evaluate_phase
from institution_abac.pdp.scope import scope_violation
from institution_abac.pdp.window import to_local
from institution_abac.telemetry.models.system import SystemEvent
from institution_abac.telemetry.system import get_system_logger
from institution_abac.utils.deadline import Deadline

if TYPE_CHECKING:
    from datetime import tzinfo

    from institution_abac.pips.periods import PeriodResolver
    from institution_abac.pips.store import RuleStore
    from institution_abac.telemetry.audit import DecisionSink

__all__ = ["PolicyEngine"]

_system_logger = get_system_logger()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PolicyEngine:
    """Contextual permission evaluation engine.

    Safe to share between threads: evaluate() keeps all per-request state
    on the stack, and the store/resolver caches are lock-protected.

    Attributes:
        config: Engine configuration (timezones, deadline, error mode).
    """

    def __init__(
        self,
        store: "RuleStore",
        periods: "PeriodResolver",
        config: EngineConfig | None = None,
        decision_sink: "DecisionSink | None" = None,
        clock: Callable[[], datetime] = _utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the policy engine.

        Args:
            store: Rule store (wrap in CachingRuleStore for TTL caching).
            periods: Period resolver (caches instance lists itself).
            config: Engine configuration. Defaults to EngineConfig().
            decision_sink: Optional audit sink receiving every decision.
            clock: Wall clock used when the context carries no ``now``.
            monotonic: Monotonic clock for the evaluation deadline.
        """
        self.config = config or EngineConfig()
        self._store = store
        self._periods = periods
        self._sink = decision_sink
        self._clock = clock
        self._monotonic = monotonic
        self._executor = ThreadPoolExecutor(max_workers=EVALUATION_WORKERS, thread_name_prefix="abac-eval")

    def close(self) -> None:
        """Stop the worker threads without waiting for abandoned store calls."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def evaluate(
        self,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext | None = None,
    ) -> Decision:
        """Evaluate an access request.

        Args:
            subject: Caller with its roles.
            resource: Requested resource (open vocabulary, e.g. "matricula").
            action: Requested action (open vocabulary, e.g. "criar").
            context: Institution, phase, payment status and optional ``now``.

        Returns:
            Decision with allowed flag, reason and evaluated_at.

        Raises:
            ConfigurationError, StoreUnavailableError, EvaluationTimeoutError:
                Only when config.error_mode is "raise".
            PolicyEvaluationError: If evaluation fails unexpectedly.
        """
        context = context or RequestContext()
        started = time.perf_counter()
        tz = self.config.timezone_for(context.institution_id)
        now = to_local(context.now or self._clock(), tz)

        try:
            decision = self._evaluate_within_deadline(subject, resource, action, context, now, tz)
        except PolicyEvaluationError:
            raise
        except AbacError as e:
            self._log_failure(e, resource, action, context)
            decision = Decision(
                allowed=False,
                reason=f"evaluation failed: {e}",
                evaluated_at=now,
                error=type(e).__name__,
            )
            self._audit(decision, subject, resource, action, context, started)
            if self.config.error_mode == "raise":
                raise
            return decision
        except Exception as e:
            # Cannot trust a decision if evaluation crashes
            raise PolicyEvaluationError(
                f"Policy evaluation failed unexpectedly: {type(e).__name__}: {e}"
            ) from e

        self._audit(decision, subject, resource, action, context, started)
        return decision

    def check_access(
        self,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext | None = None,
    ) -> bool:
        """Evaluate and return only the allowed flag."""
        return self.evaluate(subject, resource, action, context).allowed

    def _evaluate_within_deadline(
        self,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext,
        now: datetime,
        tz: "tzinfo",
    ) -> Decision:
        seconds = self.config.deadline_seconds
        future = self._executor.submit(self._evaluate, subject, resource, action, context, now, tz)
        try:
            return future.result(timeout=seconds)
        except FuturesTimeoutError:
            if not future.done():
                future.cancel()
                raise EvaluationTimeoutError(
                    f"Evaluation exceeded its {seconds:g}s deadline waiting on the rule store"
                ) from None
        # Finished as the wait timed out: its own outcome stands
        return future.result()

    def _evaluate(
        self,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext,
        now: datetime,
        tz: "tzinfo",
    ) -> Decision:
        deadline = Deadline(self.config.deadline_seconds, clock=self._monotonic)
        label = f"{resource}:{action}"

        for role in subject.roles:
            if role in self.config.bypass_roles:
                return Decision(allowed=True, reason=f"bypass role '{role}'", evaluated_at=now)

        granted = any(self._store.find_grant(role, resource, action) for role in subject.roles)
        deadline.check("base grant lookup")
        if not granted:
            return combine(False, [], now, grant_label=label)

        violation = scope_violation(subject, context)
        if violation is not None:
            return Decision(allowed=False, reason=violation, evaluated_at=now)

        phase = evaluate_phase(self._store, resource, action, context.institution_phase)
        deadline.check("phase rules")

        period = evaluate_period(
            self._store,
            self._periods,
            resource,
            action,
            context.institution_id,
            context.polo_id,
            now,
            tz,
            deadline=deadline,
        )

        payment = evaluate_payment_status(self._store, resource, action, context.payment_status)
        deadline.check("payment status rules")

        return combine(True, [phase, period, payment], now, grant_label=label)

    def _log_failure(self, error: AbacError, resource: str, action: str, context: RequestContext) -> None:
        event = SystemEvent(
            event=_failure_event_name(error),
            message=f"Evaluation denied: {error}",
            component="engine",
            resource=resource,
            action=action,
            institution_id=context.institution_id,
            error_type=type(error).__name__,
            error_message=str(error),
        )
        _system_logger.error(event.model_dump(exclude={"time"}, exclude_none=True))

    def _audit(
        self,
        decision: Decision,
        subject: Subject,
        resource: str,
        action: str,
        context: RequestContext,
        started: float,
    ) -> None:
        if self._sink is None:
            return
        eval_ms = (time.perf_counter() - started) * 1000
        try:
            self._sink.log_decision(
                decision,
                subject=subject,
                resource=resource,
                action=action,
                context=context,
                eval_ms=eval_ms,
            )
        except OSError as e:
            event = SystemEvent(
                event="decision_audit_failed",
                message="Could not write decision to audit sink",
                component="audit",
                resource=resource,
                action=action,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            _system_logger.error(event.model_dump(exclude={"time"}, exclude_none=True))


def _failure_event_name(error: AbacError) -> str:
    """Map an evaluation error to its system log event name."""
    if isinstance(error, ConfigurationError):
        return "configuration_error"
    if isinstance(error, StoreUnavailableError):
        return "store_unavailable"
    if isinstance(error, EvaluationTimeoutError):
        return "evaluation_timeout"
    return "evaluation_error"
