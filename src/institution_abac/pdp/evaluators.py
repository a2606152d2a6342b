"""Dimension evaluators - one verdict per contextual dimension.

Each evaluator returns ALLOW, DENY or NOT_APPLICABLE for (resource, action):

- Phase: active rules for the institution's current phase. No match is
  NOT_APPLICABLE; any matching deny rule wins over matching allow rules.
- Payment status: same as phase, keyed on the payer's billing status.
- Period: for every period type with rules for (resource, action), the
  rules are tested against the resolved instances. Any rule window holding
  "now" allows that type, rules with no window holding "now" deny it, and
  a type with no resolvable instance is NOT_APPLICABLE. Types combine with
  deny-wins: every applicable type must currently be inside a window.

Deny-wins is used because the rule tables carry no priority field:
administrators configure narrow deny rules as overrides of broad allows.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Sequence

from institution_abac.constants import PERIOD_TYPES, InstitutionPhase, PaymentStatus
from institution_abac.pdp.decision import Dimension, DimensionResult, Verdict
from institution_abac.pdp.policy import PaymentStatusRule, PhaseRule
from institution_abac.pdp.window import in_window

if TYPE_CHECKING:
    from institution_abac.pips.periods import PeriodResolver
    from institution_abac.pips.store import RuleStore
    from institution_abac.utils.deadline import Deadline

__all__ = [
    "evaluate_payment_status",
    "evaluate_period",
    "evaluate_phase",
]


def _deny_wins(
    dimension: Dimension,
    rules: Sequence[PhaseRule | PaymentStatusRule],
    label: str,
) -> DimensionResult:
    """Combine already-matched allow/deny rules with deny-wins."""
    if not rules:
        return DimensionResult(
            dimension=dimension,
            verdict=Verdict.NOT_APPLICABLE,
            reason=f"no {dimension} rule for {label}",
        )

    deny_ids = tuple(r.id for r in rules if not r.is_allowed)
    if deny_ids:
        return DimensionResult(
            dimension=dimension,
            verdict=Verdict.DENY,
            rule_ids=deny_ids,
            reason=f"{dimension} rule denies {label}",
        )

    return DimensionResult(
        dimension=dimension,
        verdict=Verdict.ALLOW,
        rule_ids=tuple(r.id for r in rules),
        reason=f"{dimension} rule allows {label}",
    )


def evaluate_phase(
    store: "RuleStore",
    resource: str,
    action: str,
    phase: InstitutionPhase | None,
) -> DimensionResult:
    """Evaluate the institution-phase dimension.

    Args:
        store: Rule store (active rules only).
        resource: Requested resource.
        action: Requested action.
        phase: Institution's current phase, None if unknown.

    Returns:
        DimensionResult for the "phase" dimension.
    """
    if phase is None:
        return DimensionResult(
            dimension="phase",
            verdict=Verdict.NOT_APPLICABLE,
            reason="institution phase not provided",
        )

    rules = [r for r in store.find_phase_rules(resource, action) if r.phase == phase]
    return _deny_wins("phase", rules, f"phase '{phase}'")


def evaluate_payment_status(
    store: "RuleStore",
    resource: str,
    action: str,
    payment_status: PaymentStatus | None,
) -> DimensionResult:
    """Evaluate the payment-status dimension.

    Args:
        store: Rule store (active rules only).
        resource: Requested resource.
        action: Requested action.
        payment_status: Payer's current billing status, None if unknown.

    Returns:
        DimensionResult for the "payment_status" dimension.
    """
    if payment_status is None:
        return DimensionResult(
            dimension="payment_status",
            verdict=Verdict.NOT_APPLICABLE,
            reason="payment status not provided",
        )

    rules = [r for r in store.find_payment_rules(resource, action) if r.payment_status == payment_status]
    return _deny_wins("payment_status", rules, f"payment status '{payment_status}'")


def evaluate_period(
    store: "RuleStore",
    resolver: "PeriodResolver",
    resource: str,
    action: str,
    institution_id: str | None,
    polo_id: str | None,
    now: datetime,
    tz: tzinfo,
    deadline: "Deadline | None" = None,
) -> DimensionResult:
    """Evaluate the period-window dimension across every period type.

    Args:
        store: Rule store (active rules only).
        resolver: Period resolver for the institution/polo scope.
        resource: Requested resource.
        action: Requested action.
        institution_id: Institution scope (None resolves global periods only).
        polo_id: Optional polo scope.
        now: Instant being evaluated.
        tz: Institution timezone for calendar-day arithmetic.
        deadline: Checked after every store and resolver call.

    Returns:
        DimensionResult for the "period" dimension.

    Raises:
        ConfigurationError: If a rule or resolved instance is malformed.
    """
    allowed_ids: list[str] = []
    denied_ids: list[str] = []
    allowed_types: list[str] = []
    denied_types: list[str] = []
    gated = False

    for period_type in PERIOD_TYPES:
        rules = store.find_period_rules(resource, action, period_type)
        if deadline is not None:
            deadline.check(f"loading {period_type} period rules")
        if not rules:
            continue
        gated = True

        resolved = resolver.resolve(period_type, institution_id, polo_id, now, tz)
        if deadline is not None:
            deadline.check(f"resolving {period_type} periods")
        if resolved.is_empty:
            continue

        matching = [r.id for r in rules if any(in_window(r, i, now, tz) for i in resolved.instances())]
        if matching:
            allowed_ids.extend(matching)
            allowed_types.append(period_type)
        else:
            denied_ids.extend(r.id for r in rules)
            denied_types.append(period_type)

    if not gated:
        return DimensionResult(
            dimension="period",
            verdict=Verdict.NOT_APPLICABLE,
            reason="no period rule",
        )

    if denied_types:
        return DimensionResult(
            dimension="period",
            verdict=Verdict.DENY,
            rule_ids=tuple(denied_ids),
            reason=f"outside every {'/'.join(denied_types)} period window",
        )

    if allowed_types:
        return DimensionResult(
            dimension="period",
            verdict=Verdict.ALLOW,
            rule_ids=tuple(allowed_ids),
            reason=f"inside {'/'.join(allowed_types)} period window",
        )

    return DimensionResult(
        dimension="period",
        verdict=Verdict.NOT_APPLICABLE,
        reason="no period instance to evaluate against",
    )
