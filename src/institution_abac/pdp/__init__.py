"""Policy Decision Point (PDP) - contextual permission evaluation.

Following the PIP/PDP split:

- pips/: Where rules and period instances are read from
- pdp/ (this module): Turns rules and context into a decision

Structure:
    decision.py    - Verdict enum, DimensionResult, Decision
    policy.py      - Rule models (PermissionGrant, PhaseRule, PeriodRule, ...)
    window.py      - Calendar-day window arithmetic
    evaluators.py  - Phase, period and payment-status evaluators
    combinator.py  - Base grant + verdicts → Decision
    engine.py      - PolicyEngine facade
"""

from institution_abac.pdp.decision import Decision, DimensionResult, DimensionVerdicts, Verdict
from institution_abac.pdp.policy import (
    PaymentStatusRule,
    PeriodInstance,
    PeriodRule,
    PermissionGrant,
    PhaseRule,
    Rule,
    RuleSet,
    create_empty_rule_set,
)

# NOTE: PolicyEngine is not re-exported here; engine.py depends on pips/,
# which depends on the models above. Import it directly:
#   from institution_abac.pdp.engine import PolicyEngine

__all__ = [
    # Decision
    "Decision",
    "DimensionResult",
    "DimensionVerdicts",
    "Verdict",
    # Rule models
    "PaymentStatusRule",
    "PeriodInstance",
    "PeriodRule",
    "PermissionGrant",
    "PhaseRule",
    "Rule",
    "RuleSet",
    "create_empty_rule_set",
]
