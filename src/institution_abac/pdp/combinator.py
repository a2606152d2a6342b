"""Decision combinator - merge the base grant and dimension verdicts.

Precedence (fixed):
1. No base grant for any of the subject's roles → DENY (default deny)
2. Any dimension DENY → DENY
3. Otherwise → ALLOW (NOT_APPLICABLE is non-restrictive)

Contextual dimensions are purely restrictive overlays on the role grant:
they can never grant what the role doesn't have, and any one can veto.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence, assert_never

from institution_abac.pdp.decision import Decision, DimensionResult, DimensionVerdicts, Verdict

__all__ = ["combine"]


def combine(
    granted: bool,
    results: Sequence[DimensionResult],
    evaluated_at: datetime,
    *,
    grant_label: str = "",
) -> Decision:
    """Combine the base grant and dimension results into a Decision.

    Args:
        granted: Whether any of the subject's roles grants (resource, action).
        results: At most one DimensionResult per dimension. Ignored when
            ``granted`` is False.
        evaluated_at: Instant the decision is computed for.
        grant_label: "resource:action" text used in reasons.

    Returns:
        Final Decision.

    Raises:
        ValueError: If a dimension appears more than once.
    """
    if not granted:
        return Decision(
            allowed=False,
            reason=f"no role grants {grant_label}".rstrip(),
            evaluated_at=evaluated_at,
        )

    seen: set[str] = set()
    for result in results:
        if result.dimension in seen:
            raise ValueError(f"Duplicate result for dimension '{result.dimension}'")
        seen.add(result.dimension)

    verdicts = DimensionVerdicts(**{r.dimension: r.verdict for r in results})

    denials: list[DimensionResult] = []
    allows: list[DimensionResult] = []
    for result in results:
        match result.verdict:
            case Verdict.DENY:
                denials.append(result)
            case Verdict.ALLOW:
                allows.append(result)
            case Verdict.NOT_APPLICABLE:
                pass
            case _:
                assert_never(result.verdict)

    if denials:
        return Decision(
            allowed=False,
            reason="; ".join(r.reason for r in denials),
            evaluated_at=evaluated_at,
            verdicts=verdicts,
            matched_rules=[rule_id for r in denials for rule_id in r.rule_ids],
        )

    if allows:
        reason = "role grant; " + "; ".join(r.reason for r in allows)
    else:
        reason = "role grant; no contextual rule applies"

    return Decision(
        allowed=True,
        reason=reason,
        evaluated_at=evaluated_at,
        verdicts=verdicts,
        matched_rules=[rule_id for r in allows for rule_id in r.rule_ids],
    )
