"""Rule models for contextual permission evaluation.

This module defines the rule schema read by the policy engine.

Rule set structure:
    RuleSet
    ├── version: Schema version for migrations
    ├── grants: List[PermissionGrant]          (role → resource → action)
    ├── phase_rules: List[PhaseRule]            (institution phase)
    ├── period_rules: List[PeriodRule]          (windows around periods)
    ├── payment_rules: List[PaymentStatusRule]  (payer billing status)
    └── periods: List[PeriodInstance]           (dated period instances)

Design principles:
1. Grants are an allow list; absence of a grant means deny
2. Contextual rules only restrict what a grant allows
3. Rules are never edited in place: add new ones, deactivate old ones
4. Rules form a closed tagged union discriminated by ``kind``
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from institution_abac.constants import (
    RULE_SET_VERSION,
    InstitutionPhase,
    PaymentStatus,
    PeriodType,
)

__all__ = [
    "PaymentStatusRule",
    "PeriodInstance",
    "PeriodRule",
    "PermissionGrant",
    "PhaseRule",
    "Rule",
    "RuleSet",
    "create_empty_rule_set",
]


class PermissionGrant(BaseModel):
    """Base role grant.

    Attributes:
        role: Role name (e.g., "secretaria", "aluno").
        resource: Resource name (e.g., "matricula").
        action: Action name (e.g., "criar").
    """

    role: str
    resource: str
    action: str

    model_config = ConfigDict(frozen=True)


class PhaseRule(BaseModel):
    """Allow or deny an action while the institution is in a given phase.

    Attributes:
        id: Immutable rule identifier.
        resource: Resource the rule applies to.
        action: Action the rule applies to.
        phase: Institution phase the rule applies in.
        is_allowed: False makes this a deny rule.
        is_active: Deactivated rules are never matched.
        description: Human-readable description.
    """

    kind: Literal["phase"] = "phase"
    id: str
    resource: str
    action: str
    phase: InstitutionPhase
    is_allowed: bool
    is_active: bool = True
    description: str = ""

    model_config = ConfigDict(frozen=True)


class PeriodRule(BaseModel):
    """Permit an action inside a window around a period instance.

    The window runs from ``days_before_start`` calendar days before the
    instance start through ``days_after_end`` calendar days after its end.
    Both offsets 0 means "only inside the period". There is no deny flag:
    an in-window match is a grant, being outside every window is a denial.
    """

    kind: Literal["period"] = "period"
    id: str
    resource: str
    action: str
    period_type: PeriodType
    days_before_start: int = Field(default=0, ge=0)
    days_after_end: int = Field(default=0, ge=0)
    is_active: bool = True
    description: str = ""

    model_config = ConfigDict(frozen=True)


class PaymentStatusRule(BaseModel):
    """Allow or deny an action based on the payer's billing status."""

    kind: Literal["payment_status"] = "payment_status"
    id: str
    resource: str
    action: str
    payment_status: PaymentStatus
    is_allowed: bool
    is_active: bool = True
    description: str = ""

    model_config = ConfigDict(frozen=True)


Rule = Annotated[
    Union[PhaseRule, PeriodRule, PaymentStatusRule],
    Field(discriminator="kind"),
]


class PeriodInstance(BaseModel):
    """A concrete dated period (one academic term, one financial cycle...).

    ``end_date >= start_date`` is checked by the period resolver rather
    than here, so a malformed row read from a store surfaces as a
    ConfigurationError during evaluation instead of a load-time crash.

    Attributes:
        id: Instance identifier.
        name: Display name (e.g., "2026.1").
        period_type: Which kind of period this is.
        institution_id: Owning institution, None for a global period.
        polo_id: Owning polo, None for an institution-wide period.
        start_date: Start instant (naive values are institution-local).
        end_date: End instant (naive values are institution-local).
        is_active: Inactive instances are never resolved.
    """

    id: str
    name: str = ""
    period_type: PeriodType
    institution_id: str | None = None
    polo_id: str | None = None
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class RuleSet(BaseModel):
    """Complete rule document as stored in rules.json."""

    version: str = RULE_SET_VERSION
    grants: list[PermissionGrant] = Field(default_factory=list)
    phase_rules: list[PhaseRule] = Field(default_factory=list)
    period_rules: list[PeriodRule] = Field(default_factory=list)
    payment_rules: list[PaymentStatusRule] = Field(default_factory=list)
    periods: list[PeriodInstance] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def all_rules(self) -> list[PhaseRule | PeriodRule | PaymentStatusRule]:
        """Return every contextual rule, phase rules first."""
        return [*self.phase_rules, *self.period_rules, *self.payment_rules]


def create_empty_rule_set() -> RuleSet:
    """Create a rule set with no grants and no rules.

    With no grants every evaluation is denied (default deny).
    """
    return RuleSet(version=RULE_SET_VERSION)
