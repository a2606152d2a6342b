"""Rule store and period source - read access to rules and period data.

The engine depends only on the RuleStore and PeriodSource protocols. Every
lookup returns active records only; a deactivated rule never leaves the
store. Implementations raise StoreUnavailableError when their backing data
cannot be reached.

Two implementations are provided:
- InMemoryStore: data held in memory, plus the append-only administrative
  operations (add, deactivate) used by rule-management tooling.
- FileStore: reads rules.json on every lookup; wrap it in CachingRuleStore
  to avoid a file read per dimension per request.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from institution_abac.constants import PeriodType
from institution_abac.exceptions import ConfigurationError, StoreUnavailableError
from institution_abac.pdp.policy import (
    PaymentStatusRule,
    PeriodInstance,
    PeriodRule,
    PermissionGrant,
    PhaseRule,
    Rule,
    RuleSet,
)
from institution_abac.utils.rules import load_rule_set

__all__ = [
    "FileStore",
    "InMemoryStore",
    "PeriodSource",
    "RuleStore",
]


@runtime_checkable
class RuleStore(Protocol):
    """Read-only access to grants and active contextual rules."""

    def find_phase_rules(self, resource: str, action: str) -> list[PhaseRule]: ...

    def find_period_rules(self, resource: str, action: str, period_type: PeriodType) -> list[PeriodRule]: ...

    def find_payment_rules(self, resource: str, action: str) -> list[PaymentStatusRule]: ...

    def find_grant(self, role: str, resource: str, action: str) -> bool: ...


@runtime_checkable
class PeriodSource(Protocol):
    """Read-only access to period instances."""

    def find_periods(
        self,
        period_type: PeriodType,
        institution_id: str | None,
        polo_id: str | None,
    ) -> list[PeriodInstance]:
        """Return active instances of a type visible to the given scope.

        Visible means global (no institution), institution-wide for
        ``institution_id``, or specific to ``polo_id`` of that institution.
        """
        ...


# =============================================================================
# Lookup functions over a RuleSet (shared by both stores)
# =============================================================================


def _phase_rules(rule_set: RuleSet, resource: str, action: str) -> list[PhaseRule]:
    return [r for r in rule_set.phase_rules if r.is_active and r.resource == resource and r.action == action]


def _period_rules(rule_set: RuleSet, resource: str, action: str, period_type: PeriodType) -> list[PeriodRule]:
    return [
        r
        for r in rule_set.period_rules
        if r.is_active and r.resource == resource and r.action == action and r.period_type == period_type
    ]


def _payment_rules(rule_set: RuleSet, resource: str, action: str) -> list[PaymentStatusRule]:
    return [r for r in rule_set.payment_rules if r.is_active and r.resource == resource and r.action == action]


def _has_grant(rule_set: RuleSet, role: str, resource: str, action: str) -> bool:
    return any(g.role == role and g.resource == resource and g.action == action for g in rule_set.grants)


def _in_scope(instance: PeriodInstance, institution_id: str | None, polo_id: str | None) -> bool:
    if instance.institution_id is None:
        # Global periods carry no polo
        return instance.polo_id is None
    if instance.institution_id != institution_id:
        return False
    return instance.polo_id is None or instance.polo_id == polo_id


def _periods(
    rule_set: RuleSet,
    period_type: PeriodType,
    institution_id: str | None,
    polo_id: str | None,
) -> list[PeriodInstance]:
    return [
        p
        for p in rule_set.periods
        if p.is_active and p.period_type == period_type and _in_scope(p, institution_id, polo_id)
    ]


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryStore:
    """Rule store and period source backed by an in-memory RuleSet.

    Reads take a snapshot reference of the current RuleSet, which is never
    mutated; administrative operations build a new RuleSet and swap it in
    under a lock, so concurrent readers always see a consistent snapshot.
    """

    def __init__(self, rule_set: RuleSet | None = None) -> None:
        self._rule_set = rule_set or RuleSet()
        self._lock = threading.Lock()

    @property
    def rule_set(self) -> RuleSet:
        """Current snapshot (including deactivated rules)."""
        return self._rule_set

    # --- RuleStore ---

    def find_phase_rules(self, resource: str, action: str) -> list[PhaseRule]:
        return _phase_rules(self._rule_set, resource, action)

    def find_period_rules(self, resource: str, action: str, period_type: PeriodType) -> list[PeriodRule]:
        return _period_rules(self._rule_set, resource, action, period_type)

    def find_payment_rules(self, resource: str, action: str) -> list[PaymentStatusRule]:
        return _payment_rules(self._rule_set, resource, action)

    def find_grant(self, role: str, resource: str, action: str) -> bool:
        return _has_grant(self._rule_set, role, resource, action)

    # --- PeriodSource ---

    def find_periods(
        self,
        period_type: PeriodType,
        institution_id: str | None,
        polo_id: str | None,
    ) -> list[PeriodInstance]:
        return _periods(self._rule_set, period_type, institution_id, polo_id)

    # --- Administration (append-only) ---

    def add_grant(self, grant: PermissionGrant) -> None:
        """Add a base grant (no-op if it already exists)."""
        with self._lock:
            if grant in self._rule_set.grants:
                return
            self._rule_set = self._rule_set.model_copy(update={"grants": [*self._rule_set.grants, grant]})

    def add_rule(self, rule: Rule) -> None:
        """Append a contextual rule.

        Raises:
            ConfigurationError: If a rule with the same id already exists.
        """
        with self._lock:
            if any(r.id == rule.id for r in self._rule_set.all_rules()):
                raise ConfigurationError(f"Rule id {rule.id!r} already exists; rule ids are immutable")
            field = _collection_for(rule)
            current = getattr(self._rule_set, field)
            self._rule_set = self._rule_set.model_copy(update={field: [*current, rule]})

    def add_period(self, instance: PeriodInstance) -> None:
        """Append a period instance.

        Raises:
            ConfigurationError: If an instance with the same id already exists.
        """
        with self._lock:
            if any(p.id == instance.id for p in self._rule_set.periods):
                raise ConfigurationError(f"Period id {instance.id!r} already exists")
            self._rule_set = self._rule_set.model_copy(update={"periods": [*self._rule_set.periods, instance]})

    def deactivate_rule(self, rule_id: str) -> Rule:
        """Soft-delete a rule, keeping it for audit history.

        Returns:
            The deactivated rule.

        Raises:
            KeyError: If no rule has this id.
        """
        with self._lock:
            for rule in self._rule_set.all_rules():
                if rule.id != rule_id:
                    continue
                field = _collection_for(rule)
                deactivated = rule.model_copy(update={"is_active": False})
                updated = [deactivated if r.id == rule_id else r for r in getattr(self._rule_set, field)]
                self._rule_set = self._rule_set.model_copy(update={field: updated})
                return deactivated
        raise KeyError(rule_id)


def _collection_for(rule: Rule) -> str:
    """Map a rule variant to its RuleSet collection name."""
    match rule:
        case PhaseRule():
            return "phase_rules"
        case PeriodRule():
            return "period_rules"
        case PaymentStatusRule():
            return "payment_rules"
    raise TypeError(f"Unknown rule type: {type(rule).__name__}")


# =============================================================================
# File store
# =============================================================================


class FileStore:
    """Rule store and period source reading rules.json on every lookup.

    Errors:
        StoreUnavailableError: The file is missing or unreadable.
        ConfigurationError: The file is not a valid rule set.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> RuleSet:
        try:
            return load_rule_set(self._path)
        except OSError as e:
            raise StoreUnavailableError(f"Rule file {self._path} is unavailable: {e}") from e

    def find_phase_rules(self, resource: str, action: str) -> list[PhaseRule]:
        return _phase_rules(self._load(), resource, action)

    def find_period_rules(self, resource: str, action: str, period_type: PeriodType) -> list[PeriodRule]:
        return _period_rules(self._load(), resource, action, period_type)

    def find_payment_rules(self, resource: str, action: str) -> list[PaymentStatusRule]:
        return _payment_rules(self._load(), resource, action)

    def find_grant(self, role: str, resource: str, action: str) -> bool:
        return _has_grant(self._load(), role, resource, action)

    def find_periods(
        self,
        period_type: PeriodType,
        institution_id: str | None,
        polo_id: str | None,
    ) -> list[PeriodInstance]:
        return _periods(self._load(), period_type, institution_id, polo_id)
