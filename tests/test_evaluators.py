"""Tests for the phase, period and payment-status evaluators.

Tests cover:
- Deny-wins within the phase and payment-status dimensions
- NOT_APPLICABLE when no rule matches or the attribute is unknown
- Period gating across one and several period types
- Grace windows reaching into the gap between two instances
- Deadline checks between store calls

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from institution_abac.exceptions import EvaluationTimeoutError
from institution_abac.pdp.decision import Verdict
from institution_abac.pdp.evaluators import evaluate_payment_status, evaluate_period, evaluate_phase
from institution_abac.pdp.policy import PaymentStatusRule, PeriodInstance, PeriodRule, PhaseRule, RuleSet
from institution_abac.pips import InMemoryStore, PeriodResolver
from institution_abac.utils.deadline import Deadline

TZ = ZoneInfo("America/Sao_Paulo")


def _phase_rule(id: str, phase: str, is_allowed: bool, **kwargs) -> PhaseRule:
    return PhaseRule(id=id, resource="matricula", action="criar", phase=phase, is_allowed=is_allowed, **kwargs)


def _payment_rule(id: str, status: str, is_allowed: bool) -> PaymentStatusRule:
    return PaymentStatusRule(id=id, resource="aula", action="acessar", payment_status=status, is_allowed=is_allowed)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def period_store() -> InMemoryStore:
    """Enrollment and academic periods, with rules gating matricula:criar by both."""
    return InMemoryStore(
        RuleSet(
            period_rules=[
                PeriodRule(
                    id="pr-enroll",
                    resource="matricula",
                    action="criar",
                    period_type="enrollment",
                    days_before_start=7,
                ),
                PeriodRule(
                    id="pr-academic",
                    resource="matricula",
                    action="criar",
                    period_type="academic",
                ),
            ],
            periods=[
                PeriodInstance(
                    id="enroll-2026.1",
                    period_type="enrollment",
                    institution_id="12",
                    start_date=datetime(2026, 2, 1),
                    end_date=datetime(2026, 2, 28),
                ),
                PeriodInstance(
                    id="academic-2026",
                    period_type="academic",
                    institution_id="12",
                    start_date=datetime(2026, 1, 15),
                    end_date=datetime(2026, 12, 15),
                ),
            ],
        )
    )


def _evaluate_period(store: InMemoryStore, now: datetime, **kwargs):
    return evaluate_period(
        store,
        PeriodResolver(store, ttl_seconds=0),
        "matricula",
        "criar",
        "12",
        None,
        now,
        TZ,
        **kwargs,
    )


# ============================================================================
# Tests: Phase
# ============================================================================


class TestPhaseEvaluator:
    """Tests for the institution-phase dimension."""

    def test_no_matching_rule_is_not_applicable(self):
        """Given rules for another phase only, the verdict is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore(RuleSet(phase_rules=[_phase_rule("p1", "suspended", False)]))

        # Act
        result = evaluate_phase(store, "matricula", "criar", "active")

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE
        assert result.dimension == "phase"

    def test_matching_allow_rule_allows(self):
        """Given a matching allow rule, the verdict is ALLOW."""
        # Arrange
        store = InMemoryStore(RuleSet(phase_rules=[_phase_rule("p1", "active", True)]))

        # Act
        result = evaluate_phase(store, "matricula", "criar", "active")

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert result.rule_ids == ("p1",)

    def test_deny_wins_over_allow(self):
        """Given matching allow and deny rules, the verdict is DENY."""
        # Arrange
        store = InMemoryStore(
            RuleSet(
                phase_rules=[
                    _phase_rule("p-allow", "suspended", True),
                    _phase_rule("p-deny", "suspended", False),
                ]
            )
        )

        # Act
        result = evaluate_phase(store, "matricula", "criar", "suspended")

        # Assert
        assert result.verdict is Verdict.DENY
        assert result.rule_ids == ("p-deny",)

    def test_inactive_rule_is_ignored(self):
        """Given only a deactivated deny rule, the verdict is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore(RuleSet(phase_rules=[_phase_rule("p1", "suspended", False, is_active=False)]))

        # Act
        result = evaluate_phase(store, "matricula", "criar", "suspended")

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE

    def test_unknown_phase_is_not_applicable(self):
        """Given no phase in the context, the verdict is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore(RuleSet(phase_rules=[_phase_rule("p1", "suspended", False)]))

        # Act
        result = evaluate_phase(store, "matricula", "criar", None)

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE

    def test_unknown_resource_matches_nothing(self):
        """Given a resource outside the rule vocabulary, nothing matches."""
        # Arrange
        store = InMemoryStore(RuleSet(phase_rules=[_phase_rule("p1", "suspended", False)]))

        # Act
        result = evaluate_phase(store, "biblioteca", "criar", "suspended")

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE


# ============================================================================
# Tests: Payment status
# ============================================================================


class TestPaymentStatusEvaluator:
    """Tests for the payment-status dimension."""

    def test_overdue_deny_rule_denies(self):
        """Given a deny rule for overdue, an overdue payer is denied."""
        # Arrange
        store = InMemoryStore(RuleSet(payment_rules=[_payment_rule("pay-1", "overdue", False)]))

        # Act
        result = evaluate_payment_status(store, "aula", "acessar", "overdue")

        # Assert
        assert result.verdict is Verdict.DENY
        assert result.dimension == "payment_status"

    def test_paid_allow_rule_allows(self):
        """Given an allow rule for paid, a paid payer is allowed."""
        # Arrange
        store = InMemoryStore(
            RuleSet(
                payment_rules=[
                    _payment_rule("pay-1", "overdue", False),
                    _payment_rule("pay-2", "paid", True),
                ]
            )
        )

        # Act
        result = evaluate_payment_status(store, "aula", "acessar", "paid")

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert result.rule_ids == ("pay-2",)

    def test_unknown_status_is_not_applicable(self):
        """Given no payment status in the context, the verdict is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore(RuleSet(payment_rules=[_payment_rule("pay-1", "overdue", False)]))

        # Act
        result = evaluate_payment_status(store, "aula", "acessar", None)

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE


# ============================================================================
# Tests: Period
# ============================================================================


class TestPeriodEvaluator:
    """Tests for the period-window dimension."""

    def test_no_period_rules_is_not_applicable(self):
        """Given no period rule for the action, the verdict is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore()

        # Act
        result = _evaluate_period(store, datetime(2026, 3, 1, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE
        assert result.reason == "no period rule"

    def test_every_type_in_window_allows(self, period_store: InMemoryStore):
        """Given now inside both the enrollment grace and the academic term, ALLOW."""
        # Act
        result = _evaluate_period(period_store, datetime(2026, 1, 28, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert set(result.rule_ids) == {"pr-enroll", "pr-academic"}

    def test_one_type_outside_window_denies(self, period_store: InMemoryStore):
        """Given now inside the academic term but after enrollment closed, DENY."""
        # Act
        result = _evaluate_period(period_store, datetime(2026, 4, 1, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.DENY
        assert result.rule_ids == ("pr-enroll",)
        assert "enrollment" in result.reason

    def test_type_without_instances_is_skipped(self):
        """Given rules for a type with no resolvable instance, that type is NOT_APPLICABLE."""
        # Arrange
        store = InMemoryStore(
            RuleSet(
                period_rules=[
                    PeriodRule(id="pr-fin", resource="matricula", action="criar", period_type="financial"),
                ]
            )
        )

        # Act
        result = _evaluate_period(store, datetime(2026, 4, 1, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.NOT_APPLICABLE

    def test_any_rule_in_window_allows_its_type(self, period_store: InMemoryStore):
        """Given a second enrollment rule with a longer grace, its window allows the type."""
        # Arrange
        period_store.add_rule(
            PeriodRule(
                id="pr-enroll-late",
                resource="matricula",
                action="criar",
                period_type="enrollment",
                days_after_end=60,
            )
        )

        # Act
        result = _evaluate_period(period_store, datetime(2026, 4, 1, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert "pr-enroll-late" in result.rule_ids

    def test_expired_deadline_raises(self, period_store: InMemoryStore):
        """Given an already expired deadline, the first check raises."""
        # Arrange
        ticks = iter([0.0, 5.0])
        deadline = Deadline(1.0, clock=lambda: next(ticks))

        # Act & Assert
        with pytest.raises(EvaluationTimeoutError, match="financial period rules"):
            _evaluate_period(period_store, datetime(2026, 4, 1, tzinfo=TZ), deadline=deadline)


# ============================================================================
# Tests: Grace windows between two instances
# ============================================================================


@pytest.fixture
def break_store() -> InMemoryStore:
    """Two academic terms with a July break, one rule reaching into it from each side."""
    return InMemoryStore(
        RuleSet(
            period_rules=[
                PeriodRule(
                    id="pr-before-next",
                    resource="matricula",
                    action="criar",
                    period_type="academic",
                    days_before_start=10,
                ),
                PeriodRule(
                    id="pr-after-previous",
                    resource="matricula",
                    action="criar",
                    period_type="academic",
                    days_after_end=5,
                ),
            ],
            periods=[
                PeriodInstance(
                    id="2026.1",
                    period_type="academic",
                    institution_id="12",
                    start_date=datetime(2026, 2, 1),
                    end_date=datetime(2026, 6, 30),
                ),
                PeriodInstance(
                    id="2026.2",
                    period_type="academic",
                    institution_id="12",
                    start_date=datetime(2026, 8, 1),
                    end_date=datetime(2026, 12, 15),
                ),
            ],
        )
    )


class TestGraceWindowsBetweenInstances:
    """Tests for "now" between a previous and a next instance."""

    def test_next_instance_lead_time_allows(self, break_store: InMemoryStore):
        """Given now 7 days before the next term, only its days_before_start window holds now."""
        # Act
        result = _evaluate_period(break_store, datetime(2026, 7, 25, 9, 0, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert result.rule_ids == ("pr-before-next",)

    def test_previous_instance_grace_allows(self, break_store: InMemoryStore):
        """Given now 3 days after the previous term, only its days_after_end window holds now."""
        # Act
        result = _evaluate_period(break_store, datetime(2026, 7, 3, 9, 0, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.ALLOW
        assert result.rule_ids == ("pr-after-previous",)

    def test_gap_between_windows_denies(self, break_store: InMemoryStore):
        """Given now after the previous grace and before the next lead time, DENY."""
        # Act
        result = _evaluate_period(break_store, datetime(2026, 7, 15, 9, 0, tzinfo=TZ))

        # Assert
        assert result.verdict is Verdict.DENY
        assert result.rule_ids == ("pr-before-next", "pr-after-previous")

    @pytest.mark.parametrize(
        ("now", "verdict"),
        [
            (datetime(2026, 7, 5, 0, 0, tzinfo=TZ), Verdict.ALLOW),
            (datetime(2026, 7, 5, 0, 0, 1, tzinfo=TZ), Verdict.DENY),
            (datetime(2026, 7, 22, 0, 0, tzinfo=TZ), Verdict.ALLOW),
            (datetime(2026, 7, 21, 23, 59, 59, tzinfo=TZ), Verdict.DENY),
        ],
    )
    def test_window_edges_are_inclusive(self, break_store: InMemoryStore, now: datetime, verdict: Verdict):
        """Given now exactly on either window edge, it is inside; one second past is outside."""
        # Act
        result = _evaluate_period(break_store, now)

        # Assert
        assert result.verdict is verdict
