"""Tests for the decision combinator.

Tests cover:
- Default deny without a base grant
- Deny-wins over every combination of dimension verdicts
- Reasons, matched rules and verdict summary

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from institution_abac.pdp.combinator import combine
from institution_abac.pdp.decision import DimensionResult, Verdict

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)

ALL_COMBINATIONS = list(itertools.product(Verdict, repeat=3))


def _results(phase: Verdict, period: Verdict, payment: Verdict) -> list[DimensionResult]:
    return [
        DimensionResult(dimension="phase", verdict=phase, rule_ids=("ph",), reason=f"phase {phase.value}"),
        DimensionResult(dimension="period", verdict=period, rule_ids=("pe",), reason=f"period {period.value}"),
        DimensionResult(
            dimension="payment_status",
            verdict=payment,
            rule_ids=("pa",),
            reason=f"payment {payment.value}",
        ),
    ]


# ============================================================================
# Tests: Base grant
# ============================================================================


class TestDefaultDeny:
    """Tests for the no-grant short circuit."""

    @pytest.mark.parametrize("verdicts", ALL_COMBINATIONS)
    def test_no_grant_denies_regardless_of_verdicts(self, verdicts: tuple[Verdict, Verdict, Verdict]):
        """Given no base grant, every verdict combination is denied."""
        # Act
        decision = combine(False, _results(*verdicts), NOW, grant_label="matricula:criar")

        # Assert
        assert decision.allowed is False
        assert decision.reason == "no role grants matricula:criar"

    def test_no_grant_leaves_verdicts_not_applicable(self):
        """Given no base grant, the verdict summary is all NOT_APPLICABLE."""
        # Act
        decision = combine(False, [], NOW)

        # Assert
        assert decision.verdicts.phase is Verdict.NOT_APPLICABLE
        assert decision.verdicts.period is Verdict.NOT_APPLICABLE
        assert decision.verdicts.payment_status is Verdict.NOT_APPLICABLE
        assert decision.evaluated_at == NOW


# ============================================================================
# Tests: Deny-wins
# ============================================================================


class TestDenyWins:
    """Exhaustive tests over the 27 verdict combinations."""

    @pytest.mark.parametrize("verdicts", ALL_COMBINATIONS)
    def test_any_deny_denies_otherwise_allows(self, verdicts: tuple[Verdict, Verdict, Verdict]):
        """Given a base grant, the outcome is DENY iff some dimension denies."""
        # Act
        decision = combine(True, _results(*verdicts), NOW)

        # Assert
        assert decision.allowed is (Verdict.DENY not in verdicts)

    @pytest.mark.parametrize("verdicts", ALL_COMBINATIONS)
    def test_verdicts_are_reported(self, verdicts: tuple[Verdict, Verdict, Verdict]):
        """Given any combination, the decision records each dimension's verdict."""
        # Act
        decision = combine(True, _results(*verdicts), NOW)

        # Assert
        assert (
            decision.verdicts.phase,
            decision.verdicts.period,
            decision.verdicts.payment_status,
        ) == verdicts


# ============================================================================
# Tests: Explanations
# ============================================================================


class TestExplanation:
    """Tests for reasons and matched rules."""

    def test_all_not_applicable_allows_on_grant_alone(self):
        """Given no restricting dimension, the reason names the role grant."""
        # Act
        decision = combine(True, _results(*[Verdict.NOT_APPLICABLE] * 3), NOW)

        # Assert
        assert decision.allowed is True
        assert decision.reason == "role grant; no contextual rule applies"
        assert decision.matched_rules == []

    def test_denial_reports_only_denying_dimensions(self):
        """Given one deny and one allow, only the deny is explained."""
        # Act
        decision = combine(True, _results(Verdict.ALLOW, Verdict.NOT_APPLICABLE, Verdict.DENY), NOW)

        # Assert
        assert decision.allowed is False
        assert decision.reason == "payment deny"
        assert decision.matched_rules == ["pa"]

    def test_allow_lists_allowing_rules(self):
        """Given allowing dimensions, their rules are the matched rules."""
        # Act
        decision = combine(True, _results(Verdict.ALLOW, Verdict.ALLOW, Verdict.NOT_APPLICABLE), NOW)

        # Assert
        assert decision.allowed is True
        assert decision.reason == "role grant; phase allow; period allow"
        assert decision.matched_rules == ["ph", "pe"]

    def test_missing_dimensions_default_to_not_applicable(self):
        """Given only a phase result, the other dimensions are NOT_APPLICABLE."""
        # Arrange
        results = [DimensionResult(dimension="phase", verdict=Verdict.ALLOW, reason="phase ok")]

        # Act
        decision = combine(True, results, NOW)

        # Assert
        assert decision.allowed is True
        assert decision.verdicts.period is Verdict.NOT_APPLICABLE

    def test_duplicate_dimension_raises(self):
        """Given two results for one dimension, combine refuses."""
        # Arrange
        results = [
            DimensionResult(dimension="phase", verdict=Verdict.ALLOW),
            DimensionResult(dimension="phase", verdict=Verdict.DENY),
        ]

        # Act & Assert
        with pytest.raises(ValueError, match="Duplicate result"):
            combine(True, results, NOW)
