"""Exceptions raised during permission evaluation.

Every failure that prevents the engine from completing an evaluation
derives from AbacError. The engine never turns one of these into an
implicit allow: depending on EngineConfig.error_mode it returns a DENY
decision carrying the error type, or re-raises.
"""

from __future__ import annotations

__all__ = [
    "AbacError",
    "ConfigurationError",
    "EvaluationTimeoutError",
    "PolicyEvaluationError",
    "StoreUnavailableError",
]


class AbacError(Exception):
    """Base class for evaluation failures."""


class ConfigurationError(AbacError):
    """A rule, period instance or rule file is malformed.

    Examples: negative day offsets, a period instance ending before it
    starts, a rule file that fails schema validation.
    """


class StoreUnavailableError(AbacError):
    """The rule store or period data could not be reached."""


class EvaluationTimeoutError(AbacError):
    """Evaluation exceeded its deadline.

    Handled exactly like StoreUnavailableError.
    """


class PolicyEvaluationError(AbacError):
    """Unexpected failure inside evaluation.

    Wraps exceptions that indicate a bug rather than a data or availability
    problem. Always re-raised: a crash must not be reported as a decision.
    """
