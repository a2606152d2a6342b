"""Window evaluator: does "now" fall inside a period rule's window?

Offsets are applied as civil-date arithmetic in the institution's timezone.
Shifting 2026-03-10 14:00 local back by 7 days gives 2026-03-03 14:00 local
even when a DST transition lies in between; a 7 * 24h subtraction would
drift by an hour.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

from institution_abac.exceptions import ConfigurationError
from institution_abac.pdp.policy import PeriodInstance, PeriodRule

__all__ = [
    "in_window",
    "shift_civil_days",
    "to_local",
    "to_utc",
    "window_bounds",
]


def to_local(value: datetime, tz: tzinfo) -> datetime:
    """Express an instant in the given timezone.

    Naive datetimes are taken to already be wall-clock times in ``tz``.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def to_utc(value: datetime, tz: tzinfo) -> datetime:
    """Express an instant in UTC, reading naive values as local to ``tz``.

    Instants are ordered in UTC: datetimes sharing one tzinfo compare by
    wall time and ignore ``fold``, so the repeated hour of a DST fall-back
    would sort wrong.
    """
    return to_local(value, tz).astimezone(timezone.utc)


def shift_civil_days(value: datetime, days: int, tz: tzinfo) -> datetime:
    """Move an instant by whole calendar days, keeping its local wall time.

    Args:
        value: Instant to shift (naive values are local to ``tz``).
        days: Calendar days to add (negative to go back).
        tz: Timezone defining the calendar.

    Returns:
        Aware datetime in ``tz``.
    """
    local = to_local(value, tz)
    wall = local.replace(tzinfo=None) + timedelta(days=days)
    return wall.replace(tzinfo=tz)


def window_bounds(rule: PeriodRule, instance: PeriodInstance, tz: tzinfo) -> tuple[datetime, datetime]:
    """Compute the permitted window of a rule around an instance.

    Raises:
        ConfigurationError: If an offset is negative.
    """
    if rule.days_before_start < 0 or rule.days_after_end < 0:
        raise ConfigurationError(
            f"Period rule {rule.id} has negative day offsets "
            f"(days_before_start={rule.days_before_start}, days_after_end={rule.days_after_end})"
        )

    lower = shift_civil_days(instance.start_date, -rule.days_before_start, tz)
    upper = shift_civil_days(instance.end_date, rule.days_after_end, tz)
    return lower, upper


def in_window(rule: PeriodRule, instance: PeriodInstance, now: datetime, tz: tzinfo) -> bool:
    """Check whether ``now`` lies inside the rule's window (bounds inclusive).

    Pure and side-effect free.
    """
    lower, upper = window_bounds(rule, instance, tz)
    return to_utc(lower, tz) <= to_utc(now, tz) <= to_utc(upper, tz)
