"""Period resolver - find the period instances relevant to "now".

For a (period type, institution, polo) scope the resolver returns:
- current:  the instance with start <= now <= end;
- otherwise next (closest future start) and previous (closest past end).

Grace windows extend in both directions from different instances: an
action may be allowed because the next term starts in 10 days AND because
the previous term ended 5 days ago, so both are returned together.

Scope precedence: polo-specific instances shadow institution-wide ones,
which shadow global ones. Only the most specific non-empty scope is used.

Instance lists are cached per scope with a TTL; the current/previous/next
selection is recomputed on every call because it depends on ``now``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable

from institution_abac.constants import DEFAULT_PERIOD_CACHE_TTL_SECONDS, PeriodType
from institution_abac.exceptions import ConfigurationError
from institution_abac.pdp.policy import PeriodInstance
from institution_abac.pdp.window import to_utc
from institution_abac.pips.cache import TTLCache
from institution_abac.pips.store import PeriodSource

__all__ = [
    "PeriodResolver",
    "ResolvedPeriods",
]


@dataclass(frozen=True)
class ResolvedPeriods:
    """Period instances relevant to one evaluation.

    Attributes:
        current: Instance open at "now", if any.
        previous: Most recently ended instance (only when none is open).
        next: Soonest upcoming instance (only when none is open).
    """

    current: PeriodInstance | None = None
    previous: PeriodInstance | None = None
    next: PeriodInstance | None = None

    def instances(self) -> tuple[PeriodInstance, ...]:
        """Resolved instances in order: current, previous, next."""
        return tuple(i for i in (self.current, self.previous, self.next) if i is not None)

    @property
    def is_empty(self) -> bool:
        return not self.instances()


class PeriodResolver:
    """Resolve current/previous/next period instances for a scope.

    Args:
        source: Where period instances are read from.
        ttl_seconds: Lifetime of cached instance lists (0 disables caching).
        clock: Monotonic clock for the cache, injectable for tests.
    """

    def __init__(
        self,
        source: PeriodSource,
        ttl_seconds: float = DEFAULT_PERIOD_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._cache = TTLCache(ttl_seconds, clock=clock)

    def resolve(
        self,
        period_type: PeriodType,
        institution_id: str | None,
        polo_id: str | None,
        now: datetime,
        tz: tzinfo,
    ) -> ResolvedPeriods:
        """Resolve the instances of one period type for a scope.

        Only the selected scope is validated: a malformed instance in a
        shadowed scope does not affect this resolution.

        Raises:
            ConfigurationError: If a selected instance ends before it starts.
            StoreUnavailableError: If the period source is unreachable.
        """
        candidates = self._load(period_type, institution_id, polo_id)
        scoped = _most_specific_scope(candidates, institution_id, polo_id)
        if not scoped:
            return ResolvedPeriods()

        for instance in scoped:
            _check_instance(instance, tz)

        utc_now = to_utc(now, tz)

        def start(i: PeriodInstance) -> datetime:
            return to_utc(i.start_date, tz)

        def end(i: PeriodInstance) -> datetime:
            return to_utc(i.end_date, tz)

        open_instances = [i for i in scoped if start(i) <= utc_now <= end(i)]
        if open_instances:
            current = max(open_instances, key=lambda i: (start(i), i.id))
            return ResolvedPeriods(current=current)

        upcoming = [i for i in scoped if start(i) > utc_now]
        ended = [i for i in scoped if end(i) < utc_now]

        next_instance = min(upcoming, key=lambda i: (start(i), i.id), default=None)
        previous_instance = max(ended, key=lambda i: (end(i), i.id), default=None)
        return ResolvedPeriods(previous=previous_instance, next=next_instance)

    def clear_cache(self) -> int:
        """Drop cached instance lists."""
        return self._cache.clear()

    def _load(
        self,
        period_type: PeriodType,
        institution_id: str | None,
        polo_id: str | None,
    ) -> tuple[PeriodInstance, ...]:
        return self._cache.get_or_load(
            (period_type, institution_id, polo_id),
            lambda: tuple(self._source.find_periods(period_type, institution_id, polo_id)),
        )


def _check_instance(instance: PeriodInstance, tz: tzinfo) -> None:
    if to_utc(instance.end_date, tz) < to_utc(instance.start_date, tz):
        raise ConfigurationError(
            f"Period instance {instance.id} ends before it starts "
            f"(start_date={instance.start_date.isoformat()}, end_date={instance.end_date.isoformat()})"
        )


def _most_specific_scope(
    candidates: tuple[PeriodInstance, ...],
    institution_id: str | None,
    polo_id: str | None,
) -> list[PeriodInstance]:
    if institution_id is not None and polo_id is not None:
        polo_level = [i for i in candidates if i.institution_id == institution_id and i.polo_id == polo_id]
        if polo_level:
            return polo_level

    if institution_id is not None:
        institution_level = [i for i in candidates if i.institution_id == institution_id and i.polo_id is None]
        if institution_level:
            return institution_level

    return [i for i in candidates if i.institution_id is None]
