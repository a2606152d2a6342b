"""TTL cache in front of a rule store.

Rules change rarely and only through administrator action, so lookups are
served from a short-lived per-process cache instead of hitting the store
once per dimension per request. Invalidation is time-based only.

Thread-safety: a threading.Lock protects cache reads and writes. The store
call itself runs outside the lock so a slow store never serializes
unrelated lookups. Errors are never cached.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from institution_abac.constants import DEFAULT_RULE_CACHE_TTL_SECONDS, PeriodType
from institution_abac.pdp.policy import PaymentStatusRule, PeriodRule, PhaseRule
from institution_abac.pips.store import RuleStore

__all__ = [
    "CachingRuleStore",
    "TTLCache",
]


@dataclass
class _CacheEntry:
    """Cached value with expiration tracking."""

    value: Any
    cached_at: float  # monotonic timestamp

    def is_expired(self, ttl: float, now: float) -> bool:
        return now - self.cached_at >= ttl


class TTLCache:
    """Minimal thread-safe TTL cache keyed by hashable tuples.

    Args:
        ttl_seconds: Entry lifetime. 0 disables caching.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value for key, calling loader on miss or expiry."""
        if self._ttl <= 0:
            return loader()

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not entry.is_expired(self._ttl, self._clock()):
                return entry.value

        value = loader()

        with self._lock:
            self._entries[key] = _CacheEntry(value=value, cached_at=self._clock())
        return value

    def clear(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachingRuleStore:
    """RuleStore wrapper serving lookups from a TTL cache.

    Rule lists are cached as tuples and handed out as fresh lists, so
    callers cannot mutate cached state.
    """

    def __init__(
        self,
        inner: RuleStore,
        ttl_seconds: float = DEFAULT_RULE_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._cache = TTLCache(ttl_seconds, clock=clock)

    @property
    def inner(self) -> RuleStore:
        return self._inner

    def find_phase_rules(self, resource: str, action: str) -> list[PhaseRule]:
        rules = self._cache.get_or_load(
            ("phase", resource, action),
            lambda: tuple(self._inner.find_phase_rules(resource, action)),
        )
        return list(rules)

    def find_period_rules(self, resource: str, action: str, period_type: PeriodType) -> list[PeriodRule]:
        rules = self._cache.get_or_load(
            ("period", resource, action, period_type),
            lambda: tuple(self._inner.find_period_rules(resource, action, period_type)),
        )
        return list(rules)

    def find_payment_rules(self, resource: str, action: str) -> list[PaymentStatusRule]:
        rules = self._cache.get_or_load(
            ("payment_status", resource, action),
            lambda: tuple(self._inner.find_payment_rules(resource, action)),
        )
        return list(rules)

    def find_grant(self, role: str, resource: str, action: str) -> bool:
        return self._cache.get_or_load(
            ("grant", role, resource, action),
            lambda: self._inner.find_grant(role, resource, action),
        )

    def clear(self) -> int:
        """Drop all cached lookups (operator escape hatch after rule edits)."""
        return self._cache.clear()
