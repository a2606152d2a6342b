"""Policy Information Points (PIPs) - where the engine reads its data.

- store.py:   RuleStore / PeriodSource protocols, in-memory and file stores
- cache.py:   TTL cache wrapper for rule lookups
- periods.py: PeriodResolver (current / previous / next instances)
"""

from institution_abac.pips.cache import CachingRuleStore, TTLCache
from institution_abac.pips.periods import PeriodResolver, ResolvedPeriods
from institution_abac.pips.store import FileStore, InMemoryStore, PeriodSource, RuleStore

__all__ = [
    "CachingRuleStore",
    "FileStore",
    "InMemoryStore",
    "PeriodResolver",
    "PeriodSource",
    "ResolvedPeriods",
    "RuleStore",
    "TTLCache",
]
