"""Store usage tracking for spreading purchases across stores.

A store usage map is a plain ``dict[str, int]`` created once per matching
pass and passed by reference into every match. Counts only go up.
"""

from collections.abc import Iterable

StoreUsage = dict[str, int]


def new_store_usage(stores: Iterable[str]) -> StoreUsage:
    """Start a matching pass with every known store at zero."""
    return {store: 0 for store in stores if store}


def distribution_score(usage: StoreUsage, store: str) -> float:
    """1 / (uses + 1): the less a store is used, the higher the score."""
    return 1.0 / (usage.get(store, 0) + 1)


def record_usage(usage: StoreUsage, store: str) -> int:
    """Count one more item bought at a store and return its new count."""
    usage[store] = usage.get(store, 0) + 1
    return usage[store]


def least_used_store(usage: StoreUsage) -> str | None:
    """The store with the fewest items so far (first one on ties)."""
    if not usage:
        return None
    return min(usage, key=lambda store: usage[store])
