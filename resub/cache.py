# =============================================================================
# Resub -- Subscription Cache
# =============================================================================
#
# Two indexes over the same records: by fingerprint (dedup) and by
# server-correlation id (acknowledgments).  No policy lives here.
# =============================================================================

from __future__ import annotations

from typing import Any, Callable, Iterator

from .subscription import Subscription


class SubscriptionCache:
    """Subscription records addressable by fingerprint or by id."""

    def __init__(self) -> None:
        self._by_fingerprint: dict[str, Subscription] = {}
        self._by_id: dict[str, Subscription] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, key: object) -> bool:
        return key in self._by_fingerprint or key in self._by_id

    def __iter__(self) -> Iterator[Subscription]:
        return iter(list(self._by_id.values()))

    def add(self, sub: Subscription) -> None:
        self._by_fingerprint[sub.fingerprint] = sub
        self._by_id[sub.id] = sub

    def get(self, key: str) -> Subscription | None:
        """Look up a record by fingerprint or by id."""
        sub = self._by_fingerprint.get(key)
        if sub is None:
            sub = self._by_id.get(key)
        return sub

    def get_by_fingerprint(self, fingerprint: str) -> Subscription | None:
        return self._by_fingerprint.get(fingerprint)

    def get_by_id(self, id: str) -> Subscription | None:
        return self._by_id.get(id)

    def delete(self, key: str) -> None:
        """Remove the record matching *key* from both indexes. No-op if absent."""
        sub = self.get(key)
        if sub is None:
            return
        # Only drop index entries that still point at this record
        if self._by_fingerprint.get(sub.fingerprint) is sub:
            del self._by_fingerprint[sub.fingerprint]
        if self._by_id.get(sub.id) is sub:
            del self._by_id[sub.id]

    def for_each(self, fn: Callable[[Subscription], Any]) -> None:
        """Call *fn* once per record present now.

        Iterates over a snapshot, so *fn* may mutate records or the cache.
        """
        for sub in list(self._by_id.values()):
            fn(sub)

    def clear(self) -> None:
        self._by_fingerprint.clear()
        self._by_id.clear()
