"""
application.services.candidate_cache - Short-lived pools of menu candidates.

Keyed by (meal type, preference signature). Repeated generations for the
same filter profile reuse one sampled pool instead of re-querying the
catalog each time. Expiry is checked lazily on read; there is no sweeper.

One instance per process, built by ServiceFactory and injected into
SuggestionService. Tests construct their own with a fake clock.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from domain.models import MealType, MenuFilter, MenuItem

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE = "default"
DEFAULT_TTL_SECONDS = 300.0


def preference_signature(menu_filter: Optional[MenuFilter]) -> str:
    """Canonical, order-independent cache key fragment for a filter.

    Cuisines and allergens are de-duplicated and sorted, so
    ["Thai", "Japanese"] and ["Japanese", "Thai"] give the same key.
    No filter (or one with no criteria) maps to DEFAULT_SIGNATURE.
    """
    if menu_filter is None or menu_filter.is_unrestricted:
        return DEFAULT_SIGNATURE
    return json.dumps(
        {
            "cuisines": sorted(set(menu_filter.cuisines)),
            "allergens": sorted(set(menu_filter.allergens_avoid)),
            "budget_min": _bound(menu_filter.budget_min),
            "budget_max": _bound(menu_filter.budget_max),
        },
        sort_keys=True,
        separators=(",", ":"),
    )



def _bound(value: Optional[float]) -> Optional[float]:
    return None if value is None else float(value)

@dataclass(frozen=True)
class CacheEntry:
    """Pool and expiry stored together so they are replaced atomically."""
    candidates: tuple[MenuItem, ...]
    expires_at: float


class CandidateCache:
    """In-memory TTL cache of candidate pools, safe across threads."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[MealType, str], CacheEntry] = {}
        self._epochs: dict[MealType, int] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def epoch(self, meal_type: MealType) -> int:
        """Invalidation counter for a slot; pass it back to put()."""
        with self._lock:
            return self._epochs.get(meal_type, 0)

    def get(self, meal_type: MealType, signature: str) -> Optional[list[MenuItem]]:
        """Return a copy of the pool, or None if absent or expired."""
        key = (meal_type, signature)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug("Evicted expired pool for %s/%s", meal_type.value, signature)
                return None
            return list(entry.candidates)

    def put(
        self,
        meal_type: MealType,
        signature: str,
        candidates: list[MenuItem],
        ttl: Optional[float] = None,
        epoch: Optional[int] = None,
    ) -> bool:
        """Store (or overwrite) the pool for a key with a fresh expiry.

        When ``epoch`` is given and the slot has been invalidated since it
        was read, the pool is stale and is not stored. Returns whether the
        pool was stored.
        """
        ttl = self._ttl if ttl is None else ttl
        entry = CacheEntry(candidates=tuple(candidates), expires_at=self._clock() + ttl)
        with self._lock:
            if epoch is not None and self._epochs.get(meal_type, 0) != epoch:
                logger.debug("Discarded stale pool for %s/%s", meal_type.value, signature)
                return False
            self._entries[(meal_type, signature)] = entry
            return True

    def invalidate(self, meal_type: Optional[MealType] = None) -> int:
        """Drop all pools for one slot (or every slot). Returns the count."""
        with self._lock:
            slots = list(MealType) if meal_type is None else [meal_type]
            for slot in slots:
                self._epochs[slot] = self._epochs.get(slot, 0) + 1
            if meal_type is None:
                dropped = len(self._entries)
                self._entries.clear()
                return dropped
            keys = [k for k in self._entries if k[0] == meal_type]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        self.invalidate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
