"""
application.services.suggestions - Daily meal suggestions.

Picks one menu item per meal slot for a user's "today", respecting their
preferences, and persists the result as a DailySuggestion:

    1. Compute today's date in the user's timezone
    2. Load preferences (absent = no restriction, no excluded slots)
    3. Pick breakfast, lunch, dinner in order, excluding items already
       chosen in this pass
    4. Upsert the (user_id, date) record and return it resolved

Picks go through a CandidateCache keyed by (slot, preference signature),
then fall back through progressively looser catalog queries so a slot is
only left empty when the catalog has no active item for it at all.

All dependencies are injected via constructor.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Iterable, Optional

from domain.models import DailySuggestion, MealType, MenuFilter, MenuItem, Preference
from domain.ports import DailySuggestionStore, MenuCatalog, PreferenceStore
from application.dates import today_in_timezone
from application.services.candidate_cache import CandidateCache, preference_signature

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 10


class SuggestionService:
    """Generates, reads and rerolls daily suggestions.

    Stateless per call apart from the shared candidate cache.
    """

    def __init__(
        self,
        menu_catalog: MenuCatalog,
        preference_store: PreferenceStore,
        suggestion_store: DailySuggestionStore,
        cache: CandidateCache,
        rng: Optional[random.Random] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        cache_ttl: Optional[float] = None,
        today: Callable[[str], str] = today_in_timezone,
    ):
        self._catalog = menu_catalog
        self._preferences = preference_store
        self._store = suggestion_store
        self._cache = cache
        self._rng = rng or random.Random()
        self._sample_size = sample_size
        self._cache_ttl = cache_ttl
        self._today = today

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_today(self, user_id: int, timezone: str) -> DailySuggestion:
        """Pick all three slots and overwrite today's record.

        Picks run sequentially so each one can exclude the items chosen for
        the earlier slots. Excluded slots are written as empty.
        """
        date = self._today(timezone)
        preference = await self._preferences.find_by_user(user_id)
        menu_filter = MenuFilter.from_preference(preference)

        used: set[int] = set()
        selections: dict[MealType, Optional[int]] = {}
        for meal_type in MealType:
            if _is_excluded(preference, meal_type):
                selections[meal_type] = None
                continue
            item = await self.pick(meal_type, menu_filter, exclude=used)
            selections[meal_type] = item.id if item is not None else None
            if item is not None:
                used.add(item.id)

        suggestion = await self._store.upsert(user_id, date, selections)
        logger.info(
            "Generated suggestions for user %d on %s: %s",
            user_id, date, {m.value: i for m, i in selections.items()},
        )
        return suggestion

    async def get_today(self, user_id: int, timezone: str) -> Optional[DailySuggestion]:
        """Return today's record, or None if nothing was generated yet."""
        date = self._today(timezone)
        return await self._store.find_one(user_id, date)

    async def reroll(
        self,
        user_id: int,
        timezone: str,
        meal_type: MealType,
    ) -> DailySuggestion:
        """Re-pick a single slot, leaving the other two untouched.

        The other slots' current items are not excluded. If there is no
        record for today yet, a full generation runs instead.
        """
        date = self._today(timezone)
        existing = await self._store.find_one(user_id, date)
        if existing is None:
            logger.info(
                "No suggestions for user %d on %s; generating instead of reroll",
                user_id, date,
            )
            return await self.generate_today(user_id, timezone)

        preference = await self._preferences.find_by_user(user_id)
        if _is_excluded(preference, meal_type):
            item = None
        else:
            item = await self.pick(meal_type, MenuFilter.from_preference(preference))

        new_id = item.id if item is not None else None
        suggestion = await self._store.upsert(user_id, date, {meal_type: new_id})
        logger.info(
            "Rerolled %s for user %d on %s: %s -> %s",
            meal_type.value, user_id, date,
            existing.slot_ids()[meal_type], new_id,
        )
        return suggestion

    # ------------------------------------------------------------------
    # Pick algorithm
    # ------------------------------------------------------------------

    async def pick(
        self,
        meal_type: MealType,
        menu_filter: MenuFilter,
        exclude: Iterable[int] = (),
    ) -> Optional[MenuItem]:
        """Choose one item for a slot.

        Order: cached/sampled pool minus `exclude` (uniform random), then
        one random eligible item, then one random item of the slot ignoring
        preferences, then the newest active item of the slot. None only when
        the slot has no active item at all.
        """
        excluded = set(exclude)
        candidates = [
            c for c in await self._candidates(meal_type, menu_filter)
            if c.id not in excluded
        ]
        if candidates:
            return self._rng.choice(candidates)

        signature = preference_signature(menu_filter)
        item = await self._catalog.pick_one_eligible(meal_type, menu_filter)
        if item is not None:
            logger.debug("Pool empty for %s/%s; used eligible fallback", meal_type.value, signature)
            return item

        item = await self._catalog.pick_one_by_meal_type(meal_type)
        if item is not None:
            logger.debug("No eligible %s for %s; ignoring preferences", meal_type.value, signature)
            return item

        item = await self._catalog.most_recent_active(meal_type)
        if item is None:
            logger.debug("No active %s items in the catalog", meal_type.value)
        return item

    async def _candidates(self, meal_type: MealType, menu_filter: MenuFilter) -> list[MenuItem]:
        signature = preference_signature(menu_filter)
        cached = self._cache.get(meal_type, signature)
        if cached is not None:
            logger.debug("Candidate cache hit for %s/%s", meal_type.value, signature)
            return cached

        logger.debug("Candidate cache miss for %s/%s", meal_type.value, signature)
        epoch = self._cache.epoch(meal_type)
        sample = await self._catalog.sample_eligible(meal_type, menu_filter, self._sample_size)
        self._cache.put(meal_type, signature, sample, ttl=self._cache_ttl, epoch=epoch)
        return sample


def _is_excluded(preference: Optional[Preference], meal_type: MealType) -> bool:
    return preference is not None and preference.excludes(meal_type)
