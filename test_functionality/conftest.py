"""
Shared fixtures and in-memory fakes for the suggestion core.

The fakes implement the MenuCatalog / PreferenceStore / DailySuggestionStore
ports with plain lists and dicts, and count catalog calls so cache tests
can assert on them.
"""

import os
import random
import sys
from collections import Counter
from typing import Mapping, Optional

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from application.services.candidate_cache import CandidateCache
from application.services.suggestions import SuggestionService
from domain.models import DailySuggestion, MealType, MenuFilter, MenuItem, Preference

TODAY = "2026-03-15"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _eligible(menu_filter: MenuFilter, item: MenuItem) -> bool:
    """In-memory mirror of the catalog's SQL eligibility filter (slot and
    is_active are scoped by the caller)."""
    if menu_filter.cuisines and item.cuisine not in menu_filter.cuisines:
        return False
    if set(item.allergens) & set(menu_filter.allergens_avoid):
        return False
    if menu_filter.budget_min is not None and item.budget_max is not None:
        if item.budget_max < menu_filter.budget_min:
            return False
    if menu_filter.budget_max is not None and item.budget_min is not None:
        if item.budget_min > menu_filter.budget_max:
            return False
    return True


class FakeMenuCatalog:
    def __init__(self, items=(), rng: Optional[random.Random] = None):
        self.items: list[MenuItem] = list(items)
        self.calls = Counter()
        self._rng = rng or random.Random(7)

    def add(self, item: MenuItem) -> MenuItem:
        self.items.append(item)
        return item

    def _active(self, meal_type: MealType) -> list[MenuItem]:
        return [i for i in self.items if i.is_active and i.meal_type == meal_type]

    async def sample_eligible(self, meal_type, menu_filter: MenuFilter, count: int):
        self.calls["sample_eligible"] += 1
        eligible = [i for i in self._active(meal_type) if _eligible(menu_filter, i)]
        return self._rng.sample(eligible, min(count, len(eligible)))

    async def pick_one_eligible(self, meal_type, menu_filter: MenuFilter):
        self.calls["pick_one_eligible"] += 1
        eligible = [i for i in self._active(meal_type) if _eligible(menu_filter, i)]
        return self._rng.choice(eligible) if eligible else None

    async def pick_one_by_meal_type(self, meal_type):
        self.calls["pick_one_by_meal_type"] += 1
        active = self._active(meal_type)
        return self._rng.choice(active) if active else None

    async def most_recent_active(self, meal_type):
        self.calls["most_recent_active"] += 1
        active = self._active(meal_type)
        if not active:
            return None
        return max(active, key=lambda i: (i.created_at, i.id))


class FakePreferenceStore:
    def __init__(self):
        self.preferences: dict[int, Preference] = {}

    async def find_by_user(self, user_id: int) -> Optional[Preference]:
        return self.preferences.get(user_id)


class FakeSuggestionStore:
    """Merge-on-upsert over a dict keyed by (user_id, date)."""

    def __init__(self, catalog: FakeMenuCatalog):
        self._catalog = catalog
        self.rows: dict[tuple[int, str], dict[MealType, Optional[int]]] = {}
        self.upserts: list[dict] = []

    async def upsert(self, user_id: int, date: str, selections: Mapping[MealType, Optional[int]]):
        row = self.rows.setdefault((user_id, date), {m: None for m in MealType})
        row.update(selections)
        self.upserts.append(dict(selections))
        return await self.find_one(user_id, date)

    async def find_one(self, user_id: int, date: str) -> Optional[DailySuggestion]:
        row = self.rows.get((user_id, date))
        if row is None:
            return None
        by_id = {i.id: i for i in self._catalog.items}
        return DailySuggestion(
            user_id=user_id,
            date=date,
            breakfast=by_id.get(row[MealType.BREAKFAST]),
            lunch=by_id.get(row[MealType.LUNCH]),
            dinner=by_id.get(row[MealType.DINNER]),
        )


def make_item(id, meal_type, title=None, cuisine="Thai", allergens=(), budget_min=None,
              budget_max=None, is_active=True, created_at=None) -> MenuItem:
    return MenuItem(
        id=id,
        title=title or f"{meal_type.value}-{id}",
        meal_type=meal_type,
        cuisine=cuisine,
        is_active=is_active,
        allergens=tuple(allergens),
        budget_min=budget_min,
        budget_max=budget_max,
        created_at=created_at or f"2026-01-01T00:00:{id:02d}+00:00",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    return FakeMenuCatalog()


@pytest.fixture
def preferences():
    return FakePreferenceStore()


@pytest.fixture
def store(catalog):
    return FakeSuggestionStore(catalog)


@pytest.fixture
def cache(clock):
    return CandidateCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def service(catalog, preferences, store, cache):
    return SuggestionService(
        menu_catalog=catalog,
        preference_store=preferences,
        suggestion_store=store,
        cache=cache,
        rng=random.Random(42),
        today=lambda tz: TODAY,
    )
