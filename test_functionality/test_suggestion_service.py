"""SuggestionService: generation, reroll, read-after-write and the pick tiers."""

import asyncio
import random

from application.services.candidate_cache import preference_signature
from application.services.suggestions import SuggestionService
from domain.models import MealType, MenuFilter, Preference
from conftest import TODAY, FakeMenuCatalog, make_item

USER = 1
TZ = "Asia/Bangkok"


def _fill(catalog, per_slot=3):
    next_id = 1
    for meal_type in MealType:
        for _ in range(per_slot):
            catalog.add(make_item(next_id, meal_type))
            next_id += 1


# --- generate_today ---

def test_generate_fills_available_slots_and_leaves_empty_ones_absent(service, catalog):
    catalog.add(make_item(1, MealType.BREAKFAST, title="A"))
    catalog.add(make_item(2, MealType.DINNER, title="B"))

    suggestion = asyncio.run(service.generate_today(USER, TZ))

    assert suggestion.date == TODAY
    assert suggestion.breakfast.title == "A"
    assert suggestion.lunch is None
    assert suggestion.dinner.title == "B"


def test_excluded_slot_is_absent_even_with_eligible_items(service, catalog, preferences):
    _fill(catalog)
    preferences.preferences[USER] = Preference(
        user_id=USER, excluded_meal_types=(MealType.LUNCH,),
    )

    suggestion = asyncio.run(service.generate_today(USER, TZ))

    assert suggestion.lunch is None
    assert suggestion.breakfast is not None
    assert suggestion.dinner is not None


def test_generate_writes_all_three_slots(service, catalog, store):
    _fill(catalog)
    asyncio.run(service.generate_today(USER, TZ))
    assert set(store.upserts[-1]) == set(MealType)


def test_generate_overwrites_previous_record(service, catalog, preferences, store):
    _fill(catalog)
    asyncio.run(service.generate_today(USER, TZ))

    preferences.preferences[USER] = Preference(
        user_id=USER, excluded_meal_types=(MealType.DINNER,),
    )
    suggestion = asyncio.run(service.generate_today(USER, TZ))

    assert suggestion.dinner is None
    assert len(store.rows) == 1


def test_preferences_filter_the_pool(service, catalog, preferences):
    catalog.add(make_item(1, MealType.BREAKFAST, cuisine="Thai", allergens=("peanut",)))
    catalog.add(make_item(2, MealType.BREAKFAST, cuisine="Thai"))
    catalog.add(make_item(3, MealType.BREAKFAST, cuisine="Italian"))
    preferences.preferences[USER] = Preference(
        user_id=USER, cuisines=("Thai",), allergens_avoid=("peanut",),
    )

    for _ in range(20):
        suggestion = asyncio.run(service.generate_today(USER, TZ))
        assert suggestion.breakfast.id == 2


def test_read_after_write(service, catalog):
    _fill(catalog)

    generated = asyncio.run(service.generate_today(USER, TZ))
    fetched = asyncio.run(service.get_today(USER, TZ))

    assert fetched.date == generated.date
    assert fetched.slot_ids() == generated.slot_ids()


def test_get_today_without_record_is_none(service):
    assert asyncio.run(service.get_today(USER, TZ)) is None


def test_today_uses_the_callers_timezone(catalog, preferences, store, cache):
    seen = []
    service = SuggestionService(
        catalog, preferences, store, cache,
        today=lambda tz: seen.append(tz) or TODAY,
    )
    asyncio.run(service.get_today(USER, "America/New_York"))
    assert seen == ["America/New_York"]


# --- reroll ---

def test_reroll_changes_only_the_target_slot(service, catalog, store):
    _fill(catalog, per_slot=5)
    before = asyncio.run(service.generate_today(USER, TZ)).slot_ids()

    for _ in range(10):
        after = asyncio.run(service.reroll(USER, TZ, MealType.LUNCH)).slot_ids()
        assert after[MealType.BREAKFAST] == before[MealType.BREAKFAST]
        assert after[MealType.DINNER] == before[MealType.DINNER]
        assert after[MealType.LUNCH] is not None
        assert set(store.upserts[-1]) == {MealType.LUNCH}


def test_reroll_without_record_runs_full_generation(service, catalog, store):
    _fill(catalog)

    suggestion = asyncio.run(service.reroll(USER, TZ, MealType.DINNER))

    assert set(store.upserts[-1]) == set(MealType)
    assert suggestion.breakfast is not None
    assert suggestion.lunch is not None
    assert suggestion.dinner is not None


def test_reroll_of_excluded_slot_leaves_it_absent(service, catalog, preferences):
    _fill(catalog)
    asyncio.run(service.generate_today(USER, TZ))
    preferences.preferences[USER] = Preference(
        user_id=USER, excluded_meal_types=(MealType.BREAKFAST,),
    )

    suggestion = asyncio.run(service.reroll(USER, TZ, MealType.BREAKFAST))

    assert suggestion.breakfast is None
    assert suggestion.lunch is not None


def test_reroll_with_empty_slot_keeps_it_empty(service, catalog):
    catalog.add(make_item(1, MealType.BREAKFAST))
    asyncio.run(service.generate_today(USER, TZ))

    suggestion = asyncio.run(service.reroll(USER, TZ, MealType.LUNCH))

    assert suggestion.lunch is None
    assert suggestion.breakfast.id == 1


# --- pick: randomness and exclusion ---

def test_unrestricted_pick_can_return_every_active_item(service, catalog):
    for i in range(1, 5):
        catalog.add(make_item(i, MealType.DINNER))
    catalog.add(make_item(5, MealType.DINNER, is_active=False))

    seen = {
        asyncio.run(service.pick(MealType.DINNER, MenuFilter())).id
        for _ in range(200)
    }

    assert seen == {1, 2, 3, 4}


def test_pick_skips_excluded_ids(service, catalog):
    catalog.add(make_item(1, MealType.LUNCH))
    catalog.add(make_item(2, MealType.LUNCH))

    for _ in range(20):
        item = asyncio.run(service.pick(MealType.LUNCH, MenuFilter(), exclude={1}))
        assert item.id == 2


def test_exhausted_pool_falls_back_to_direct_eligible_query(service, catalog):
    catalog.add(make_item(1, MealType.LUNCH))

    item = asyncio.run(service.pick(MealType.LUNCH, MenuFilter(), exclude={1}))

    assert item.id == 1
    assert catalog.calls["pick_one_eligible"] == 1


def test_no_active_item_for_slot_returns_none(service, catalog):
    catalog.add(make_item(1, MealType.LUNCH, is_active=False))

    assert asyncio.run(service.pick(MealType.LUNCH, MenuFilter())) is None
    assert catalog.calls["most_recent_active"] == 1


# --- pick: budget compatibility and fallback tiers ---

def test_incompatible_budget_item_is_kept_out_of_the_pool(service, catalog, cache):
    catalog.add(make_item(1, MealType.LUNCH, budget_min=60, budget_max=90))
    catalog.add(make_item(2, MealType.LUNCH, budget_min=120, budget_max=200))
    menu_filter = MenuFilter(budget_min=50, budget_max=100)

    for _ in range(20):
        assert asyncio.run(service.pick(MealType.LUNCH, menu_filter)).id == 1

    pool = cache.get(MealType.LUNCH, preference_signature(menu_filter))
    assert [i.id for i in pool] == [1]


def test_incompatible_budget_item_surfaces_through_slot_only_fallback(service, catalog, cache):
    catalog.add(make_item(2, MealType.LUNCH, budget_min=120, budget_max=200))
    menu_filter = MenuFilter(budget_min=50, budget_max=100)

    item = asyncio.run(service.pick(MealType.LUNCH, menu_filter))

    assert item.id == 2
    assert catalog.calls["pick_one_eligible"] == 1
    assert catalog.calls["pick_one_by_meal_type"] == 1
    assert cache.get(MealType.LUNCH, preference_signature(menu_filter)) == []


def test_open_ended_item_budget_is_compatible(service, catalog):
    catalog.add(make_item(1, MealType.DINNER, budget_min=None, budget_max=40))
    menu_filter = MenuFilter(budget_max=100)

    item = asyncio.run(service.pick(MealType.DINNER, menu_filter))

    assert item.id == 1
    assert catalog.calls["pick_one_eligible"] == 0


class _NoRandomCatalog(FakeMenuCatalog):
    """Random queries come back empty; only the newest-item lookup answers."""

    async def sample_eligible(self, meal_type, menu_filter, count):
        self.calls["sample_eligible"] += 1
        return []

    async def pick_one_eligible(self, meal_type, menu_filter):
        self.calls["pick_one_eligible"] += 1
        return None

    async def pick_one_by_meal_type(self, meal_type):
        self.calls["pick_one_by_meal_type"] += 1
        return None


def test_last_resort_returns_most_recent_active_item(preferences, store, cache):
    catalog = _NoRandomCatalog([
        make_item(1, MealType.BREAKFAST, created_at="2026-01-01T00:00:00+00:00"),
        make_item(2, MealType.BREAKFAST, created_at="2026-02-01T00:00:00+00:00"),
        make_item(3, MealType.BREAKFAST, created_at="2026-03-01T00:00:00+00:00", is_active=False),
    ])
    service = SuggestionService(catalog, preferences, store, cache, rng=random.Random(1))

    item = asyncio.run(service.pick(MealType.BREAKFAST, MenuFilter(cuisines=("Thai",))))

    assert item.id == 2
    assert catalog.calls["most_recent_active"] == 1


# --- pick: cache behaviour ---

def test_second_pick_within_ttl_does_not_resample(service, catalog, clock):
    _fill(catalog)
    menu_filter = MenuFilter(cuisines=("Thai",))

    asyncio.run(service.pick(MealType.BREAKFAST, menu_filter))
    clock.advance(299)
    asyncio.run(service.pick(MealType.BREAKFAST, menu_filter))

    assert catalog.calls["sample_eligible"] == 1


def test_pick_after_ttl_resamples(service, catalog, clock):
    _fill(catalog)

    asyncio.run(service.pick(MealType.BREAKFAST, MenuFilter()))
    clock.advance(300)
    asyncio.run(service.pick(MealType.BREAKFAST, MenuFilter()))

    assert catalog.calls["sample_eligible"] == 2


def test_reordered_cuisines_share_one_pool(service, catalog):
    _fill(catalog)

    asyncio.run(service.pick(MealType.DINNER, MenuFilter(cuisines=("Thai", "Japanese"))))
    asyncio.run(service.pick(MealType.DINNER, MenuFilter(cuisines=("Japanese", "Thai"))))

    assert catalog.calls["sample_eligible"] == 1


def test_repeated_generation_reuses_pools(service, catalog):
    _fill(catalog)

    asyncio.run(service.generate_today(USER, TZ))
    asyncio.run(service.generate_today(2, TZ))

    assert catalog.calls["sample_eligible"] == 3


def test_sample_size_bounds_the_pool(catalog, preferences, store, cache):
    for i in range(1, 30):
        catalog.add(make_item(i, MealType.LUNCH))
    service = SuggestionService(catalog, preferences, store, cache, sample_size=4)

    asyncio.run(service.pick(MealType.LUNCH, MenuFilter()))

    assert len(cache.get(MealType.LUNCH, "default")) == 4


def test_invalidation_during_sampling_is_not_undone(service, catalog, cache):
    catalog.add(make_item(1, MealType.LUNCH))
    sample_eligible = catalog.sample_eligible

    async def slow_sample(meal_type, menu_filter, count):
        sample = await sample_eligible(meal_type, menu_filter, count)
        # an admin deletes the item while the query is in flight
        catalog.items.clear()
        cache.invalidate(MealType.LUNCH)
        return sample

    catalog.sample_eligible = slow_sample

    asyncio.run(service.pick(MealType.LUNCH, MenuFilter()))

    assert cache.get(MealType.LUNCH, preference_signature(MenuFilter())) is None
    assert asyncio.run(service.pick(MealType.LUNCH, MenuFilter())) is None
