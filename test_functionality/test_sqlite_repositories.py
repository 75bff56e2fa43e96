"""SQLite repositories against a temporary database file."""

import asyncio

import pytest

from domain.entities import User
from domain.exceptions import DuplicateEmailError
from domain.models import MealType, MenuFilter, PageRequest
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.menu_repo import SQLiteMenuRepository
from infrastructure.persistence.preference_repo import SQLitePreferenceRepository
from infrastructure.persistence.schedule_repo import SQLiteScheduleRepository
from infrastructure.persistence.suggestion_repo import SQLiteDailySuggestionRepository
from infrastructure.persistence.user_repo import SQLiteUserRepository


@pytest.fixture
def conn(tmp_path):
    connection = AsyncSQLiteConnection(str(tmp_path / "test.db"))
    asyncio.run(run_migrations(connection))
    return connection


def _menu(title, meal_type, **extra):
    fields = {"title": title, "meal_type": meal_type, "cuisine": "Thai"}
    fields.update(extra)
    return fields


def _add_user(conn, email="a@example.com") -> int:
    return asyncio.run(SQLiteUserRepository(conn).save(
        User(email=email, password_hash="x", name="A")
    ))


# --- Users ---

def test_user_save_and_lookup(conn):
    repo = SQLiteUserRepository(conn)
    user_id = _add_user(conn)

    by_id = asyncio.run(repo.get_by_id(user_id))
    by_email = asyncio.run(repo.get_by_email("a@example.com"))

    assert by_id.email == "a@example.com"
    assert by_email.id == user_id
    assert by_id.created_at


def test_duplicate_email_is_translated(conn):
    _add_user(conn)
    with pytest.raises(DuplicateEmailError):
        _add_user(conn)


def test_user_list_filters_and_paginates(conn):
    repo = SQLiteUserRepository(conn)
    for i in range(5):
        _add_user(conn, f"user{i}@example.com")
    asyncio.run(repo.save(User(email="boss@example.com", password_hash="x", name="Boss", role="admin")))

    admins = asyncio.run(repo.list(PageRequest(), role="admin"))
    page = asyncio.run(repo.list(PageRequest(page=2, limit=2, sort="email:asc")))
    found = asyncio.run(repo.list(PageRequest(search="boss")))

    assert [u.email for u in admins.items] == ["boss@example.com"]
    assert page.total == 6
    assert page.pages == 3
    assert [u.email for u in page.items] == ["user1@example.com", "user2@example.com"]
    assert found.total == 1


def test_user_delete(conn):
    repo = SQLiteUserRepository(conn)
    user_id = _add_user(conn)
    assert asyncio.run(repo.delete(user_id)) is True
    assert asyncio.run(repo.delete(user_id)) is False


# --- Menus ---

def test_menu_save_normalizes_allergens(conn):
    repo = SQLiteMenuRepository(conn)
    item = asyncio.run(repo.save(_menu("Pad Thai", "lunch", allergens=["shrimp", "peanut", "peanut"])))

    assert item.meal_type == MealType.LUNCH
    assert item.allergens == ("peanut", "shrimp")
    assert item.is_active is True


def test_sample_eligible_applies_every_filter(conn):
    repo = SQLiteMenuRepository(conn)
    ok = asyncio.run(repo.save(_menu("Ok", "dinner", budget_min=60, budget_max=90)))
    asyncio.run(repo.save(_menu("Wrong cuisine", "dinner", cuisine="Italian")))
    asyncio.run(repo.save(_menu("Peanuts", "dinner", allergens=["peanut"])))
    asyncio.run(repo.save(_menu("Too pricey", "dinner", budget_min=120)))
    asyncio.run(repo.save(_menu("Too cheap", "dinner", budget_max=20)))
    asyncio.run(repo.save(_menu("Inactive", "dinner", is_active=False)))
    asyncio.run(repo.save(_menu("Lunch", "lunch")))
    open_ended = asyncio.run(repo.save(_menu("Open", "dinner")))

    menu_filter = MenuFilter(
        cuisines=("Thai",), allergens_avoid=("peanut",), budget_min=50, budget_max=100,
    )
    items = asyncio.run(repo.sample_eligible(MealType.DINNER, menu_filter, 10))

    assert {i.id for i in items} == {ok.id, open_ended.id}


def test_sample_eligible_respects_count(conn):
    repo = SQLiteMenuRepository(conn)
    for i in range(6):
        asyncio.run(repo.save(_menu(f"B{i}", "breakfast")))
    items = asyncio.run(repo.sample_eligible(MealType.BREAKFAST, MenuFilter(), 3))
    assert len(items) == 3


def test_fallback_queries(conn):
    repo = SQLiteMenuRepository(conn)
    pricey = asyncio.run(repo.save(_menu("Pricey", "lunch", budget_min=120)))
    newest = asyncio.run(repo.save(_menu("Newer", "lunch", budget_min=150)))
    asyncio.run(repo.save(_menu("Off", "lunch", is_active=False)))

    strict = MenuFilter(budget_max=100)
    assert asyncio.run(repo.pick_one_eligible(MealType.LUNCH, strict)) is None
    assert asyncio.run(repo.pick_one_by_meal_type(MealType.LUNCH)).id in {pricey.id, newest.id}
    assert asyncio.run(repo.most_recent_active(MealType.LUNCH)).id == newest.id
    assert asyncio.run(repo.most_recent_active(MealType.DINNER)) is None


def test_menu_list_filters(conn):
    repo = SQLiteMenuRepository(conn)
    asyncio.run(repo.save(_menu("Green Curry", "dinner")))
    asyncio.run(repo.save(_menu("Ramen", "dinner", cuisine="Japanese")))
    asyncio.run(repo.save(_menu("Congee", "breakfast", is_active=False)))

    assert asyncio.run(repo.list(PageRequest(), meal_type=MealType.DINNER)).total == 2
    assert asyncio.run(repo.list(PageRequest(), cuisine="japan")).total == 1
    assert asyncio.run(repo.list(PageRequest(), is_active=False)).total == 1
    assert asyncio.run(repo.list(PageRequest(search="curry"))).items[0].title == "Green Curry"


def test_menu_update_and_delete(conn):
    repo = SQLiteMenuRepository(conn)
    item = asyncio.run(repo.save(_menu("Soup", "lunch")))

    updated = asyncio.run(repo.update(item.id, {"title": "Tom Yum", "is_active": False}))
    assert updated.title == "Tom Yum"
    assert updated.is_active is False

    assert asyncio.run(repo.delete(item.id)) is True
    assert asyncio.run(repo.get_by_id(item.id)) is None


# --- Preferences / schedules ---

def test_preference_upsert_merges_fields(conn):
    repo = SQLitePreferenceRepository(conn)
    user_id = _add_user(conn)

    created = asyncio.run(repo.upsert(user_id, {}))
    assert created.cuisines == ()
    assert created.excluded_meal_types == ()

    asyncio.run(repo.upsert(user_id, {"cuisines": ["Thai"], "budget_max": 100}))
    merged = asyncio.run(repo.upsert(user_id, {"excluded_meal_types": ["lunch"]}))

    assert merged.cuisines == ("Thai",)
    assert merged.budget_max == 100
    assert merged.excluded_meal_types == (MealType.LUNCH,)


def test_schedule_defaults_and_update(conn):
    repo = SQLiteScheduleRepository(conn)
    user_id = _add_user(conn)

    assert asyncio.run(repo.find_by_user(user_id)) is None
    created = asyncio.run(repo.upsert(user_id, {"timezone": "Asia/Tokyo"}))
    assert created.times == ["08:00", "12:00", "18:00"]
    assert created.timezone == "Asia/Tokyo"

    updated = asyncio.run(repo.upsert(user_id, {"times": ["07:30"]}))
    assert updated.times == ["07:30"]
    assert updated.timezone == "Asia/Tokyo"


# --- Daily suggestions ---

def test_suggestion_upsert_merges_slots_and_resolves_menus(conn):
    menus = SQLiteMenuRepository(conn)
    repo = SQLiteDailySuggestionRepository(conn)
    user_id = _add_user(conn)
    b = asyncio.run(menus.save(_menu("Jok", "breakfast")))
    l1 = asyncio.run(menus.save(_menu("Khao Man Gai", "lunch")))
    l2 = asyncio.run(menus.save(_menu("Som Tam", "lunch")))

    first = asyncio.run(repo.upsert(user_id, "2026-03-15", {
        MealType.BREAKFAST: b.id, MealType.LUNCH: l1.id, MealType.DINNER: None,
    }))
    assert first.breakfast.title == "Jok"
    assert first.dinner is None

    second = asyncio.run(repo.upsert(user_id, "2026-03-15", {MealType.LUNCH: l2.id}))
    assert second.id == first.id
    assert second.breakfast.id == b.id
    assert second.lunch.id == l2.id


def test_suggestion_rows_are_per_day(conn):
    repo = SQLiteDailySuggestionRepository(conn)
    user_id = _add_user(conn)

    asyncio.run(repo.upsert(user_id, "2026-03-15", {MealType.BREAKFAST: None}))

    assert asyncio.run(repo.find_one(user_id, "2026-03-15")) is not None
    assert asyncio.run(repo.find_one(user_id, "2026-03-16")) is None


def test_deleted_menu_empties_the_slot(conn):
    menus = SQLiteMenuRepository(conn)
    repo = SQLiteDailySuggestionRepository(conn)
    user_id = _add_user(conn)
    item = asyncio.run(menus.save(_menu("Pad Kra Pao", "dinner")))
    asyncio.run(repo.upsert(user_id, "2026-03-15", {MealType.DINNER: item.id}))

    asyncio.run(menus.delete(item.id))

    assert asyncio.run(repo.find_one(user_id, "2026-03-15")).dinner is None
