"""
application.services.seeding - Sample data for local development.

Idempotent for users, preferences and schedules (upserted by email /
user_id). The menu catalog is replaced wholesale so re-running the seeder
never duplicates dishes.

Sample accounts:
    Admin: admin@gmail.com / admin123
    User:  user@gmail.com  / user123
"""

from __future__ import annotations

import logging
from typing import Any

from domain.entities import ROLE_ADMIN, ROLE_USER, DEFAULT_SCHEDULE_TIMES, User
from domain.models import MealType
from domain.ports import MenuRepository, PreferenceRepository, ScheduleRepository, UserRepository
from application.dto import SeedReport
from application.services.authentication import hash_password
from application.services.candidate_cache import CandidateCache

logger = logging.getLogger(__name__)

SEED_TIMEZONE = "Asia/Bangkok"

SEED_USERS = [
    {"email": "admin@gmail.com", "password": "admin123", "name": "Admin User", "role": ROLE_ADMIN},
    {"email": "user@gmail.com", "password": "user123", "name": "Sample User", "role": ROLE_USER},
]

SAMPLE_USER_EMAIL = "user@gmail.com"

SAMPLE_PREFERENCES = {
    "cuisines": ("Thai", "Japanese"),
    "allergens_avoid": ("peanut",),
    "budget_min": 50,
    "budget_max": 120,
    "excluded_meal_types": (),
}

_B, _L, _D = MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER

# (title, cuisine, meal type, unsplash photo id, budget min, budget max, allergens)
CURATED_MENUS = [
    ("Thai Jok (Rice Porridge)", "Thai", _B, "1516684981049-7b3f9b5f52c7", 45, 80, ()),
    ("Pad Thai", "Thai", _L, "1559847844-5315695daece", 70, 120, ("peanut", "shrimp", "egg")),
    ("Tom Yum Goong", "Thai", _D, "1578662996442-48f60103fc96", 100, 160, ("shrimp",)),
    ("Green Curry Chicken", "Thai", _D, "1586190848861-99aa4a171e90", 100, 170, ("dairy",)),
    ("Japanese Breakfast Set", "Japanese", _B, "1567620905732-2d1ec7ab7445", 120, 180, ("fish", "soy", "egg")),
    ("Salmon Sushi Set", "Japanese", _L, "1563379091339-03246963d18c", 180, 320, ("fish", "soy")),
    ("Tonkotsu Ramen", "Japanese", _D, "1555939594-58d7cb561ad1", 160, 280, ("gluten", "egg", "soy")),
    ("Tempura Bento", "Japanese", _L, "1571091718761-18b5b1457add", 150, 260, ("egg", "gluten", "soy")),
    ("Chinese Congee", "Chinese", _B, "1572802419224-296b0aeee0d9", 50, 90, ()),
    ("Yangzhou Fried Rice", "Chinese", _L, "1565299624946-b28f40a0ca4b", 80, 140, ("egg",)),
    ("Kung Pao Chicken", "Chinese", _D, "1574484284002-8dcaaaeaf4a4", 120, 200, ("peanut", "soy")),
    ("Dim Sum Assortment", "Chinese", _L, "1565299543927-795dd21bf5b2", 140, 240, ("gluten", "soy", "egg", "shrimp")),
    ("Korean Egg Toast", "Korean", _B, "1572802419224-296b0aeee0d9", 70, 110, ("egg", "dairy", "gluten")),
    ("Bibimbap", "Korean", _L, "1579952363873-27d3bfad9c0d", 130, 220, ("egg", "soy")),
    ("Korean BBQ Set", "Korean", _D, "1586190848861-99aa4a171e90", 220, 450, ("soy",)),
    ("Kimchi Jjigae", "Korean", _D, "1578662996442-48f60103fc96", 120, 190, ("soy", "fish")),
    ("Pancakes with Berries", "Western", _B, "1567620905732-2d1ec7ab7445", 120, 200, ("egg", "dairy", "gluten")),
    ("Margherita Pizza", "Western", _L, "1565299624946-b28f40a0ca4b", 150, 260, ("dairy", "gluten")),
    ("Classic Cheeseburger", "Western", _D, "1571091718761-18b5b1457add", 150, 240, ("gluten", "dairy")),
    ("Spaghetti Carbonara", "Western", _D, "1555939594-58d7cb561ad1", 140, 230, ("egg", "dairy", "gluten")),
]

VARIANTS = ["Signature", "Deluxe", "Premium", "Chef's Special"]


def image_url(photo_id: str, width: int = 800, height: int = 600) -> str:
    return (
        f"https://images.unsplash.com/photo-{photo_id}"
        f"?auto=format&fit=crop&w={width}&h={height}&q=85"
    )


def build_seed_menus() -> list[dict[str, Any]]:
    """Each curated dish plus one variant with a slightly wider budget."""
    menus: list[dict[str, Any]] = []
    for idx, (title, cuisine, meal_type, photo, bmin, bmax, allergens) in enumerate(CURATED_MENUS):
        base = {
            "title": title,
            "cuisine": cuisine,
            "meal_type": meal_type,
            "image_url": image_url(photo),
            "budget_min": bmin,
            "budget_max": bmax,
            "allergens": list(allergens),
            "is_active": True,
            "notes": f"Authentic {cuisine} {meal_type.value}",
        }
        menus.append(base)
        variant = VARIANTS[idx % len(VARIANTS)]
        menus.append({
            **base,
            "title": f"{title} {variant}",
            "budget_min": max(40, bmin - 10),
            "budget_max": bmax + 20,
            "notes": f"{variant} edition",
        })
    return menus


class SeedService:
    """Writes the sample users, catalog, preferences and schedules."""

    def __init__(
        self,
        user_repo: UserRepository,
        menu_repo: MenuRepository,
        preference_repo: PreferenceRepository,
        schedule_repo: ScheduleRepository,
        cache: CandidateCache,
    ):
        self._users = user_repo
        self._menus = menu_repo
        self._preferences = preference_repo
        self._schedules = schedule_repo
        self._cache = cache

    async def run(self) -> SeedReport:
        logger.info("Starting database seeding...")
        emails = await self.seed_users()
        menus = await self.seed_menus()
        preferences = await self.seed_preferences()
        schedules = await self.seed_schedules()
        logger.info("All seeds completed successfully")
        return SeedReport(users=emails, menus=menus, preferences=preferences, schedules=schedules)

    async def seed_users(self) -> list[str]:
        for seed in SEED_USERS:
            existing = await self._users.get_by_email(seed["email"])
            fields = {
                "password_hash": hash_password(seed["password"]),
                "name": seed["name"],
                "role": seed["role"],
                "timezone": SEED_TIMEZONE,
            }
            if existing is None:
                await self._users.save(User(email=seed["email"], **fields))
            else:
                await self._users.update(existing.id, fields)
        logger.info("Users seeded: %d", len(SEED_USERS))
        return [seed["email"] for seed in SEED_USERS]

    async def seed_menus(self) -> int:
        await self._menus.delete_all()
        menus = build_seed_menus()
        for fields in menus:
            await self._menus.save(fields)
        self._cache.clear()
        logger.info("Menus seeded: %d", len(menus))
        return len(menus)

    async def seed_preferences(self) -> int:
        user = await self._users.get_by_email(SAMPLE_USER_EMAIL)
        if user is None:
            logger.warning("Sample user not found, skipping preferences")
            return 0
        await self._preferences.upsert(user.id, SAMPLE_PREFERENCES)
        return 1

    async def seed_schedules(self) -> int:
        user = await self._users.get_by_email(SAMPLE_USER_EMAIL)
        if user is None:
            logger.warning("Sample user not found, skipping schedules")
            return 0
        await self._schedules.upsert(user.id, {
            "times": list(DEFAULT_SCHEDULE_TIMES),
            "timezone": SEED_TIMEZONE,
        })
        return 1
