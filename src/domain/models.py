"""
domain.models - Value objects for menus, preferences and daily suggestions.

These are immutable data containers with no dependencies on infrastructure
(no SQLite, no FastAPI). Repositories build them from rows; services pass
them around; adapters serialize them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


# ---------------------------------------------------------------------------
# Meal slots
# ---------------------------------------------------------------------------

class MealType(str, Enum):
    """One of the three daily meal slots. Iteration order is meal order."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


def parse_meal_types(values: Iterable[str]) -> tuple[MealType, ...]:
    """Convert raw strings to MealType, dropping duplicates, keeping order.

    Raises ValueError for unknown slot names.
    """
    seen: list[MealType] = []
    for value in values:
        meal_type = MealType(value)
        if meal_type not in seen:
            seen.append(meal_type)
    return tuple(seen)


# ---------------------------------------------------------------------------
# Menu catalog
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MenuItem:
    """A single dish in the catalog.

    budget_min / budget_max are optional; None means unbounded on that side.
    """
    id: int
    title: str
    meal_type: MealType
    cuisine: str
    is_active: bool = True
    notes: Optional[str] = None
    allergens: tuple[str, ...] = ()
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    image_url: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "meal_type": self.meal_type.value,
            "cuisine": self.cuisine,
            "is_active": self.is_active,
            "notes": self.notes,
            "allergens": list(self.allergens),
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "image_url": self.image_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Preference:
    """Per-user dietary and budget preferences. At most one per user.

    Empty collections mean "no restriction".
    """
    user_id: int
    cuisines: tuple[str, ...] = ()
    allergens_avoid: tuple[str, ...] = ()
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    excluded_meal_types: tuple[MealType, ...] = ()
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    def excludes(self, meal_type: MealType) -> bool:
        return meal_type in self.excluded_meal_types

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "cuisines": list(self.cuisines),
            "allergens_avoid": list(self.allergens_avoid),
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "excluded_meal_types": [m.value for m in self.excluded_meal_types],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class MenuFilter:
    """Catalog eligibility criteria derived from a Preference.

    Excluded meal types are not part of the filter: they decide whether a
    slot is picked at all, not which items are eligible for it.
    """
    cuisines: tuple[str, ...] = ()
    allergens_avoid: tuple[str, ...] = ()
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None

    @classmethod
    def from_preference(cls, preference: Optional[Preference]) -> MenuFilter:
        if preference is None:
            return cls()
        return cls(
            cuisines=preference.cuisines,
            allergens_avoid=preference.allergens_avoid,
            budget_min=preference.budget_min,
            budget_max=preference.budget_max,
        )

    @property
    def is_unrestricted(self) -> bool:
        return (
            not self.cuisines
            and not self.allergens_avoid
            and self.budget_min is None
            and self.budget_max is None
        )


# ---------------------------------------------------------------------------
# Daily suggestions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailySuggestion:
    """One user's picks for one calendar day (date is YYYY-MM-DD).

    Each slot holds the resolved MenuItem, or None when the slot is excluded
    by preference or nothing was eligible.
    """
    user_id: int
    date: str
    breakfast: Optional[MenuItem] = None
    lunch: Optional[MenuItem] = None
    dinner: Optional[MenuItem] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    def slot(self, meal_type: MealType) -> Optional[MenuItem]:
        return getattr(self, meal_type.value)

    def slot_ids(self) -> dict[MealType, Optional[int]]:
        """Menu id per slot, None for empty slots."""
        ids: dict[MealType, Optional[int]] = {}
        for meal_type in MealType:
            item = self.slot(meal_type)
            ids[meal_type] = item.id if item is not None else None
        return ids

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "date": self.date,
            "breakfast": self.breakfast.to_dict() if self.breakfast else None,
            "lunch": self.lunch.to_dict() if self.lunch else None,
            "dinner": self.dinner.to_dict() if self.dinner else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Page:
    """One page of a listing plus the totals needed to render pagers."""
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 20
    total: int = 0

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


@dataclass(frozen=True)
class PageRequest:
    """Listing parameters: 1-based page, limit clamped to 1..100, "field:dir" sort."""
    page: int = 1
    limit: int = 20
    sort: str = "created_at:desc"
    search: Optional[str] = None

    MAX_LIMIT = 100

    @property
    def safe_page(self) -> int:
        return max(1, self.page)

    @property
    def safe_limit(self) -> int:
        return min(self.MAX_LIMIT, max(1, self.limit))

    @property
    def offset(self) -> int:
        return (self.safe_page - 1) * self.safe_limit

    def order_by(self, allowed: Iterable[str], default: str = "created_at") -> str:
        """Build a safe ORDER BY clause body from the sort string.

        Unknown fields fall back to `default`; anything but "asc" sorts
        descending.
        """
        field_name, _, direction = self.sort.partition(":")
        field_name = field_name.strip()
        if field_name not in set(allowed):
            field_name = default
        order = "ASC" if direction.strip().lower() == "asc" else "DESC"
        return f"{field_name} {order}, id {order}"
