"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC — any class that
implements the methods satisfies the port without explicit inheritance.
The in-memory fakes in the test suite rely on this.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from domain.models import (
    DailySuggestion,
    MealType,
    MenuFilter,
    MenuItem,
    Page,
    PageRequest,
    Preference,
)
from domain.entities import Schedule, User


# ---------------------------------------------------------------------------
# Suggestion Core Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class MenuCatalog(Protocol):
    """Read-side of the menu catalog used by the suggestion engine.

    Every method only ever returns active items of the requested slot.
    """

    async def sample_eligible(
        self, meal_type: MealType, menu_filter: MenuFilter, count: int,
    ) -> list[MenuItem]: ...

    async def pick_one_eligible(
        self, meal_type: MealType, menu_filter: MenuFilter,
    ) -> Optional[MenuItem]: ...

    async def pick_one_by_meal_type(self, meal_type: MealType) -> Optional[MenuItem]: ...

    async def most_recent_active(self, meal_type: MealType) -> Optional[MenuItem]: ...


@runtime_checkable
class PreferenceStore(Protocol):
    """Lookup of a user's preferences (None when never set)."""

    async def find_by_user(self, user_id: int) -> Optional[Preference]: ...


@runtime_checkable
class DailySuggestionStore(Protocol):
    """One record per (user_id, date).

    upsert() writes only the slots present in `selections`; a slot mapped
    to None is cleared. Missing records are created.
    """

    async def upsert(
        self,
        user_id: int,
        date: str,
        selections: Mapping[MealType, Optional[int]],
    ) -> DailySuggestion: ...

    async def find_one(self, user_id: int, date: str) -> Optional[DailySuggestion]: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class MenuRepository(MenuCatalog, Protocol):
    """CRUD for menu items on top of the catalog read side."""

    async def get_by_id(self, menu_id: int) -> Optional[MenuItem]: ...

    async def list(
        self,
        request: PageRequest,
        meal_type: Optional[MealType] = None,
        cuisine: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page: ...

    async def save(self, fields: Mapping[str, Any]) -> MenuItem: ...
    async def update(self, menu_id: int, fields: Mapping[str, Any]) -> Optional[MenuItem]: ...
    async def delete(self, menu_id: int) -> bool: ...
    async def delete_all(self) -> int: ...


@runtime_checkable
class PreferenceRepository(PreferenceStore, Protocol):
    """Preference persistence with create-or-update semantics."""

    async def upsert(self, user_id: int, fields: Mapping[str, Any]) -> Preference: ...


@runtime_checkable
class ScheduleRepository(Protocol):
    """Notification schedule persistence with create-or-update semantics."""

    async def find_by_user(self, user_id: int) -> Optional[Schedule]: ...
    async def upsert(self, user_id: int, fields: Mapping[str, Any]) -> Schedule: ...


@runtime_checkable
class UserRepository(Protocol):
    """CRUD operations for User entities."""

    async def get_by_id(self, user_id: int) -> Optional[User]: ...
    async def get_by_email(self, email: str) -> Optional[User]: ...
    async def list(self, request: PageRequest, role: Optional[str] = None) -> Page: ...
    async def save(self, user: User) -> int: ...
    async def update(self, user_id: int, fields: Mapping[str, Any]) -> None: ...
    async def delete(self, user_id: int) -> bool: ...
