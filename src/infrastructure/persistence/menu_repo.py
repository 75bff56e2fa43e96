"""
infrastructure.persistence.menu_repo - SQLite menu catalog.

Implements MenuRepository (and with it the MenuCatalog read side used by
the suggestion engine). Random sampling uses ORDER BY RANDOM(); allergen
overlap is checked against the JSON array column with json_each().
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from domain.models import MealType, MenuFilter, MenuItem, Page, PageRequest
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, title, meal_type, cuisine, is_active, notes, allergens, "
    "budget_min, budget_max, image_url, created_at, updated_at"
)
_SORTABLE = ("created_at", "updated_at", "title", "cuisine", "meal_type", "budget_min", "budget_max")
_WRITABLE = (
    "title", "meal_type", "cuisine", "is_active", "notes",
    "allergens", "budget_min", "budget_max", "image_url",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _eligibility(meal_type: MealType, menu_filter: Optional[MenuFilter]) -> tuple[str, list]:
    """WHERE clause + params for active items of a slot matching a filter."""
    where = ["is_active = 1", "meal_type = ?"]
    params: list[Any] = [meal_type.value]
    if menu_filter is None:
        return " AND ".join(where), params

    if menu_filter.cuisines:
        where.append(f"cuisine IN ({', '.join('?' * len(menu_filter.cuisines))})")
        params.extend(menu_filter.cuisines)
    if menu_filter.allergens_avoid:
        where.append(
            "NOT EXISTS (SELECT 1 FROM json_each(menus.allergens) "
            f"WHERE json_each.value IN ({', '.join('?' * len(menu_filter.allergens_avoid))}))"
        )
        params.extend(menu_filter.allergens_avoid)
    # Unbounded item ranges are compatible with any user bound.
    if menu_filter.budget_min is not None:
        where.append("(budget_max IS NULL OR budget_max >= ?)")
        params.append(menu_filter.budget_min)
    if menu_filter.budget_max is not None:
        where.append("(budget_min IS NULL OR budget_min <= ?)")
        params.append(menu_filter.budget_max)
    return " AND ".join(where), params


class SQLiteMenuRepository:
    """Async SQLite implementation of MenuRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    # ------------------------------------------------------------------
    # Catalog reads for the suggestion engine
    # ------------------------------------------------------------------

    async def sample_eligible(
        self, meal_type: MealType, menu_filter: MenuFilter, count: int,
    ) -> list[MenuItem]:
        clause, params = _eligibility(meal_type, menu_filter)
        return await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE {clause} ORDER BY RANDOM() LIMIT ?",
            [*params, count],
        )

    async def pick_one_eligible(
        self, meal_type: MealType, menu_filter: MenuFilter,
    ) -> Optional[MenuItem]:
        items = await self.sample_eligible(meal_type, menu_filter, 1)
        return items[0] if items else None

    async def pick_one_by_meal_type(self, meal_type: MealType) -> Optional[MenuItem]:
        clause, params = _eligibility(meal_type, None)
        items = await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE {clause} ORDER BY RANDOM() LIMIT 1",
            params,
        )
        return items[0] if items else None

    async def most_recent_active(self, meal_type: MealType) -> Optional[MenuItem]:
        clause, params = _eligibility(meal_type, None)
        items = await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE {clause} "
            "ORDER BY created_at DESC, id DESC LIMIT 1",
            params,
        )
        return items[0] if items else None

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def get_by_id(self, menu_id: int) -> Optional[MenuItem]:
        items = await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE id = ?", [menu_id],
        )
        return items[0] if items else None

    async def get_many(self, menu_ids: list[int]) -> dict[int, MenuItem]:
        """Fetch several items by id in one query (missing ids are skipped)."""
        if not menu_ids:
            return {}
        items = await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE id IN ({', '.join('?' * len(menu_ids))})",
            list(menu_ids),
        )
        return {item.id: item for item in items}

    async def list(
        self,
        request: PageRequest,
        meal_type: Optional[MealType] = None,
        cuisine: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page:
        where, params = ["1 = 1"], []
        if meal_type is not None:
            where.append("meal_type = ?")
            params.append(meal_type.value)
        if cuisine:
            where.append("cuisine LIKE ?")
            params.append(f"%{cuisine}%")
        if is_active is not None:
            where.append("is_active = ?")
            params.append(1 if is_active else 0)
        if request.search:
            where.append("title LIKE ?")
            params.append(f"%{request.search}%")
        clause = " AND ".join(where)

        async with self._conn.acquire() as conn:
            total_rows = await conn.execute_fetchall(
                f"SELECT COUNT(*) FROM menus WHERE {clause}", params,
            )
        items = await self._select(
            f"SELECT {_COLUMNS} FROM menus WHERE {clause} "
            f"ORDER BY {request.order_by(_SORTABLE)} LIMIT ? OFFSET ?",
            [*params, request.safe_limit, request.offset],
        )
        return Page(
            items=items,
            page=request.safe_page,
            limit=request.safe_limit,
            total=total_rows[0][0],
        )

    async def save(self, fields: Mapping[str, Any]) -> MenuItem:
        now = _now()
        values = self._to_columns(fields)
        values.setdefault("is_active", 1)
        values.setdefault("allergens", "[]")
        names = list(values)
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                f"INSERT INTO menus ({', '.join(names)}, created_at, updated_at) "
                f"VALUES ({', '.join('?' * len(names))}, ?, ?)",
                (*values.values(), now, now),
            )
            menu_id = cursor.lastrowid
        return await self.get_by_id(menu_id)

    async def update(self, menu_id: int, fields: Mapping[str, Any]) -> Optional[MenuItem]:
        values = self._to_columns(fields)
        if values:
            assignments = ", ".join(f"{name} = ?" for name in values)
            async with self._conn.acquire() as conn:
                await conn.execute(
                    f"UPDATE menus SET {assignments}, updated_at = ? WHERE id = ?",
                    (*values.values(), _now(), menu_id),
                )
        return await self.get_by_id(menu_id)

    async def delete(self, menu_id: int) -> bool:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute("DELETE FROM menus WHERE id = ?", (menu_id,))
            return cursor.rowcount > 0

    async def delete_all(self) -> int:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute("DELETE FROM menus")
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _select(self, sql: str, params: list) -> list[MenuItem]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(sql, params)
            return [self.row_to_menu(r) for r in rows]

    @staticmethod
    def _to_columns(fields: Mapping[str, Any]) -> dict[str, Any]:
        invalid = set(fields) - set(_WRITABLE)
        if invalid:
            raise ValueError(f"Invalid fields {sorted(invalid)}. Allowed: {_WRITABLE}")
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "meal_type":
                value = MealType(value).value
            elif name == "allergens":
                value = json.dumps(sorted(set(value or [])))
            elif name == "is_active":
                value = 1 if value else 0
            values[name] = value
        return values

    @staticmethod
    def row_to_menu(row) -> MenuItem:
        return MenuItem(
            id=row[0],
            title=row[1],
            meal_type=MealType(row[2]),
            cuisine=row[3],
            is_active=bool(row[4]),
            notes=row[5],
            allergens=tuple(json.loads(row[6] or "[]")),
            budget_min=row[7],
            budget_max=row[8],
            image_url=row[9],
            created_at=row[10] or "",
            updated_at=row[11] or "",
        )
