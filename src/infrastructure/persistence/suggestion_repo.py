"""
infrastructure.persistence.suggestion_repo - SQLite daily suggestion store.

Implements DailySuggestionStore port. The UNIQUE(user_id, date) constraint
backs the upsert: concurrent writers for the same day merge into one row,
last writer wins per column. Reads resolve menu ids to full MenuItems.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from domain.models import DailySuggestion, MealType
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.menu_repo import SQLiteMenuRepository

logger = logging.getLogger(__name__)

_SLOT_COLUMNS = {
    MealType.BREAKFAST: "breakfast_menu_id",
    MealType.LUNCH: "lunch_menu_id",
    MealType.DINNER: "dinner_menu_id",
}


class SQLiteDailySuggestionRepository:
    """Async SQLite implementation of DailySuggestionStore."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection
        self._menus = SQLiteMenuRepository(connection)

    async def upsert(
        self,
        user_id: int,
        date: str,
        selections: Mapping[MealType, Optional[int]],
    ) -> DailySuggestion:
        """Create or update the (user_id, date) row.

        Only the slots present in `selections` are written.
        """
        columns = [_SLOT_COLUMNS[MealType(m)] for m in selections]
        now = datetime.now(timezone.utc).isoformat()
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns + ["updated_at"])
        async with self._conn.acquire() as conn:
            await conn.execute(
                f"INSERT INTO daily_suggestions (user_id, date, {''.join(c + ', ' for c in columns)}created_at, updated_at) "
                f"VALUES (?, ?, {''.join('?, ' for _ in columns)}?, ?) "
                f"ON CONFLICT(user_id, date) DO UPDATE SET {updates}",
                (user_id, date, *selections.values(), now, now),
            )
        suggestion = await self.find_one(user_id, date)
        logger.debug("Upserted suggestion row for user %d on %s: %s", user_id, date, columns)
        return suggestion

    async def find_one(self, user_id: int, date: str) -> Optional[DailySuggestion]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT id, user_id, date, breakfast_menu_id, lunch_menu_id, dinner_menu_id, "
                "created_at, updated_at FROM daily_suggestions WHERE user_id = ? AND date = ?",
                (user_id, date),
            )
        if not rows:
            return None
        row = rows[0]
        ids = {MealType.BREAKFAST: row[3], MealType.LUNCH: row[4], MealType.DINNER: row[5]}
        menus = await self._menus.get_many([i for i in ids.values() if i is not None])
        return DailySuggestion(
            id=row[0],
            user_id=row[1],
            date=row[2],
            breakfast=menus.get(ids[MealType.BREAKFAST]),
            lunch=menus.get(ids[MealType.LUNCH]),
            dinner=menus.get(ids[MealType.DINNER]),
            created_at=row[6] or "",
            updated_at=row[7] or "",
        )
