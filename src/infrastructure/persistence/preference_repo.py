"""
infrastructure.persistence.preference_repo - SQLite preference repository.

Implements PreferenceRepository port. One row per user; upsert() only
writes the fields it is given.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from domain.models import MealType, Preference
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, user_id, cuisines, allergens_avoid, budget_min, budget_max, "
    "excluded_meal_types, created_at, updated_at"
)
_JSON_FIELDS = ("cuisines", "allergens_avoid", "excluded_meal_types")
_FIELDS = _JSON_FIELDS + ("budget_min", "budget_max")


class SQLitePreferenceRepository:
    """Async SQLite implementation of PreferenceRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def find_by_user(self, user_id: int) -> Optional[Preference]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT {_COLUMNS} FROM preferences WHERE user_id = ?",
                (user_id,),
            )
            if not rows:
                return None
            return self._row_to_preference(rows[0])

    async def upsert(self, user_id: int, fields: Mapping[str, Any]) -> Preference:
        invalid = set(fields) - set(_FIELDS)
        if invalid:
            raise ValueError(f"Invalid fields {sorted(invalid)}. Allowed: {_FIELDS}")

        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "excluded_meal_types":
                value = json.dumps([MealType(v).value for v in value or []])
            elif name in _JSON_FIELDS:
                value = json.dumps(list(value or []))
            values[name] = value

        now = datetime.now(timezone.utc).isoformat()
        names = list(values)
        updates = ", ".join(f"{n} = excluded.{n}" for n in names + ["updated_at"])
        async with self._conn.acquire() as conn:
            await conn.execute(
                f"INSERT INTO preferences (user_id, {''.join(n + ', ' for n in names)}created_at, updated_at) "
                f"VALUES (?, {''.join('?, ' for _ in names)}?, ?) "
                f"ON CONFLICT(user_id) DO UPDATE SET {updates}",
                (user_id, *values.values(), now, now),
            )
        return await self.find_by_user(user_id)

    @staticmethod
    def _row_to_preference(row) -> Preference:
        return Preference(
            id=row[0],
            user_id=row[1],
            cuisines=tuple(json.loads(row[2] or "[]")),
            allergens_avoid=tuple(json.loads(row[3] or "[]")),
            budget_min=row[4],
            budget_max=row[5],
            excluded_meal_types=tuple(MealType(v) for v in json.loads(row[6] or "[]")),
            created_at=row[7] or "",
            updated_at=row[8] or "",
        )
