"""
infrastructure.persistence.schedule_repo - SQLite notification schedules.

Implements ScheduleRepository port. Same create-or-update shape as the
preference repository.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from domain.entities import Schedule
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_FIELDS = ("times", "timezone")


class SQLiteScheduleRepository:
    """Async SQLite implementation of ScheduleRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def find_by_user(self, user_id: int) -> Optional[Schedule]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT id, user_id, times, timezone, created_at, updated_at "
                "FROM schedules WHERE user_id = ?",
                (user_id,),
            )
            if not rows:
                return None
            return self._row_to_schedule(rows[0])

    async def upsert(self, user_id: int, fields: Mapping[str, Any]) -> Schedule:
        invalid = set(fields) - set(_FIELDS)
        if invalid:
            raise ValueError(f"Invalid fields {sorted(invalid)}. Allowed: {_FIELDS}")

        values = dict(fields)
        if "times" in values:
            values["times"] = json.dumps(list(values["times"]))

        now = datetime.now(timezone.utc).isoformat()
        names = list(values)
        updates = ", ".join(f"{n} = excluded.{n}" for n in names + ["updated_at"])
        async with self._conn.acquire() as conn:
            await conn.execute(
                f"INSERT INTO schedules (user_id, {''.join(n + ', ' for n in names)}created_at, updated_at) "
                f"VALUES (?, {''.join('?, ' for _ in names)}?, ?) "
                f"ON CONFLICT(user_id) DO UPDATE SET {updates}",
                (user_id, *values.values(), now, now),
            )
        return await self.find_by_user(user_id)

    @staticmethod
    def _row_to_schedule(row) -> Schedule:
        return Schedule(
            id=row[0],
            user_id=row[1],
            times=json.loads(row[2] or "[]"),
            timezone=row[3],
            created_at=row[4] or "",
            updated_at=row[5] or "",
        )
