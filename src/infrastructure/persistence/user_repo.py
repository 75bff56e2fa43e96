"""
infrastructure.persistence.user_repo - SQLite user repository.

Implements UserRepository port.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from domain.entities import User
from domain.exceptions import DuplicateEmailError
from domain.models import Page, PageRequest
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_COLUMNS = "id, email, password_hash, name, role, timezone, created_at, updated_at"
_SORTABLE = ("created_at", "updated_at", "email", "name", "role")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteUserRepository:
    """Async SQLite implementation of UserRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get_by_id(self, user_id: int) -> Optional[User]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT {_COLUMNS} FROM users WHERE id = ?",
                (user_id,),
            )
            if not rows:
                return None
            return self._row_to_user(rows[0])

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT {_COLUMNS} FROM users WHERE email = ?",
                (email,),
            )
            if not rows:
                return None
            return self._row_to_user(rows[0])

    async def list(self, request: PageRequest, role: Optional[str] = None) -> Page:
        where, params = ["1 = 1"], []
        if role:
            where.append("role = ?")
            params.append(role)
        if request.search:
            where.append("(name LIKE ? OR email LIKE ?)")
            like = f"%{request.search}%"
            params.extend([like, like])
        clause = " AND ".join(where)

        async with self._conn.acquire() as conn:
            total_rows = await conn.execute_fetchall(
                f"SELECT COUNT(*) FROM users WHERE {clause}", params,
            )
            rows = await conn.execute_fetchall(
                f"SELECT {_COLUMNS} FROM users WHERE {clause} "
                f"ORDER BY {request.order_by(_SORTABLE)} LIMIT ? OFFSET ?",
                [*params, request.safe_limit, request.offset],
            )
        return Page(
            items=[self._row_to_user(r) for r in rows],
            page=request.safe_page,
            limit=request.safe_limit,
            total=total_rows[0][0],
        )

    async def save(self, user: User) -> int:
        now = _now()
        try:
            async with self._conn.acquire() as conn:
                cursor = await conn.execute(
                    """INSERT INTO users (email, password_hash, name, role, timezone, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (user.email, user.password_hash, user.name, user.role,
                     user.timezone, now, now),
                )
                return cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError(f"User with email '{user.email}' already exists.") from exc

    async def update(self, user_id: int, fields: Mapping[str, Any]) -> None:
        allowed_fields = {"email", "password_hash", "name", "role", "timezone"}
        invalid = set(fields) - allowed_fields
        if invalid:
            raise ValueError(f"Invalid fields {sorted(invalid)}. Allowed: {allowed_fields}")
        if not fields:
            return

        assignments = ", ".join(f"{name} = ?" for name in fields)
        try:
            async with self._conn.acquire() as conn:
                await conn.execute(
                    f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
                    (*fields.values(), _now(), user_id),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError("Email already in use.") from exc

    async def delete(self, user_id: int) -> bool:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_user(row) -> User:
        return User(
            id=row[0], email=row[1], password_hash=row[2], name=row[3],
            role=row[4], timezone=row[5],
            created_at=row[6] or "", updated_at=row[7] or "",
        )
