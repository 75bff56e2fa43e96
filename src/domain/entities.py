"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Decoupled from any persistence strategy: no SQL concerns, no DB imports.
Timestamps are set by the repository implementations, not by the entities
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)

DEFAULT_SCHEDULE_TIMES = ("08:00", "12:00", "18:00")


@dataclass
class User:
    """Account holder. Email is unique and stored lower-cased."""
    id: Optional[int] = None
    email: str = ""
    password_hash: str = ""
    name: str = ""
    role: str = ROLE_USER
    timezone: str = "Asia/Bangkok"
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_public_dict(self) -> dict:
        """Everything except the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "timezone": self.timezone,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Schedule:
    """Notification times for a user (HH:mm, 24-hour) in a timezone."""
    user_id: Optional[int] = None
    times: list[str] = field(default_factory=lambda: list(DEFAULT_SCHEDULE_TIMES))
    timezone: str = "Asia/Bangkok"
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
