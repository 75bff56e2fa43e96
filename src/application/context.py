"""
application.context - Request-scoped caller context.

Every service call that depends on who is acting receives the caller
explicitly. Two concurrent users get two different SessionContext
instances, no shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from domain.entities import ROLE_ADMIN, User


@dataclass
class SessionContext:
    """The authenticated caller of a request.

    Attributes:
        user_id:    Authenticated user ID (provided by adapter).
        role:       "admin" or "user".
        timezone:   The user's IANA timezone, used for "today".
        email:      Login email, for logging.
        request_id: Unique per request, for tracing/logging.
    """
    user_id: int
    role: str
    timezone: str
    email: str = ""
    request_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def for_user(cls, user: User) -> SessionContext:
        return cls(
            user_id=user.id,
            role=user.role,
            timezone=user.timezone,
            email=user.email,
        )
