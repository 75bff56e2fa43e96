"""
application.services.users - Account management.

Admins list, create, update and delete any account; every user can read and
update their own profile except for the role.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from domain.entities import ROLES, User
from domain.models import Page, PageRequest
from domain.ports import UserRepository
from domain.exceptions import (
    DuplicateEmailError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from application.context import SessionContext
from application.dates import is_valid_timezone
from application.dto import RegisterRequest, UserUpdate
from application.services.authentication import (
    AuthenticationService,
    hash_password,
    normalize_email,
)

logger = logging.getLogger(__name__)


class UserService:
    """CRUD over accounts with role checks."""

    def __init__(self, user_repo: UserRepository, auth_service: AuthenticationService):
        self._user_repo = user_repo
        self._auth = auth_service

    async def get(self, user_id: int) -> User:
        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    async def list(self, actor: SessionContext, request: PageRequest, role: Optional[str] = None) -> Page:
        _require_admin(actor)
        if role is not None and role not in ROLES:
            raise InvalidRequestError(f"Unknown role '{role}'.")
        return await self._user_repo.list(request, role=role)

    async def create(self, actor: SessionContext, request: RegisterRequest) -> User:
        _require_admin(actor)
        user = await self._auth.create_user(request, actor)
        logger.info("Admin %d created user %d (%s)", actor.user_id, user.id, user.role)
        return user

    async def update(self, actor: SessionContext, user_id: int, update: UserUpdate) -> User:
        """Admin update of any account, role included."""
        _require_admin(actor)
        await self.get(user_id)
        await self._apply(user_id, update)
        return await self.get(user_id)

    async def update_self(self, actor: SessionContext, update: UserUpdate) -> User:
        """Self-service update. A role in the update is ignored."""
        await self.get(actor.user_id)
        await self._apply(actor.user_id, UserUpdate(
            email=update.email,
            password=update.password,
            name=update.name,
            timezone=update.timezone,
        ))
        return await self.get(actor.user_id)

    async def delete(self, actor: SessionContext, user_id: int) -> None:
        _require_admin(actor)
        if user_id == actor.user_id:
            raise PermissionDeniedError("Cannot delete your own account.")
        if not await self._user_repo.delete(user_id):
            raise NotFoundError("User not found.")
        logger.info("Admin %d deleted user %d", actor.user_id, user_id)

    async def _apply(self, user_id: int, update: UserUpdate) -> None:
        fields: dict[str, Any] = {}
        if update.email is not None:
            email = normalize_email(update.email)
            other = await self._user_repo.get_by_email(email)
            if other is not None and other.id != user_id:
                raise DuplicateEmailError(f"User with email '{email}' already exists.")
            fields["email"] = email
        if update.password is not None:
            fields["password_hash"] = hash_password(update.password)
        if update.name is not None:
            fields["name"] = update.name.strip()
        if update.timezone is not None:
            if not is_valid_timezone(update.timezone):
                raise InvalidRequestError(f"Unknown timezone '{update.timezone}'.")
            fields["timezone"] = update.timezone
        if update.role is not None:
            if update.role not in ROLES:
                raise InvalidRequestError(f"Unknown role '{update.role}'.")
            fields["role"] = update.role
        if fields:
            await self._user_repo.update(user_id, fields)


def _require_admin(actor: SessionContext) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError("Admin access required.")
