"""
application.services.preferences - Dietary and budget preferences.

A user without a stored preference gets an empty one created on first read.
Updates are partial: only the supplied fields change.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from domain.models import Preference, parse_meal_types
from domain.ports import PreferenceRepository
from domain.exceptions import InvalidRequestError, PermissionDeniedError
from application.context import SessionContext

logger = logging.getLogger(__name__)

_FIELDS = {"cuisines", "allergens_avoid", "budget_min", "budget_max", "excluded_meal_types"}


class PreferenceService:
    """Get-or-create and partial update of a user's preferences."""

    def __init__(self, preference_repo: PreferenceRepository):
        self._repo = preference_repo

    async def get_or_create(self, user_id: int) -> Preference:
        preference = await self._repo.find_by_user(user_id)
        if preference is None:
            preference = await self._repo.upsert(user_id, {})
            logger.debug("Created default preferences for user %d", user_id)
        return preference

    async def update(self, user_id: int, fields: Mapping[str, Any]) -> Preference:
        unknown = set(fields) - _FIELDS
        if unknown:
            raise InvalidRequestError(f"Unknown preference fields: {sorted(unknown)}")

        data: dict[str, Any] = {}
        for key in ("cuisines", "allergens_avoid"):
            if key in fields:
                data[key] = _clean_tags(fields[key])
        if "excluded_meal_types" in fields:
            try:
                data["excluded_meal_types"] = parse_meal_types(fields["excluded_meal_types"] or [])
            except ValueError as exc:
                raise InvalidRequestError(str(exc)) from exc
        for key in ("budget_min", "budget_max"):
            if key in fields:
                if fields[key] is not None and fields[key] < 0:
                    raise InvalidRequestError(f"{key} must be >= 0.")
                data[key] = fields[key]

        current = await self._repo.find_by_user(user_id)
        budget_min = data.get("budget_min", current.budget_min if current else None)
        budget_max = data.get("budget_max", current.budget_max if current else None)
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise InvalidRequestError("budget_min must not exceed budget_max.")

        preference = await self._repo.upsert(user_id, data)
        logger.info("Preferences updated for user %d: %s", user_id, sorted(data))
        return preference

    async def get_for(self, actor: SessionContext, user_id: int) -> Preference:
        """Admin read of another user's preferences."""
        _require_self_or_admin(actor, user_id)
        return await self.get_or_create(user_id)

    async def update_for(self, actor: SessionContext, user_id: int, fields: Mapping[str, Any]) -> Preference:
        _require_self_or_admin(actor, user_id)
        return await self.update(user_id, fields)


def _clean_tags(values) -> tuple[str, ...]:
    seen: list[str] = []
    for value in values or []:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def _require_self_or_admin(actor: SessionContext, user_id: int) -> None:
    if actor.user_id != user_id and not actor.is_admin:
        raise PermissionDeniedError("Admin access required.")
