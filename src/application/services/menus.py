"""
application.services.menus - Menu catalog management.

Thin CRUD over MenuRepository. Writes invalidate the candidate cache for
the affected meal slots so new or deactivated dishes show up in the next
suggestion instead of after the cache TTL.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from domain.models import MealType, MenuItem, Page, PageRequest
from domain.ports import MenuRepository
from domain.exceptions import InvalidRequestError, NotFoundError, PermissionDeniedError
from application.context import SessionContext
from application.services.candidate_cache import CandidateCache

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = {
    "title", "meal_type", "cuisine", "is_active", "notes",
    "allergens", "budget_min", "budget_max", "image_url",
}


class MenuService:
    """Read access for everyone, writes for admins."""

    def __init__(self, menu_repo: MenuRepository, cache: CandidateCache):
        self._menu_repo = menu_repo
        self._cache = cache

    async def get(self, menu_id: int) -> MenuItem:
        item = await self._menu_repo.get_by_id(menu_id)
        if item is None:
            raise NotFoundError("Menu not found.")
        return item

    async def list(
        self,
        request: PageRequest,
        meal_type: Optional[MealType] = None,
        cuisine: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page:
        return await self._menu_repo.list(
            request, meal_type=meal_type, cuisine=cuisine, is_active=is_active,
        )

    async def create(self, actor: SessionContext, fields: Mapping[str, Any]) -> MenuItem:
        _require_admin(actor)
        data = _clean(fields)
        for required in ("title", "meal_type", "cuisine"):
            if not data.get(required):
                raise InvalidRequestError(f"'{required}' is required.")
        _check_budget(data.get("budget_min"), data.get("budget_max"))

        item = await self._menu_repo.save(data)
        self._cache.invalidate(item.meal_type)
        logger.info("Menu %d '%s' created by user %d", item.id, item.title, actor.user_id)
        return item

    async def update(self, actor: SessionContext, menu_id: int, fields: Mapping[str, Any]) -> MenuItem:
        _require_admin(actor)
        current = await self.get(menu_id)
        data = _clean(fields)
        _check_budget(
            data.get("budget_min", current.budget_min),
            data.get("budget_max", current.budget_max),
        )

        item = await self._menu_repo.update(menu_id, data)
        if item is None:
            raise NotFoundError("Menu not found.")
        self._cache.invalidate(current.meal_type)
        if item.meal_type != current.meal_type:
            self._cache.invalidate(item.meal_type)
        logger.info("Menu %d updated by user %d: %s", menu_id, actor.user_id, sorted(data))
        return item

    async def delete(self, actor: SessionContext, menu_id: int) -> None:
        _require_admin(actor)
        current = await self.get(menu_id)
        if not await self._menu_repo.delete(menu_id):
            raise NotFoundError("Menu not found.")
        self._cache.invalidate(current.meal_type)
        logger.info("Menu %d deleted by user %d", menu_id, actor.user_id)


def _clean(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _WRITABLE_FIELDS
    if unknown:
        raise InvalidRequestError(f"Unknown menu fields: {sorted(unknown)}")
    data = dict(fields)
    if "meal_type" in data and data["meal_type"] is not None:
        try:
            data["meal_type"] = MealType(data["meal_type"])
        except ValueError as exc:
            raise InvalidRequestError(f"Unknown meal type '{data['meal_type']}'.") from exc
    if "allergens" in data:
        data["allergens"] = sorted({a.strip() for a in data["allergens"] or [] if a.strip()})
    return data


def _check_budget(budget_min: Optional[float], budget_max: Optional[float]) -> None:
    if budget_min is not None and budget_min < 0:
        raise InvalidRequestError("budget_min must be >= 0.")
    if budget_max is not None and budget_max < 0:
        raise InvalidRequestError("budget_max must be >= 0.")
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise InvalidRequestError("budget_min must not exceed budget_max.")


def _require_admin(actor: SessionContext) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError("Admin access required.")
