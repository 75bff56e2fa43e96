"""
application.services.schedules - Per-user notification schedules.

Defaults to three reminders (08:00, 12:00, 18:00) in the user's timezone,
created on first read.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from domain.entities import DEFAULT_SCHEDULE_TIMES, Schedule
from domain.ports import ScheduleRepository
from domain.exceptions import InvalidRequestError, PermissionDeniedError
from application.context import SessionContext
from application.dates import is_valid_timezone

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def normalize_time(value: str) -> str:
    """Validate HH:mm (24-hour) and zero-pad the hour."""
    value = value.strip()
    if not _TIME_RE.match(value):
        raise InvalidRequestError(f"Time '{value}' must be in HH:mm format (24-hour).")
    hour, minute = value.split(":")
    return f"{int(hour):02d}:{minute}"


class ScheduleService:
    """Get-or-create and partial update of notification schedules."""

    def __init__(self, schedule_repo: ScheduleRepository):
        self._repo = schedule_repo

    async def get_or_create(self, user_id: int, timezone: str) -> Schedule:
        schedule = await self._repo.find_by_user(user_id)
        if schedule is None:
            schedule = await self._repo.upsert(user_id, {
                "times": list(DEFAULT_SCHEDULE_TIMES),
                "timezone": timezone,
            })
            logger.debug("Created default schedule for user %d (%s)", user_id, timezone)
        return schedule

    async def update(self, user_id: int, fields: Mapping[str, Any], timezone: str) -> Schedule:
        """Partial update; a missing schedule is first created with defaults
        in `timezone` (the user's own zone)."""
        await self.get_or_create(user_id, timezone)
        data: dict[str, Any] = {}
        if fields.get("times") is not None:
            data["times"] = sorted({normalize_time(t) for t in fields["times"]})
        if fields.get("timezone") is not None:
            if not is_valid_timezone(fields["timezone"]):
                raise InvalidRequestError(f"Unknown timezone '{fields['timezone']}'.")
            data["timezone"] = fields["timezone"]

        schedule = await self._repo.upsert(user_id, data)
        logger.info("Schedule updated for user %d: %s", user_id, sorted(data))
        return schedule

    async def get_for(self, actor: SessionContext, user_id: int, timezone: str) -> Schedule:
        _require_self_or_admin(actor, user_id)
        return await self.get_or_create(user_id, timezone)

    async def update_for(
        self,
        actor: SessionContext,
        user_id: int,
        fields: Mapping[str, Any],
        timezone: str,
    ) -> Schedule:
        _require_self_or_admin(actor, user_id)
        return await self.update(user_id, fields, timezone)


def _require_self_or_admin(actor: SessionContext, user_id: int) -> None:
    if actor.user_id != user_id and not actor.is_admin:
        raise PermissionDeniedError("Admin access required.")
