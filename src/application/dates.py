"""
application.dates - Calendar-day computation in a user's timezone.

The date string is part of the (user_id, date) uniqueness key of daily
suggestions, so it must always be YYYY-MM-DD in the user's local zone.
"""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from domain.exceptions import InvalidRequestError

DATE_FORMAT = "%Y-%m-%d"


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising InvalidRequestError if unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidRequestError(f"Unknown timezone '{name}'.") from exc


def is_valid_timezone(name: str) -> bool:
    try:
        get_zone(name)
    except InvalidRequestError:
        return False
    return True


def today_in_timezone(name: str, now: Optional[datetime] = None) -> str:
    """Return today's date in zone `name` as YYYY-MM-DD.

    `now` must be timezone-aware when given; naive values are taken as UTC.
    """
    zone = get_zone(name)
    if now is None:
        now = datetime.now(dt_timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)
    return now.astimezone(zone).strftime(DATE_FORMAT)
