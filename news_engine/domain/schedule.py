"""Schedule date parsing: user local date-time plus zone, normalised to UTC ISO-8601."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_OFFSET = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2}):?(\d{2})?$")


def _parse_zone(zone: str) -> tzinfo:
    zone = zone.strip()
    if zone.upper() in ("Z", "UTC", "GMT"):
        return UTC
    match = _OFFSET.match(zone)
    if match:
        sign, hours, minutes = match.groups()
        delta = timedelta(hours=int(hours), minutes=int(minutes or 0))
        return timezone(-delta if sign == "-" else delta)
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {zone}") from e


def normalize_schedule_date(local_value: str, zone: str | None = None) -> str:
    """
    Convert a user supplied schedule date to a UTC ISO-8601 string.

    ``local_value`` is an ISO date-time ("2026-05-01T09:30" or "2026-05-01 09:30:00").
    When it carries no offset, ``zone`` (an offset like "+02:00" or an IANA id) is
    applied; with neither the value is taken as UTC.
    Raises ValueError on malformed input.
    """
    if not local_value or not local_value.strip():
        raise ValueError("Schedule date is required")
    try:
        parsed = datetime.fromisoformat(local_value.strip())
    except ValueError as e:
        raise ValueError(f"Invalid schedule date: {local_value}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_parse_zone(zone) if zone else UTC)

    return parsed.astimezone(UTC).replace(microsecond=0).isoformat()


def parse_utc(value: str) -> datetime:
    """Parse a stored UTC ISO-8601 value back to an aware datetime."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def is_due(value: str | None, now: datetime) -> bool:
    if not value:
        return False
    return parse_utc(value) <= now
