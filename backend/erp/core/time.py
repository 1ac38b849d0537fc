"""Time utilities for timezone-aware UTC datetimes.

Schedules are entered as a local calendar date plus wall-clock times in the
center's zone. They are converted to absolute UTC instants exactly once, at the
request boundary, and every comparison afterwards happens on instants.
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def is_valid_timezone(name: str | None) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def resolve_timezone(name: str | None, default: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    """Return the zone for an IANA name, falling back to ``default`` when unknown."""
    if is_valid_timezone(name):
        return ZoneInfo(name)
    if name:
        logger.warning("timezone_fallback", requested=name, fallback=default)
    return ZoneInfo(default)


def to_instant(day: date, wall_time: time, tz: ZoneInfo) -> datetime:
    """Combine a local date and wall-clock time in ``tz`` into a UTC instant.

    Raises ``ValueError`` when ``wall_time`` already carries an offset.
    """
    if wall_time.tzinfo is not None:
        raise ValueError("Wall-clock time must not carry a UTC offset")
    local = datetime.combine(day, wall_time).replace(tzinfo=tz)
    return local.astimezone(UTC)


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    return ensure_utc(instant).astimezone(tz)
