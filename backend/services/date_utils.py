"""Date arithmetic shared by every recency and age calculation.

All datetimes handled by the engine are timezone-aware UTC. Naive values
coming from the API layer are assumed to be UTC.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, time

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current instant in UTC. The only wall-clock read in the engine."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str | datetime | date | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC.

    Returns None for empty or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def days_between(a: datetime, b: datetime) -> int:
    """Absolute day difference between two instants, rounded half-up.

    Uses a fixed 24h divisor, so DST never shifts the result.
    """
    seconds = abs((ensure_utc(b) - ensure_utc(a)).total_seconds())
    return math.floor(seconds / SECONDS_PER_DAY + 0.5)


def start_of_day(value: datetime) -> datetime:
    """Midnight (UTC) of the day containing ``value``."""
    value = ensure_utc(value)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)
