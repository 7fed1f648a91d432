# =============================================================================
# File: sentinel/utils/ids.py
# Description: Identifier and timestamp helpers
# =============================================================================

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

ONE_MICROSECOND = timedelta(microseconds=1)


def generate_id_str() -> str:
    """Generate a new random UUID as string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """
    Current UTC time, forced strictly after previous.

    Two calls within the clock's resolution still yield increasing values.
    """
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + ONE_MICROSECOND
    return now


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (query parameters, asyncpg timestamp without tz)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
