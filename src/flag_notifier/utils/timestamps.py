"""UTC timestamp helpers."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to timezone-aware UTC.

    The REST layer serializes JavaScript dates with a 'Z' suffix, but older
    records and hand-written fixtures may carry naive timestamps. Naive
    values are assumed to already be UTC.

    Args:
        value: Datetime to normalize (None passes through)

    Returns:
        Timezone-aware UTC datetime, or None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
