"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

_MS_PER_HOUR = 3_600_000


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def hours_to_timedelta(hours: Decimal) -> timedelta:
    """Convert a (possibly fractional) hour count to a millisecond-resolution timedelta."""
    return timedelta(milliseconds=int(hours * _MS_PER_HOUR))


def ms_until(end: datetime | None, now: datetime) -> int:
    """Milliseconds from now until end, floored at zero. None end -> 0."""
    if end is None:
        return 0
    remaining = (end - now) // timedelta(milliseconds=1)
    return max(0, remaining)
