"""Time utilities for consistent timestamp handling."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone.
    """
    return datetime.now(UTC)


def to_millis(dt: datetime) -> int:
    """Convert datetime to epoch milliseconds.

    Args:
        dt: Datetime to convert. Naive values are taken as UTC.

    Returns:
        Milliseconds since the Unix epoch.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return to_millis(utc_now())


def from_millis(ms: int | float) -> datetime:
    """Convert epoch milliseconds to UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


def format_instant(dt: datetime) -> str:
    """Format an instant in the canonical stored form.

    The canonical form is UTC with millisecond precision and a ``Z`` suffix,
    e.g. ``2025-01-01T18:00:00.000Z``.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    dt = dt.astimezone(UTC)
    # strftime does not zero-pad years below 1000 on every platform
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T"
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond // 1000:03d}Z"
    )


def parse_instant(value: str) -> datetime | None:
    """Parse an ISO 8601 string into an aware UTC datetime.

    Args:
        value: Timestamp string. Naive timestamps are taken as UTC.

    Returns:
        Parsed datetime, or None if the string is not a valid instant.
    """
    text = value.strip()
    if not text:
        return None
    try:
        dt = datetime.fromisoformat(text)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        # Offsets near datetime.min/max overflow when shifted to UTC
        return dt.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def local_date_string(timezone: str, now: datetime | None = None) -> str:
    """Calendar date (YYYY-MM-DD) of ``now`` in the given civil time zone."""
    now = now or utc_now()
    return now.astimezone(ZoneInfo(timezone)).strftime("%Y-%m-%d")
