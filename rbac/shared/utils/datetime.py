"""
UTC datetime helpers.

Expiry comparisons in the resolver and assignment services must compare
timezone-aware UTC values. SQLite hands back naive datetimes, so every value
read from storage goes through ensure_utc() before it is compared.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive values are stored as UTC
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """Return True if expires_at is set and not in the future.

    A grant with no expiry never expires. A grant whose expiry equals now
    is already inert.
    """
    if expires_at is None:
        return False
    return ensure_utc(expires_at) <= (now or utc_now())
