"""
Timestamps. The database stores naive datetimes that are implicitly UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the columns hold."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
