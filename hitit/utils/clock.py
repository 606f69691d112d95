"""Timezone helpers.

SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns, so everything read from the database is normalised to UTC before
it is compared with ``utcnow()``.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def epoch_millis(value: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch, the timestamp unit used on the relay."""
    value = value or utcnow()
    return int(value.timestamp() * 1000)
