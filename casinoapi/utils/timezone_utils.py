"""UTC helpers. The database may hand back naive datetimes; those are UTC."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_utc(dt: Optional[datetime]) -> str:
    """ISO 8601 with a trailing Z, or an empty string."""
    value = as_utc(dt)
    if value is None:
        return ""
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compact_date(dt: datetime) -> str:
    return as_utc(dt).strftime("%Y%m%d")
