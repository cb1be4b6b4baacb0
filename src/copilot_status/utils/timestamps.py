"""Timestamp parsing and calendar helpers.

Session timestamps are ISO 8601 strings. Offset-less values are taken as
local time. Date matching is done on the UTC calendar date while hourly
buckets use the local hour.
"""

from datetime import datetime, timezone


def parse_timestamp(ts_value) -> datetime | None:
    """Parse a timestamp into an aware datetime, or None if it can't be read."""
    if isinstance(ts_value, bool):
        return None
    if isinstance(ts_value, (int, float)):
        try:
            seconds = ts_value / 1000 if ts_value > 1e12 else ts_value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(ts_value, str) or not ts_value.strip():
        return None
    try:
        # ISO 8601 format: "2026-02-13T12:00:00.000Z"
        dt = datetime.fromisoformat(ts_value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def utc_date(dt: datetime) -> str:
    """YYYY-MM-DD of the instant in UTC."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")


def local_hour_key(dt: datetime) -> str:
    """Two-digit local hour, "00".."23"."""
    return f"{dt.astimezone().hour:02d}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def today_utc(now: datetime | None = None) -> str:
    if now is None:
        now = utc_now()
    return utc_date(now)


def is_valid_date(value: str) -> bool:
    """Check a YYYY-MM-DD date string."""
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        return False
    return len(value) == 10
