from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """Normalise to naive UTC. Naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_naive_to_aware(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc)


def _normalised(dt: datetime) -> Optional[datetime]:
    # An offset can push a valid local time past year 1 or 9999 once shifted to UTC.
    try:
        return to_utc_naive(dt)
    except (ValueError, OverflowError):
        return None


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse an ISO-8601 string, date or datetime into naive UTC; None if it is not a date."""
    if isinstance(value, datetime):
        return _normalised(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _normalised(parsed)
