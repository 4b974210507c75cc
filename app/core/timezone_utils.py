from datetime import datetime, time, timezone, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings

try:
    LOCAL_TZ = ZoneInfo(settings.LOCAL_TIMEZONE)
except ZoneInfoNotFoundError:
    # fallback to a fixed -03:00 offset if the tz database isn't available
    LOCAL_TZ = timezone(timedelta(hours=-3))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_local(dt: datetime):
    """Convert a stored timestamp to the canteen's local timezone.

    Naive values are assumed to be UTC (SQLite drops tzinfo on the way in).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(LOCAL_TZ)


def as_utc(dt: datetime):
    """Return dt as an aware UTC datetime, treating naive values as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_today():
    return datetime.now(LOCAL_TZ).date()


def local_day_range_to_utc(date_str: str):
    """Given a local date string (YYYY-MM-DD or ISO datetime), return
    a tuple (start_utc, end_utc) representing the UTC datetime range for that
    local day.

    Examples:
      '2026-01-11' -> 2026-01-11 00:00:00-03:00 .. 23:59:59.999999-03:00 (as UTC)
      '2026-01-11T10:00:00' -> start=end of that instant

    Returns (None, None) when the string cannot be parsed or the range falls
    outside what datetime can represent.
    """
    if not date_str:
        return None, None

    try:
        if len(date_str) == 10:
            d = datetime.fromisoformat(date_str)
            start_local = datetime.combine(d.date(), time.min)
            end_local = datetime.combine(d.date(), time.max)
        else:
            d = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
            start_local = d
            end_local = d
    except ValueError:
        return None, None

    def _aware(dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=LOCAL_TZ)
        return dt

    try:
        return _aware(start_local).astimezone(timezone.utc), _aware(end_local).astimezone(timezone.utc)
    except OverflowError:
        # e.g. 9999-12-31 end of day west of UTC falls past datetime.max
        return None, None
