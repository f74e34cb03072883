from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from ..config import get_settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today() -> date:
    return datetime.now(local_zone()).date()


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_naive_to_local(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc).astimezone(local_zone())


def parse_clock(value: str) -> time:
    """Parse an `HH:MM` wall-clock string."""
    try:
        hours, minutes = (int(part) for part in value.strip().split(":"))
        return time(hour=hours, minute=minutes)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"invalid time {value!r}, expected HH:MM") from exc


def combine_local(day: date, clock: str) -> datetime:
    """Combine a calendar day and `HH:MM` in the configured zone into naive UTC."""
    return to_utc_naive(datetime.combine(day, parse_clock(clock), tzinfo=local_zone()))
