from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from .models import TimePosition

HOURS_PER_DAY = 24
ONE_HOUR = timedelta(hours=1)

# How far (in whole hours) around midnight UTC to look for local midnight.
# Real UTC offsets stay well inside +/-24h.
MIDNIGHT_SEARCH_WINDOW = 24

DateLike = Union[date, datetime]


class TimezoneConversionError(ValueError):
    """Raised when timezone conversion cannot be performed (invalid timezone, etc.)."""


def get_zoneinfo(tz_name: str) -> ZoneInfo:
    """
    Load an IANA timezone as ZoneInfo.
    Raises a clear error if tz_name is invalid.
    """
    try:
        return ZoneInfo(tz_name)
    except Exception as e:  # ZoneInfoNotFoundError, ValueError for malformed keys
        raise TimezoneConversionError(f"Invalid IANA timezone: {tz_name}") from e


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert an aware datetime to the target timezone.
    """
    tz = get_zoneinfo(tz_name)
    if dt.tzinfo is None:
        raise TimezoneConversionError("Datetime must be timezone-aware to convert")
    return dt.astimezone(tz)


def resolve_calendar_date(value: DateLike, tz_name: str) -> date:
    """
    The calendar date a caller means, as read in tz_name.

    - a plain date is taken as-is: it already is the calendar day the user picked
    - an aware datetime is an instant; its date is read on tz_name's local calendar,
      so the same instant can be "Jan 15" in Tokyo and "Jan 14" in New York
    - a naive datetime carries no zone and is rejected
    """
    if isinstance(value, datetime):
        return to_local(value, tz_name).date()
    return value


def find_local_midnight(tz_name: str, day: date) -> datetime:
    """
    The UTC instant at which tz_name's local clock first reads 00:00 on `day`.

    Walks whole hours from midnight UTC of `day` (-24h .. +24h) and takes the
    first instant whose local rendering is (`day`, hour 0). For zones with a
    fractional offset (+05:30, +05:45) that instant reads 00:30/00:45, so it is
    pulled back by the local minutes to land on 00:00 exactly.
    """
    tz = get_zoneinfo(tz_name)
    candidate = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)

    for offset in range(-MIDNIGHT_SEARCH_WINDOW, MIDNIGHT_SEARCH_WINDOW + 1):
        test = candidate + timedelta(hours=offset)
        local = test.astimezone(tz)
        if local.date() == day and local.hour == 0:
            return test - timedelta(minutes=local.minute, seconds=local.second)

    # Local midnight does not exist on `day` (a DST jump over 00:00):
    # the day starts at the first whole hour that already reads `day` locally.
    for offset in range(-MIDNIGHT_SEARCH_WINDOW, MIDNIGHT_SEARCH_WINDOW + 1):
        test = candidate + timedelta(hours=offset)
        if test.astimezone(tz).date() == day:
            return test

    raise TimezoneConversionError(f"Cannot locate {day.isoformat()} in {tz_name}")


def generate_day_hours(tz_name: str, selected: DateLike) -> List[datetime]:
    """
    The 24 UTC instants covering `selected` hour by hour in tz_name.

    hours[0] is local midnight of the selected day in tz_name; each following
    instant is exactly one hour later on the instant axis. Local clock jumps
    (DST) only change the labels other zones show for a column, never the spacing.
    """
    day = resolve_calendar_date(selected, tz_name)
    midnight = find_local_midnight(tz_name, day)
    return [midnight + i * ONE_HOUR for i in range(HOURS_PER_DAY)]


def current_time_position(hours: Sequence[datetime], now: datetime) -> Optional[TimePosition]:
    """
    Locate `now` inside a timeline: the column whose hour contains it and how
    far through that hour it is (0-100). None if `now` is outside the grid.
    """
    if not hours:
        return None
    if now.tzinfo is None:
        raise TimezoneConversionError("Datetime must be timezone-aware to convert")

    for index, start in enumerate(hours):
        if start <= now < start + ONE_HOUR:
            elapsed = (now - start).total_seconds()
            return TimePosition(column_index=index, offset_percentage=elapsed / 3600 * 100)
    return None


def week_dates(today: date) -> List[date]:
    """
    Sunday..Saturday of the week containing `today`.
    """
    # date.weekday(): Mon=0 ... Sun=6
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday)
    return [start + timedelta(days=i) for i in range(7)]
