from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Union

from .conversion import now_utc, to_local
from .models import HourCell, TimeFormat, TimelineRow, TimeOfDay, Zone, ZoneDisplay
from .timezones import TimezoneCatalog

EN_WEEKDAYS_SHORT = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
EN_MONTHS_SHORT = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

TimeFormatLike = Union[TimeFormat, str]


def _format_time_24h(dt: datetime) -> str:
    return f"{dt.hour:02d}:{dt.minute:02d}"


def _format_time_12h(dt: datetime, drop_minutes_if_zero: bool = False) -> str:
    hour = dt.hour
    minute = dt.minute
    suffix = "am" if hour < 12 else "pm"

    hour12 = hour % 12
    if hour12 == 0:
        hour12 = 12

    if minute == 0 and drop_minutes_if_zero:
        return f"{hour12}{suffix}"
    return f"{hour12}:{minute:02d}{suffix}"


def _format_month_day(dt: datetime) -> str:
    # Example: "Jan 15"
    return f"{EN_MONTHS_SHORT[dt.month - 1]} {dt.day}"


def format_time(instant: datetime, tz_name: str, time_format: TimeFormatLike = TimeFormat.H12) -> str:
    """
    Civil time of `instant` in tz_name.
      24h -> "09:05", "17:30"
      12h -> "9:05am", "5:30pm"
    """
    local = to_local(instant, tz_name)
    if TimeFormat(time_format) == TimeFormat.H24:
        return _format_time_24h(local)
    return _format_time_12h(local)


def format_date_display(instant: datetime, tz_name: str) -> str:
    # Example: "Mon, Jan 15"
    local = to_local(instant, tz_name)
    return f"{EN_WEEKDAYS_SHORT[local.weekday()]}, {_format_month_day(local)}"


def utc_offset_hours(instant: datetime, tz_name: str) -> float:
    off = to_local(instant, tz_name).utcoffset()
    if off is None:
        return 0.0
    return off.total_seconds() / 3600


def rounded_offset_hours(instant: datetime, tz_name: str) -> int:
    # half-hours round up (+5.5 -> 6, -3.5 -> -3)
    return int(math.floor(utc_offset_hours(instant, tz_name) + 0.5))


def _format_utc_offset(hours: int) -> str:
    sign = "+" if hours >= 0 else ""
    return f"UTC{sign}{hours}"


def get_offset_display(instant: datetime, tz_name: str) -> str:
    """
    Short label for the zone's offset at `instant`.
    The tz database abbreviation when it is a real one ("EST", "JST", "GMT"),
    otherwise "UTC+N" from the rounded whole-hour offset (numeric
    abbreviations such as "+04" are not used).
    """
    abbr = to_local(instant, tz_name).tzname() or ""
    if abbr and len(abbr) <= 4 and abbr.isalpha() and abbr.isupper():
        return abbr
    return _format_utc_offset(rounded_offset_hours(instant, tz_name))


@dataclass(frozen=True)
class ParsedZoneId:
    region: str
    city: str
    display_name: str


def parse_timezone_id(zone_id: str) -> ParsedZoneId:
    """
    "America/Argentina/Buenos_Aires" -> region "America", city "Argentina/Buenos Aires"
    "UTC" -> region "UTC", no city, display name "UTC"
    """
    parts = zone_id.split("/")
    region = parts[0] if parts else ""
    city = "/".join(parts[1:]).replace("_", " ")
    return ParsedZoneId(region=region, city=city, display_name=city or zone_id)


def create_zone(
    zone_id: str,
    catalog: Optional[TimezoneCatalog] = None,
    at: Optional[datetime] = None,
    is_home: bool = False,
) -> Zone:
    """
    Build the user-facing Zone for an id.
    City and country come from the catalog; ids it does not list (e.g. "UTC")
    fall back to what the id itself says.
    """
    instant = at or now_utc()
    record = catalog.get(zone_id) if catalog is not None else None

    if record is not None:
        city = record.main_cities[0] if record.main_cities else parse_timezone_id(zone_id).display_name
        country = record.country_name
        country_code = record.country_code
    else:
        parsed = parse_timezone_id(zone_id)
        city = parsed.display_name
        country = parsed.region
        country_code = ""

    return Zone(
        id=zone_id,
        city=city,
        country=country,
        country_code=country_code,
        offset=get_offset_display(instant, zone_id),
        offset_hours=rounded_offset_hours(instant, zone_id),
        is_home=is_home,
    )


def build_zone_display(zone: Zone, instant: datetime, time_format: TimeFormatLike = TimeFormat.H12) -> ZoneDisplay:
    return ZoneDisplay(
        zone=zone,
        instant=instant,
        formatted_time=format_time(instant, zone.id, time_format),
        formatted_date=format_date_display(instant, zone.id),
        offset_label=get_offset_display(instant, zone.id),
    )


def time_of_day(hour: int) -> TimeOfDay:
    if 6 <= hour < 18:
        return TimeOfDay.DAY
    if 18 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def build_hour_cell(instant: datetime, tz_name: str, time_format: TimeFormatLike = TimeFormat.H12) -> HourCell:
    """
    One timeline column for one zone. A cell whose local hour is 0 starts a
    new local day and carries month/day labels instead of a time.
    """
    local = to_local(instant, tz_name)
    is_new_day = local.hour == 0

    if TimeFormat(time_format) == TimeFormat.H24:
        label = _format_time_24h(local)
    else:
        label = _format_time_12h(local, drop_minutes_if_zero=True)

    return HourCell(
        instant=instant,
        hour=local.hour,
        label=label,
        time_of_day=time_of_day(local.hour),
        is_new_day=is_new_day,
        month_label=EN_MONTHS_SHORT[local.month - 1] if is_new_day else None,
        day_label=str(local.day) if is_new_day else None,
    )


def build_timeline_row(
    zone: Zone,
    hours: Sequence[datetime],
    time_format: TimeFormatLike = TimeFormat.H12,
) -> TimelineRow:
    return TimelineRow(
        zone=zone,
        cells=tuple(build_hour_cell(h, zone.id, time_format) for h in hours),
    )
