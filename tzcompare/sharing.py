"""
Share-link state codec.

A comparison view is carried in a query string:

    ?tz=America/New_York,Europe/London&date=2024-01-15&format=24h&home=Europe/London

Parsing is forgiving: anything malformed falls back to a default instead of
failing, because links get truncated and hand-edited.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import parse_qs, urlencode

from .models import ShareState, TimeFormat

TIMEZONES_PARAM = "tz"
DATE_PARAM = "date"
FORMAT_PARAM = "format"
HOME_PARAM = "home"

DEFAULT_MAX_TIMEZONES = 12

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

QueryLike = Union[str, Mapping[str, Union[str, Sequence[str]]]]


def parse_timezone_list(value: Optional[str]) -> List[str]:
    """
    "America/New_York,,Europe/London" -> ["America/New_York", "Europe/London"]
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def serialize_timezone_list(zones: Iterable[str]) -> str:
    return ",".join(zones)


def parse_date(value: Optional[str], today: Optional[date] = None) -> date:
    """
    Strict YYYY-MM-DD; anything else (including impossible dates) is today.
    """
    fallback = today or date.today()
    if not value:
        return fallback

    m = ISO_DATE_RE.match(value.strip())
    if not m:
        return fallback

    year, month, day = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return fallback


def serialize_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_time_format(value: Optional[str]) -> TimeFormat:
    try:
        return TimeFormat((value or "").strip().lower())
    except ValueError:
        return TimeFormat.H12


def _single(params: Mapping[str, Union[str, Sequence[str]]], key: str) -> Optional[str]:
    value = params.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value[0] if value else None


def parse_share_query(
    query: QueryLike,
    is_known_zone: Optional[Callable[[str], bool]] = None,
    max_timezones: int = DEFAULT_MAX_TIMEZONES,
    today: Optional[date] = None,
) -> ShareState:
    """
    Decode a query string (or an already parsed mapping) into a ShareState.

    - zone ids are de-duplicated in order; unknown ids are dropped when
      is_known_zone is given; at most max_timezones are kept
    - home is dropped unless it is one of the kept zones
    """
    if isinstance(query, str):
        params: Mapping[str, Union[str, Sequence[str]]] = parse_qs(query.lstrip("?"))
    else:
        params = query

    zones: List[str] = []
    for zone_id in parse_timezone_list(_single(params, TIMEZONES_PARAM)):
        if zone_id in zones:
            continue
        if is_known_zone is not None and not is_known_zone(zone_id):
            continue
        zones.append(zone_id)
    zones = zones[:max_timezones]

    home = (_single(params, HOME_PARAM) or "").strip() or None
    if home not in zones:
        home = None

    return ShareState(
        zones=tuple(zones),
        selected_date=parse_date(_single(params, DATE_PARAM), today=today),
        time_format=parse_time_format(_single(params, FORMAT_PARAM)),
        home=home,
    )


def build_share_query(state: ShareState) -> str:
    """
    Encode a ShareState; "/" and "," are left readable.
    """
    params = [
        (TIMEZONES_PARAM, serialize_timezone_list(state.zones)),
        (DATE_PARAM, serialize_date(state.selected_date)),
        (FORMAT_PARAM, state.time_format.value),
    ]
    if state.home:
        params.append((HOME_PARAM, state.home))
    return urlencode(params, safe="/,")
