from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Sequence, Tuple, Union


class TimeFormat(str, Enum):
    """
    Clock style used for rendered times.
    """
    H12 = "12h"
    H24 = "24h"


class IntentKind(str, Enum):
    ADD = "add"
    COMPARE = "compare"
    REMOVE = "remove"
    CLEAR = "clear"
    UNKNOWN = "unknown"


class SuggestionKind(str, Enum):
    CITY = "city"
    COUNTRY = "country"
    TIMEZONE = "timezone"


class TimeOfDay(str, Enum):
    DAY = "day"          # 06:00-17:59
    EVENING = "evening"  # 18:00-21:59
    NIGHT = "night"      # everything else


@dataclass(frozen=True)
class ZoneRecord:
    """
    One entry of the reference timezone dataset.

    id is the IANA identifier and the unique key of the dataset.
    main_cities keeps the dataset order (the first city is the display city).
    """
    id: str
    main_cities: Tuple[str, ...]
    country_name: str
    country_code: str
    alternative_name: str = ""
    continent_name: str = ""


# -----------------------------
# Command intents
# -----------------------------

@dataclass(frozen=True)
class AddIntent:
    zones: Tuple[str, ...]
    kind: IntentKind = field(default=IntentKind.ADD, init=False)


@dataclass(frozen=True)
class CompareIntent:
    """
    zones may contain the same id twice if the user named it twice.
    """
    zones: Tuple[str, ...]
    kind: IntentKind = field(default=IntentKind.COMPARE, init=False)


@dataclass(frozen=True)
class RemoveIntent:
    zones: Tuple[str, ...]
    kind: IntentKind = field(default=IntentKind.REMOVE, init=False)


@dataclass(frozen=True)
class ClearIntent:
    kind: IntentKind = field(default=IntentKind.CLEAR, init=False)


@dataclass(frozen=True)
class UnknownIntent:
    kind: IntentKind = field(default=IntentKind.UNKNOWN, init=False)


CommandIntent = Union[AddIntent, CompareIntent, RemoveIntent, ClearIntent, UnknownIntent]


@dataclass(frozen=True)
class Suggestion:
    """
    One autocomplete candidate. zone_id can be passed straight to add_timezone().
    """
    name: str
    zone_id: str
    kind: SuggestionKind


# -----------------------------
# Display models
# -----------------------------

@dataclass(frozen=True)
class Zone:
    """
    A timezone as shown to the user.
    offset is either a short abbreviation ("EST") or "UTC+N".
    """
    id: str
    city: str
    country: str
    country_code: str
    offset: str
    offset_hours: int
    is_home: bool = False


@dataclass(frozen=True)
class ZoneDisplay:
    zone: Zone
    instant: datetime
    formatted_time: str
    formatted_date: str
    offset_label: str


@dataclass(frozen=True)
class HourCell:
    """
    One column of a zone's timeline row.

    month_label/day_label are only set on cells that start a new local day.
    """
    instant: datetime
    hour: int
    label: str
    time_of_day: TimeOfDay
    is_new_day: bool = False
    month_label: Optional[str] = None
    day_label: Optional[str] = None


@dataclass(frozen=True)
class TimelineRow:
    zone: Zone
    cells: Sequence[HourCell]


@dataclass(frozen=True)
class TimePosition:
    """
    Where an instant falls inside a 24-column grid.
    offset_percentage is 0-100 within the column.
    """
    column_index: int
    offset_percentage: float


@dataclass(frozen=True)
class CommandOutcome:
    """
    Result of running one user command against a comparison session.
    message is empty on silent success.
    """
    success: bool
    intent: CommandIntent
    message: str = ""


@dataclass(frozen=True)
class ShareState:
    """
    View state carried by a share link.
    """
    zones: Tuple[str, ...]
    selected_date: date
    time_format: TimeFormat = TimeFormat.H12
    home: Optional[str] = None
