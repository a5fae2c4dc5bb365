from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from .conversion import generate_day_hours, get_zoneinfo, now_utc
from .formatting import build_timeline_row, build_zone_display, create_zone
from .models import (
    AddIntent,
    ClearIntent,
    CommandIntent,
    CommandOutcome,
    CompareIntent,
    RemoveIntent,
    ShareState,
    TimeFormat,
    TimelineRow,
    UnknownIntent,
    Zone,
    ZoneDisplay,
)
from .parser import EXTRACTION_THRESHOLD, parse_command
from .timezones import TimezoneCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_TIMEZONES = 12
DEFAULT_MAX_COMMAND_LENGTH = 200

MSG_TOO_LONG = "Input is too long. Please keep queries under {limit} characters."
MSG_ADD_NOT_FOUND = "I couldn't find that location. Try: 'New York timezone' or 'Show Paris time'"
MSG_LIMIT = "Maximum of {limit} timezones allowed. Remove some timezones first."
MSG_COMPARE_NEEDS_TWO = "Please specify two locations to compare. Try: 'Compare Tokyo with London'"
MSG_REMOVE_NOT_FOUND = "I couldn't find that timezone to remove. Try: 'Remove New York'"
MSG_REMOVE_ABSENT = "Timezone not found"
MSG_UNKNOWN = (
    "I didn't understand that. Try: 'New York timezone', "
    "'Compare Tokyo with London', or 'Remove Paris'"
)


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class ComparisonSession:
    """
    State owner for one comparison view:
    - ordered list of active zone ids (no duplicates)
    - exactly one home zone whenever the list is non-empty
    - selected date and clock style

    execute() turns free text into state changes and never raises for user input;
    every result is a CommandOutcome the caller can show as-is.
    """

    def __init__(
        self,
        catalog: TimezoneCatalog,
        zones: Sequence[str] = (),
        home: Optional[str] = None,
        selected_date: Optional[date] = None,
        time_format: TimeFormat = TimeFormat.H12,
        max_timezones: int = DEFAULT_MAX_TIMEZONES,
        max_command_length: int = DEFAULT_MAX_COMMAND_LENGTH,
        extraction_threshold: float = EXTRACTION_THRESHOLD,
    ) -> None:
        self.catalog = catalog
        self.max_timezones = max_timezones
        self.max_command_length = max_command_length
        self.extraction_threshold = extraction_threshold
        self.selected_date = selected_date or date.today()
        self.time_format = TimeFormat(time_format)

        self._zones: List[str] = []
        self._home: Optional[str] = None

        for zone_id in zones:
            self.add_timezone(zone_id)
        if home is not None and home in self._zones:
            self._home = home

    @classmethod
    def from_share_state(cls, catalog: TimezoneCatalog, state: ShareState, **kwargs) -> "ComparisonSession":
        return cls(
            catalog,
            zones=state.zones,
            home=state.home,
            selected_date=state.selected_date,
            time_format=state.time_format,
            **kwargs,
        )

    def to_share_state(self) -> ShareState:
        return ShareState(
            zones=tuple(self._zones),
            selected_date=self.selected_date,
            time_format=self.time_format,
            home=self._home,
        )

    # -----------------------------
    # State
    # -----------------------------

    @property
    def zones(self) -> List[str]:
        return list(self._zones)

    @property
    def home(self) -> Optional[str]:
        return self._home

    @property
    def reference_zone(self) -> Optional[str]:
        """
        Zone whose local day defines the timeline: home, else the first zone.
        """
        if self._home is not None:
            return self._home
        return self._zones[0] if self._zones else None

    def add_timezone(self, zone_id: str) -> bool:
        """
        Append a zone. Returns False if it is already present or the list is full.
        Raises TimezoneConversionError for an id the tz database does not know.
        """
        get_zoneinfo(zone_id)
        if zone_id in self._zones or len(self._zones) >= self.max_timezones:
            return False

        self._zones.append(zone_id)
        if self._home is None:
            self._home = zone_id
        logger.info("Added timezone %s (%d active)", zone_id, len(self._zones))
        return True

    def remove_timezone(self, zone_id: str) -> bool:
        if zone_id not in self._zones:
            return False

        self._zones.remove(zone_id)
        if self._home == zone_id:
            self._home = self._zones[0] if self._zones else None
        logger.info("Removed timezone %s (%d active)", zone_id, len(self._zones))
        return True

    def reorder(self, ordered_ids: Sequence[str]) -> None:
        """
        Put the given ids first, in the given order; the rest keep their relative order.
        Ids that are not active are ignored.
        """
        front = [z for z in _unique(ordered_ids) if z in self._zones]
        rest = [z for z in self._zones if z not in front]
        self._zones = front + rest

    def set_home(self, zone_id: str) -> bool:
        if zone_id not in self._zones:
            return False
        self._home = zone_id
        logger.info("Home timezone set to %s", zone_id)
        return True

    def clear(self) -> None:
        self._zones = []
        self._home = None
        logger.info("Cleared all timezones")

    # -----------------------------
    # Commands
    # -----------------------------

    def execute(self, text: str) -> CommandOutcome:
        raw = text or ""
        if len(raw) > self.max_command_length:
            return CommandOutcome(
                success=False,
                intent=UnknownIntent(),
                message=MSG_TOO_LONG.format(limit=self.max_command_length),
            )

        intent = parse_command(raw, self.catalog, threshold=self.extraction_threshold)
        logger.debug("Parsed %r as %s", raw, intent)
        return self.apply(intent)

    def apply(self, intent: CommandIntent) -> CommandOutcome:
        if isinstance(intent, AddIntent):
            return self._apply_add(intent)
        if isinstance(intent, CompareIntent):
            return self._apply_compare(intent)
        if isinstance(intent, RemoveIntent):
            return self._apply_remove(intent)
        if isinstance(intent, ClearIntent):
            self.clear()
            return CommandOutcome(success=True, intent=intent)
        return CommandOutcome(success=False, intent=intent, message=MSG_UNKNOWN)

    def _limit_exceeded(self, new_ids: Sequence[str]) -> bool:
        return len(self._zones) + len(new_ids) > self.max_timezones

    def _apply_add(self, intent: AddIntent) -> CommandOutcome:
        if not intent.zones:
            return CommandOutcome(success=False, intent=intent, message=MSG_ADD_NOT_FOUND)

        new_ids = [z for z in _unique(intent.zones) if z not in self._zones]
        if self._limit_exceeded(new_ids):
            return CommandOutcome(
                success=False,
                intent=intent,
                message=MSG_LIMIT.format(limit=self.max_timezones),
            )

        for zone_id in new_ids:
            self.add_timezone(zone_id)
        return CommandOutcome(success=True, intent=intent)

    def _apply_compare(self, intent: CompareIntent) -> CommandOutcome:
        compared = _unique(intent.zones)
        if len(compared) < 2:
            return CommandOutcome(success=False, intent=intent, message=MSG_COMPARE_NEEDS_TWO)

        new_ids = [z for z in compared if z not in self._zones]
        if self._limit_exceeded(new_ids):
            return CommandOutcome(
                success=False,
                intent=intent,
                message=MSG_LIMIT.format(limit=self.max_timezones),
            )

        for zone_id in new_ids:
            self.add_timezone(zone_id)
        self.reorder(compared)
        return CommandOutcome(success=True, intent=intent)

    def _apply_remove(self, intent: RemoveIntent) -> CommandOutcome:
        if not intent.zones:
            return CommandOutcome(success=False, intent=intent, message=MSG_REMOVE_NOT_FOUND)

        removed = 0
        for zone_id in _unique(intent.zones):
            if self.remove_timezone(zone_id):
                removed += 1

        if removed == 0:
            return CommandOutcome(success=False, intent=intent, message=MSG_REMOVE_ABSENT)
        return CommandOutcome(success=True, intent=intent)

    # -----------------------------
    # Views
    # -----------------------------

    def active_zones(self, at: Optional[datetime] = None) -> List[Zone]:
        instant = at or now_utc()
        return [
            create_zone(zone_id, self.catalog, at=instant, is_home=zone_id == self._home)
            for zone_id in self._zones
        ]

    def displays(self, at: Optional[datetime] = None) -> List[ZoneDisplay]:
        """
        Current (or `at`) civil time of every active zone, in list order.
        """
        instant = at or now_utc()
        return [build_zone_display(zone, instant, self.time_format) for zone in self.active_zones(instant)]

    def reference_hours(self) -> List[datetime]:
        """
        The 24 instants of the selected date in the reference zone; empty with no zones.
        """
        reference = self.reference_zone
        if reference is None:
            return []
        return generate_day_hours(reference, self.selected_date)

    def timeline_rows(self) -> List[TimelineRow]:
        hours = self.reference_hours()
        if not hours:
            return []
        return [build_timeline_row(zone, hours, self.time_format) for zone in self.active_zones(hours[0])]
