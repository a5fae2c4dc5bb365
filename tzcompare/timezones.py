"""
Timezone reference data - single source of truth.

This module owns the zone dataset (ISO-3166 zone tables from pytz, filtered to
what zoneinfo can load, enriched with zone_details.yaml), the colloquial alias
table, and the TimezoneCatalog that memoizes the lookup structures built from them.
"""
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from zoneinfo import available_timezones

import pytz
import yaml

from .models import ZoneRecord
from .search import DEFAULT_MIN_QUERY_LENGTH, DEFAULT_THRESHOLD, ZoneSearchIndex

logger = logging.getLogger(__name__)

ZONE_DETAILS_PATH = Path(__file__).with_name("zone_details.yaml")

# Colloquial names, abbreviations and "pick one zone" country choices.
# Applied after the dataset mappings and always win.
COMMON_ALIASES: Dict[str, str] = {
    # United States
    "usa": "America/New_York",
    "us": "America/New_York",
    "america": "America/New_York",
    "nyc": "America/New_York",
    "ny": "America/New_York",
    "la": "America/Los_Angeles",
    "sf": "America/Los_Angeles",
    "san francisco": "America/Los_Angeles",
    "chicago": "America/Chicago",
    "boston": "America/New_York",
    "miami": "America/New_York",

    # Europe
    "london": "Europe/London",
    "uk": "Europe/London",
    "britain": "Europe/London",
    "paris": "Europe/Paris",
    "france": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "germany": "Europe/Berlin",
    "moscow": "Europe/Moscow",
    "russia": "Europe/Moscow",

    # Asia
    "tokyo": "Asia/Tokyo",
    "japan": "Asia/Tokyo",
    "beijing": "Asia/Shanghai",
    "china": "Asia/Shanghai",
    "shanghai": "Asia/Shanghai",
    "hong kong": "Asia/Hong_Kong",
    "singapore": "Asia/Singapore",
    "dubai": "Asia/Dubai",
    "uae": "Asia/Dubai",
    "india": "Asia/Kolkata",
    "delhi": "Asia/Kolkata",
    "mumbai": "Asia/Kolkata",
    "bangalore": "Asia/Kolkata",
    "korea": "Asia/Seoul",
    "seoul": "Asia/Seoul",
    "taiwan": "Asia/Taipei",
    "taipei": "Asia/Taipei",

    # Oceania
    "sydney": "Australia/Sydney",
    "melbourne": "Australia/Melbourne",
    "australia": "Australia/Sydney",

    # Americas (outside the US)
    "brazil": "America/Sao_Paulo",
    "sao paulo": "America/Sao_Paulo",
    "rio": "America/Sao_Paulo",
    "mexico": "America/Mexico_City",
    "mexico city": "America/Mexico_City",
    "toronto": "America/Toronto",
    "canada": "America/Toronto",
    "vancouver": "America/Vancouver",
}

# IANA region prefix -> continent label
REGION_TO_CONTINENT: Dict[str, str] = {
    "Africa": "Africa",
    "America": "North America",
    "Antarctica": "Antarctica",
    "Arctic": "Europe",
    "Asia": "Asia",
    "Atlantic": "Europe",
    "Australia": "Oceania",
    "Europe": "Europe",
    "Indian": "Asia",
    "Pacific": "Oceania",
}

SOUTH_AMERICA_COUNTRY_CODES = frozenset(
    {"AR", "BO", "BR", "CL", "CO", "EC", "FK", "GF", "GY", "PE", "PY", "SR", "UY", "VE"}
)


def _load_zone_details(path: Path = ZONE_DETAILS_PATH) -> Dict[str, Any]:
    """
    Load zone_details.yaml. A missing file means "no curated details".
    """
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a YAML mapping/object at top-level")
    return data


def city_from_zone_id(zone_id: str) -> str:
    # "America/Argentina/Buenos_Aires" -> "Buenos Aires"
    return zone_id.rsplit("/", 1)[-1].replace("_", " ")


def continent_for(zone_id: str, country_code: str) -> str:
    region = zone_id.split("/", 1)[0]
    if region == "America" and country_code in SOUTH_AMERICA_COUNTRY_CODES:
        return "South America"
    return REGION_TO_CONTINENT.get(region, region)


def load_zone_records() -> List[ZoneRecord]:
    """
    Build the reference dataset.

    One record per zone id listed in the ISO-3166 zone table, restricted to ids
    the local tz database can load. Sorted by id so "first zone wins" policies
    are deterministic.
    """
    details = _load_zone_details()
    zone_details: Dict[str, Dict[str, Any]] = details.get("zones") or {}
    country_overrides: Dict[str, str] = details.get("country_names") or {}
    loadable = available_timezones()

    by_id: Dict[str, ZoneRecord] = {}
    for country_code, zone_ids in pytz.country_timezones.items():
        country_name = country_overrides.get(country_code) or pytz.country_names.get(
            country_code, country_code
        )
        for zone_id in zone_ids:
            if zone_id in by_id:
                continue
            if loadable and zone_id not in loadable:
                continue

            curated = zone_details.get(zone_id) or {}
            cities = tuple(curated.get("main_cities") or ()) or (city_from_zone_id(zone_id),)

            by_id[zone_id] = ZoneRecord(
                id=zone_id,
                main_cities=cities,
                country_name=country_name,
                country_code=country_code,
                alternative_name=curated.get("alternative_name") or "",
                continent_name=continent_for(zone_id, country_code),
            )

    return [by_id[k] for k in sorted(by_id)]


def load_representative_zones(path: Path = ZONE_DETAILS_PATH) -> Dict[str, str]:
    """
    Shared name -> the zone it should resolve to ("United States" -> America/New_York).
    """
    details = _load_zone_details(path)
    return dict(details.get("representative_zones") or {})


def _name_keys(name: str) -> List[str]:
    # "Eastern Time" is also reachable as "eastern": the parser strips a trailing "time"
    key = name.lower()
    if key.endswith(" time"):
        return [key, key[: -len(" time")]]
    return [key]


def build_alias_index(
    records: Sequence[ZoneRecord],
    aliases: Mapping[str, str] = COMMON_ALIASES,
    representatives: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Map lowercase human-readable names to zone ids.

    Order of registration:
    - every main city, plus a space-free variant ("new york" and "newyork")
    - the country name and the alternative name, only if the key is still
      free (first zone wins)
    - representative zones for shared names, overwriting the first-zone pick;
      entries pointing outside `records` are skipped
    - the colloquial aliases, overwriting anything registered before
    """
    index: Dict[str, str] = {}
    known = {r.id for r in records}

    for record in records:
        for city in record.main_cities:
            key = city.lower()
            index[key] = record.id
            if " " in key:
                index[key.replace(" ", "")] = record.id

        if record.country_name:
            index.setdefault(record.country_name.lower(), record.id)

        if record.alternative_name:
            for key in _name_keys(record.alternative_name):
                index.setdefault(key, record.id)

    for name, zone_id in (representatives or {}).items():
        if zone_id not in known:
            continue
        for key in _name_keys(name):
            index[key] = zone_id

    for alias, zone_id in aliases.items():
        index[alias.lower()] = zone_id

    return index


ZoneProvider = Callable[[], Sequence[ZoneRecord]]


class TimezoneCatalog:
    """
    Lazily built, memoized view of the zone dataset.

    Owned by the application's composition root and handed to the parser,
    the suggestion engine and the comparison session. Every structure is
    built together, once, on first access; later calls only read.
    """

    def __init__(
        self,
        provider: ZoneProvider = load_zone_records,
        aliases: Mapping[str, str] = COMMON_ALIASES,
        search_threshold: float = DEFAULT_THRESHOLD,
        min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
        representatives: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._provider = provider
        self._aliases = dict(aliases)
        # None: read representative_zones from zone_details.yaml at build time
        self._representatives = dict(representatives) if representatives is not None else None
        self._search_threshold = search_threshold
        self._min_query_length = min_query_length

        self._lock = threading.Lock()
        self._records: Optional[Tuple[ZoneRecord, ...]] = None
        self._record_map: Optional[Mapping[str, ZoneRecord]] = None
        self._alias_index: Optional[Mapping[str, str]] = None
        self._search_index: Optional[ZoneSearchIndex] = None
        self._prewarm_thread: Optional[threading.Thread] = None

    # -----------------------------
    # Construction
    # -----------------------------

    @property
    def is_warm(self) -> bool:
        return self._search_index is not None

    def _ensure_built(self) -> None:
        if self._search_index is not None:
            return

        with self._lock:
            if self._search_index is not None:
                return

            started = time.perf_counter()
            records = tuple(self._provider())
            record_map = MappingProxyType({r.id: r for r in records})
            representatives = self._representatives
            if representatives is None:
                representatives = load_representative_zones()
            alias_index = MappingProxyType(build_alias_index(records, self._aliases, representatives))

            # equal search scores keep index order: representative zones go first
            preferred = set(representatives.values())
            search_index = ZoneSearchIndex(
                sorted(records, key=lambda r: r.id not in preferred),
                threshold=self._search_threshold,
                min_query_length=self._min_query_length,
            )

            self._records = records
            self._record_map = record_map
            self._alias_index = alias_index
            # assigned last: is_warm flips only once everything is in place
            self._search_index = search_index

        logger.info(
            "Timezone catalog built: %d zones, %d lookup names",
            len(records),
            len(alias_index),
        )
        logger.debug("Timezone catalog build took %.1f ms", (time.perf_counter() - started) * 1000)

    def prewarm(self) -> None:
        """
        Build every structure now. Safe to call any number of times.
        """
        self._ensure_built()

    def prewarm_in_background(self) -> Optional[threading.Thread]:
        """
        Start building on a daemon thread and return it.
        Returns None when the catalog is already warm. Never required for correctness.
        """
        if self.is_warm:
            return None

        with self._lock:
            if self._prewarm_thread is not None and self._prewarm_thread.is_alive():
                return self._prewarm_thread
            thread = threading.Thread(target=self.prewarm, name="tz-catalog-prewarm", daemon=True)
            self._prewarm_thread = thread

        logger.debug("Starting background timezone catalog build")
        thread.start()
        return thread

    # -----------------------------
    # Read access
    # -----------------------------

    @property
    def records(self) -> Tuple[ZoneRecord, ...]:
        self._ensure_built()
        assert self._records is not None
        return self._records

    @property
    def record_map(self) -> Mapping[str, ZoneRecord]:
        self._ensure_built()
        assert self._record_map is not None
        return self._record_map

    @property
    def alias_index(self) -> Mapping[str, str]:
        self._ensure_built()
        assert self._alias_index is not None
        return self._alias_index

    @property
    def search_index(self) -> ZoneSearchIndex:
        self._ensure_built()
        assert self._search_index is not None
        return self._search_index

    def get(self, zone_id: str) -> Optional[ZoneRecord]:
        return self.record_map.get(zone_id)

    def is_known(self, zone_id: str) -> bool:
        return zone_id in self.record_map

    def lookup(self, name: str) -> Optional[str]:
        """
        Exact, case-insensitive name -> zone id lookup.
        """
        return self.alias_index.get(name.strip().lower())
