"""
Test share-link encoding.

Covers:
1. Individual value codecs (zone list, date, time format)
2. Forgiving parsing of malformed links
3. Zone filtering, de-duplication and the zone cap
4. Query string output
"""

from __future__ import annotations

from datetime import date

from tzcompare.models import ShareState, TimeFormat
from tzcompare.sharing import (
    build_share_query,
    parse_date,
    parse_share_query,
    parse_time_format,
    parse_timezone_list,
)

TODAY = date(2024, 1, 1)


def test_parse_timezone_list():
    assert parse_timezone_list("America/New_York,, Europe/London ,") == ["America/New_York", "Europe/London"]
    assert parse_timezone_list("") == []
    assert parse_timezone_list(None) == []


def test_parse_date():
    assert parse_date("2024-01-15", today=TODAY) == date(2024, 1, 15)
    assert parse_date("2024-02-30", today=TODAY) == TODAY
    assert parse_date("15/01/2024", today=TODAY) == TODAY
    assert parse_date("2024-1-5", today=TODAY) == TODAY
    assert parse_date(None, today=TODAY) == TODAY


def test_parse_time_format():
    assert parse_time_format("24h") == TimeFormat.H24
    assert parse_time_format("12H") == TimeFormat.H12
    assert parse_time_format("bogus") == TimeFormat.H12
    assert parse_time_format(None) == TimeFormat.H12


def test_parse_share_query_full():
    state = parse_share_query(
        "?tz=America/New_York,Europe/London&date=2024-01-15&format=24h&home=Europe/London",
        today=TODAY,
    )
    assert state == ShareState(
        zones=("America/New_York", "Europe/London"),
        selected_date=date(2024, 1, 15),
        time_format=TimeFormat.H24,
        home="Europe/London",
    )


def test_parse_share_query_garbage():
    state = parse_share_query(
        "tz=America/New_York,,Europe/London,America/New_York&date=2024-02-30&format=bogus&home=Asia/Tokyo",
        today=TODAY,
    )
    assert state.zones == ("America/New_York", "Europe/London")
    assert state.selected_date == TODAY
    assert state.time_format == TimeFormat.H12
    assert state.home is None


def test_parse_share_query_empty():
    state = parse_share_query("", today=TODAY)
    assert state.zones == ()
    assert state.selected_date == TODAY


def test_parse_share_query_drops_unknown_and_caps(catalog):
    state = parse_share_query(
        {"tz": "Mars/Base,Asia/Tokyo,Europe/Paris,Europe/Berlin"},
        is_known_zone=catalog.is_known,
        max_timezones=2,
        today=TODAY,
    )
    assert state.zones == ("Asia/Tokyo", "Europe/Paris")


def test_build_share_query():
    state = ShareState(
        zones=("America/New_York", "Europe/London"),
        selected_date=date(2024, 1, 5),
        time_format=TimeFormat.H24,
        home="Europe/London",
    )
    assert build_share_query(state) == (
        "tz=America/New_York,Europe/London&date=2024-01-05&format=24h&home=Europe/London"
    )


def test_build_share_query_without_home():
    state = ShareState(zones=("Asia/Tokyo",), selected_date=date(2024, 1, 5))
    assert build_share_query(state) == "tz=Asia/Tokyo&date=2024-01-05&format=12h"


def test_built_query_parses_back(catalog):
    state = ShareState(
        zones=("Asia/Kolkata", "America/Sao_Paulo"),
        selected_date=date(2024, 12, 31),
        home="America/Sao_Paulo",
    )
    assert parse_share_query(build_share_query(state), is_known_zone=catalog.is_known, today=TODAY) == state
