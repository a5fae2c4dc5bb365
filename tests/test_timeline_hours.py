"""
Test the 24-hour timeline generator and instant helpers.

Covers:
1. Cardinality and one-hour spacing
2. hours[0] is local midnight of the selected day (whole and fractional offsets)
3. DST transition days
4. Date vs aware datetime input
5. Current-time column position and the week strip
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from tzcompare.conversion import (
    TimezoneConversionError,
    current_time_position,
    find_local_midnight,
    generate_day_hours,
    get_zoneinfo,
    week_dates,
)

UTC = timezone.utc
HOUR = timedelta(hours=1)


def _assert_grid(hours):
    assert len(hours) == 24
    for a, b in zip(hours, hours[1:]):
        assert b - a == HOUR


def test_new_york_winter_day(jan_15):
    hours = generate_day_hours("America/New_York", jan_15)
    _assert_grid(hours)

    assert hours[0] == datetime(2024, 1, 15, 5, 0, tzinfo=UTC)
    local = hours[0].astimezone(ZoneInfo("America/New_York"))
    assert local.hour == 0
    assert local.date() == jan_15


def test_spring_forward_day_still_has_24_columns():
    hours = generate_day_hours("America/New_York", date(2024, 3, 10))
    _assert_grid(hours)

    tz = ZoneInfo("America/New_York")
    assert hours[0].astimezone(tz).hour == 0
    local_hours = [h.astimezone(tz).hour for h in hours]
    assert 2 not in local_hours
    # the clock skips an hour, so the last column is already the next local day
    assert hours[-1].astimezone(tz).date() == date(2024, 3, 11)


def test_fall_back_day():
    hours = generate_day_hours("Europe/London", date(2024, 10, 27))
    _assert_grid(hours)
    assert hours[0] == datetime(2024, 10, 26, 23, 0, tzinfo=UTC)


def test_fractional_offset_lands_on_midnight(jan_15):
    hours = generate_day_hours("Asia/Kolkata", jan_15)
    _assert_grid(hours)
    assert hours[0] == datetime(2024, 1, 14, 18, 30, tzinfo=UTC)

    hours = generate_day_hours("Asia/Kathmandu", jan_15)
    local = hours[0].astimezone(ZoneInfo("Asia/Kathmandu"))
    assert (local.date(), local.hour, local.minute) == (jan_15, 0, 0)


def test_different_zones_have_different_midnights(jan_15):
    assert generate_day_hours("America/New_York", jan_15)[0] != generate_day_hours("Europe/London", jan_15)[0]


def test_aware_datetime_uses_reference_zone_calendar():
    # 20:00 UTC on Jan 15 is already Jan 16 in Tokyo
    instant = datetime(2024, 1, 15, 20, 0, tzinfo=UTC)
    hours = generate_day_hours("Asia/Tokyo", instant)
    assert hours[0] == datetime(2024, 1, 15, 15, 0, tzinfo=UTC)

    hours = generate_day_hours("America/New_York", instant)
    assert hours[0] == datetime(2024, 1, 15, 5, 0, tzinfo=UTC)


def test_naive_datetime_is_rejected():
    with pytest.raises(TimezoneConversionError):
        generate_day_hours("Asia/Tokyo", datetime(2024, 1, 15, 12, 0))


def test_invalid_zone_is_rejected(jan_15):
    with pytest.raises(TimezoneConversionError):
        get_zoneinfo("Mars/Olympus_Mons")
    with pytest.raises(TimezoneConversionError):
        find_local_midnight("Mars/Olympus_Mons", jan_15)


def test_current_time_position(jan_15):
    hours = generate_day_hours("America/New_York", jan_15)

    pos = current_time_position(hours, hours[3] + timedelta(minutes=30))
    assert pos is not None
    assert pos.column_index == 3
    assert pos.offset_percentage == pytest.approx(50.0)

    assert current_time_position(hours, hours[0] - timedelta(seconds=1)) is None
    assert current_time_position(hours, hours[-1] + HOUR) is None
    assert current_time_position([], hours[0]) is None


def test_week_dates_start_on_sunday():
    week = week_dates(date(2024, 1, 17))  # Wednesday
    assert week[0] == date(2024, 1, 14)
    assert week[-1] == date(2024, 1, 20)
    assert len(week) == 7

    assert week_dates(date(2024, 1, 14))[0] == date(2024, 1, 14)
    assert week_dates(date(2024, 1, 20))[0] == date(2024, 1, 14)


@pytest.mark.parametrize(
    "zone_id, day, first_instant",
    [
        # clocks jump 00:00 -> 01:00, east of UTC
        ("Asia/Beirut", date(2024, 3, 31), datetime(2024, 3, 30, 22, 0, tzinfo=UTC)),
        # clocks jump 00:00 -> 01:00, west of UTC
        ("America/Havana", date(2024, 3, 10), datetime(2024, 3, 10, 5, 0, tzinfo=UTC)),
    ],
)
def test_day_without_local_midnight_starts_on_that_day(zone_id, day, first_instant):
    hours = generate_day_hours(zone_id, day)
    _assert_grid(hours)

    assert hours[0] == first_instant
    local = hours[0].astimezone(ZoneInfo(zone_id))
    assert local.date() == day
    assert local.hour == 1
    # the hour before belongs to the previous local day
    assert (hours[0] - HOUR).astimezone(ZoneInfo(zone_id)).date() < day
