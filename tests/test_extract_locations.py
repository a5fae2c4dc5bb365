"""
Test the Location Extractor.

Covers:
1. Splitting on commas and separator words
2. Cleaning of prepositions, "time" suffixes and punctuation
3. Exact and alias resolution
4. Fuzzy resolution under the extraction threshold
"""

from __future__ import annotations

from tzcompare.parser import clean_location_part, extract_locations, split_location_parts


def test_split_commas_and_separators():
    assert split_location_parts("Tokyo, Paris and London") == ["Tokyo", "Paris", "London"]
    assert split_location_parts("Berlin vs. Rome") == ["Berlin", "Rome"]
    assert split_location_parts("Sydney with Seoul") == ["Sydney", "Seoul"]


def test_clean_location_part():
    assert clean_location_part("in Paris time?") == "Paris"
    assert clean_location_part("  for Tokyo timezone ") == "Tokyo"
    assert clean_location_part("London.") == "London"


def test_aliases_resolve(catalog):
    assert extract_locations("NYC", catalog) == ["America/New_York"]
    assert extract_locations("uk", catalog) == ["Europe/London"]
    assert extract_locations("SF", catalog) == ["America/Los_Angeles"]


def test_multiple_locations_in_order(catalog):
    assert extract_locations("Tokyo, Paris and London", catalog) == [
        "Asia/Tokyo",
        "Europe/Paris",
        "Europe/London",
    ]


def test_duplicates_are_kept(catalog):
    assert extract_locations("Tokyo and Tokyo", catalog) == ["Asia/Tokyo", "Asia/Tokyo"]


def test_typo_resolves_fuzzily(catalog):
    assert extract_locations("Londn", catalog) == ["Europe/London"]


def test_unknown_parts_are_skipped(catalog):
    assert extract_locations("Nonexistentplace", catalog) == []
    assert extract_locations("Tokyo, Nonexistentplace", catalog) == ["Asia/Tokyo"]
    assert extract_locations("", catalog) == []
