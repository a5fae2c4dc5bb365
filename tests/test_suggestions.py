"""
Test autocomplete suggestions.

Covers:
1. Minimum prefix length
2. City and country suggestions
3. Uniqueness by (name, zone id) and the result limit
4. Failures in the lookup layer become "no suggestions"
"""

from __future__ import annotations

from tzcompare.models import SuggestionKind
from tzcompare.suggestions import get_suggestions


def test_short_prefix_returns_nothing(catalog):
    assert get_suggestions("", catalog) == []
    assert get_suggestions("N", catalog) == []
    assert get_suggestions("  N  ", catalog) == []


def test_city_prefix(catalog):
    suggestions = get_suggestions("lon", catalog)
    assert suggestions
    first = suggestions[0]
    assert first.name == "London"
    assert first.zone_id == "Europe/London"
    assert first.kind == SuggestionKind.CITY


def test_country_suggestion(catalog):
    suggestions = get_suggestions("united", catalog)
    assert any(s.kind == SuggestionKind.COUNTRY and s.name == "United States" for s in suggestions)


def test_no_duplicates(catalog):
    suggestions = get_suggestions("New York", catalog)
    keys = [(s.name, s.zone_id) for s in suggestions]
    assert len(keys) == len(set(keys))
    assert ("New York", "America/New_York") in keys


def test_limit(catalog):
    assert len(get_suggestions("san", catalog, limit=3)) <= 3
    assert get_suggestions("san", catalog, limit=0) == []


def test_lookup_failure_is_swallowed():
    class BrokenCatalog:
        @property
        def search_index(self):
            raise RuntimeError("dataset unavailable")

    assert get_suggestions("london", BrokenCatalog()) == []


def test_shared_country_prefers_representative_zone(catalog):
    first = get_suggestions("united", catalog)[0]
    assert (first.name, first.zone_id) == ("United States", "America/New_York")
