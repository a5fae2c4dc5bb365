"""
Test weighted fuzzy search.

Covers:
1. field_distance ordering (exact < prefix < word start < inside < fuzzy)
2. Minimum query length
3. Ranking and threshold filtering over the real dataset
"""

from __future__ import annotations

from tzcompare.models import ZoneRecord
from tzcompare.search import ZoneSearchIndex, field_distance


def test_field_distance_ordering():
    exact = field_distance("paris", "paris")
    prefix = field_distance("par", "paris")
    word_start = field_distance("york", "new york")
    inside = field_distance("ork", "new york")
    fuzzy = field_distance("londn", "london")

    assert exact == 0.0
    assert exact < prefix < word_start < inside < 0.3
    assert 0.0 < fuzzy < 0.3


def test_field_distance_unrelated_is_far():
    assert field_distance("tacos", "singapore") > 0.5
    assert field_distance("", "paris") == 1.0


def test_city_hit_beats_id_hit():
    records = [
        ZoneRecord(id="Region/Springfield", main_cities=("Shelbyville",), country_name="A", country_code="AA"),
        ZoneRecord(id="Region/Other", main_cities=("Springfield",), country_name="B", country_code="BB"),
    ]
    hits = ZoneSearchIndex(records).search("springfield")
    assert hits[0].record.id == "Region/Other"
    assert hits[0].score == 0.0


def test_short_query_returns_nothing(catalog):
    assert catalog.search_index.search("l") == []
    assert catalog.search_index.search("") == []


def test_prefix_search_ranks_london_first(catalog):
    hits = catalog.search_index.search("lon", limit=3)
    assert hits
    assert hits[0].record.id == "Europe/London"


def test_results_sorted_and_within_threshold(catalog):
    hits = catalog.search_index.search("san")
    scores = [h.score for h in hits]
    assert scores == sorted(scores)
    assert all(s <= catalog.search_index.threshold for s in scores)


def test_gibberish_has_no_hits(catalog):
    assert catalog.search_index.search("xyzzyqwv") == []
