"""
Weighted fuzzy search over the zone dataset.

Scores follow a 0..1 scale where 0 is a perfect match and 1 is no match.
Each record is scored on several fields (cities, country, alternative name,
IANA id); a field's weight scales its distance, so a city hit beats an
equally close country hit, which beats a hit on the raw zone id.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from thefuzz import fuzz
from thefuzz.utils import full_process

from .models import ZoneRecord

# (field, weight)
FIELD_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("main_cities", 2.0),
    ("country_name", 1.5),
    ("alternative_name", 1.0),
    ("id", 0.5),
)

DEFAULT_THRESHOLD = 0.4
DEFAULT_MIN_QUERY_LENGTH = 2


@dataclass(frozen=True)
class SearchHit:
    record: ZoneRecord
    score: float


def _field_values(record: ZoneRecord, field_name: str) -> Tuple[str, ...]:
    value = getattr(record, field_name)
    if isinstance(value, tuple):
        return value
    return (value,) if value else ()


def field_distance(query: str, value: str) -> float:
    """
    Distance between an already processed query and field value.

    Substring hits stay below 0.3: best at the start of the value, then at
    the start of a word, then anywhere else. A small term for the part of
    the value the query does not cover ranks "lon" closer to "London" than
    to "Londonderry". Everything else falls back to edit similarity.
    """
    if not value or not query:
        return 1.0
    if value == query:
        return 0.0

    pos = value.find(query)
    if pos >= 0:
        uncovered = 1.0 - len(query) / len(value)
        if pos == 0:
            base = 0.0
        elif value[pos - 1] == " ":
            base = 0.1
        else:
            base = 0.2
        return base + 0.1 * uncovered

    return 1.0 - fuzz.ratio(query, value) / 100.0


class ZoneSearchIndex:
    """
    In-memory search index; build once, query many times.

    search() returns hits whose score is <= threshold, best first.
    Ties keep dataset order, so results are deterministic.
    """

    def __init__(
        self,
        records: Sequence[ZoneRecord],
        threshold: float = DEFAULT_THRESHOLD,
        min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
    ) -> None:
        self.threshold = threshold
        self.min_query_length = min_query_length
        max_weight = max(w for _, w in FIELD_WEIGHTS)

        # per record: list of (processed value, distance multiplier)
        self._entries: List[Tuple[ZoneRecord, Tuple[Tuple[str, float], ...]]] = []
        for record in records:
            prepared: List[Tuple[str, float]] = []
            for field_name, weight in FIELD_WEIGHTS:
                factor = max_weight / weight
                for raw in _field_values(record, field_name):
                    processed = full_process(raw)
                    if processed:
                        prepared.append((processed, factor))
            self._entries.append((record, tuple(prepared)))

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _score_prepared(query: str, prepared: Sequence[Tuple[str, float]]) -> float:
        best = 1.0
        for value, factor in prepared:
            d = min(1.0, field_distance(query, value) * factor)
            if d < best:
                best = d
                if best == 0.0:
                    break
        return best

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        processed = full_process(query or "")
        if len(processed) < self.min_query_length:
            return []

        scored: List[Tuple[float, int, ZoneRecord]] = []
        for order, (record, prepared) in enumerate(self._entries):
            s = self._score_prepared(processed, prepared)
            if s <= self.threshold:
                scored.append((s, order, record))

        scored.sort(key=lambda x: (x[0], x[1]))
        if limit is not None:
            scored = scored[:limit]
        return [SearchHit(record=record, score=s) for s, _, record in scored]
