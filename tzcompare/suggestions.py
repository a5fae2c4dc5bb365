from __future__ import annotations

import logging
from typing import List, Set, Tuple

from .models import Suggestion, SuggestionKind
from .timezones import TimezoneCatalog

logger = logging.getLogger(__name__)

MIN_PREFIX_LENGTH = 2
DEFAULT_LIMIT = 5


def _collect(prefix: str, catalog: TimezoneCatalog, limit: int) -> List[Suggestion]:
    needle = prefix.lower()
    scored: List[Tuple[float, int, Suggestion]] = []

    for hit in catalog.search_index.search(needle, limit=limit * 2):
        record = hit.record
        for city in record.main_cities:
            if needle in city.lower():
                scored.append(
                    (hit.score, len(scored), Suggestion(name=city, zone_id=record.id, kind=SuggestionKind.CITY))
                )
        if record.country_name and needle in record.country_name.lower():
            scored.append(
                (
                    hit.score,
                    len(scored),
                    Suggestion(name=record.country_name, zone_id=record.id, kind=SuggestionKind.COUNTRY),
                )
            )

    scored.sort(key=lambda x: (x[0], x[1]))

    seen: Set[Tuple[str, str]] = set()
    result: List[Suggestion] = []
    for _, _, suggestion in scored:
        key = (suggestion.name, suggestion.zone_id)
        if key in seen:
            continue
        seen.add(key)
        result.append(suggestion)
        if len(result) >= limit:
            break
    return result


def get_suggestions(prefix: str, catalog: TimezoneCatalog, limit: int = DEFAULT_LIMIT) -> List[Suggestion]:
    """
    Autocomplete candidates for a partially typed location.

    - prefixes shorter than 2 characters return nothing
    - one suggestion per matching city, plus the country if it matches
    - best match first, unique by (name, zone id), at most `limit`

    Suggestions are optional UI sugar: any failure in the lookup layer is
    logged and reported as "no suggestions".
    """
    normalized = (prefix or "").strip()
    if len(normalized) < MIN_PREFIX_LENGTH or limit <= 0:
        return []

    try:
        return _collect(normalized, catalog, limit)
    except Exception:
        logger.exception("Suggestion lookup failed for prefix %r", normalized)
        return []
