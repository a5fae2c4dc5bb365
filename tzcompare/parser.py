from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from .models import (
    AddIntent,
    ClearIntent,
    CommandIntent,
    CompareIntent,
    IntentKind,
    RemoveIntent,
    UnknownIntent,
)
from .timezones import TimezoneCatalog

# Location Extractor accepts the best fuzzy hit only below this score.
# Stricter than the suggestion cutoff: a wrong hit here mutates the zone list.
EXTRACTION_THRESHOLD = 0.3


# -----------------------------
# Regex patterns
# -----------------------------

# Optional trailing "time", "times", "timezone(s)", "time zone(s)"
_TIME_SUFFIX = r"(?:\s+time(?:\s*zones?|s)?)?"

# Clear: "clear all", "remove all", "delete all", "reset", bare "clear"
CLEAR_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\bclear\s+all\b", re.IGNORECASE),
    re.compile(r"\bremove\s+all\b", re.IGNORECASE),
    re.compile(r"\bdelete\s+all\b", re.IGNORECASE),
    re.compile(r"\breset\b", re.IGNORECASE),
    re.compile(r"^clear$", re.IGNORECASE),
)

# Compare: two capture groups, each run through the extractor
COMPARE_PATTERNS: Tuple[Pattern[str], ...] = (
    # "compare Tokyo with London", "compare NYC and LA", "compare Paris to Berlin"
    re.compile(r"^compare\s+(.+?)\s+(?:with|and|to|vs\.?|versus)\s+(.+)$", re.IGNORECASE),
    # "difference between Tokyo and London", "time difference between A and B"
    re.compile(r"^(?:what(?:'s|\s+is)\s+the\s+)?(?:time\s+)?difference\s+between\s+(.+?)\s+and\s+(.+?)\??$", re.IGNORECASE),
    # "Tokyo vs London", "Tokyo versus London"
    re.compile(r"^(.+?)\s+(?:vs\.?|versus)\s+(.+)$", re.IGNORECASE),
    # "Tokyo and London", "Tokyo and London times"
    re.compile(r"^(.+?)\s+and\s+(.+?)" + _TIME_SUFFIX + r"$", re.IGNORECASE),
)

# Remove: single capture group
REMOVE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"^(?:remove|delete|hide|drop|clear)\s+(.+?)" + _TIME_SUFFIX + r"$", re.IGNORECASE),
)

# Add: single capture group, broadest set
ADD_PATTERNS: Tuple[Pattern[str], ...] = (
    # "add Tokyo", "show me Paris time", "give me London", "display Berlin", "include Rome"
    re.compile(r"^(?:add|show(?:\s+me)?|give\s+me|display|include)\s+(.+?)" + _TIME_SUFFIX + r"$", re.IGNORECASE),
    # "what time is it in Tokyo?", "what's the time in Paris"
    re.compile(
        r"^what(?:'s|\s+is)?\s+(?:the\s+)?(?:current\s+)?time\s+(?:is\s+it\s+)?(?:now\s+)?in\s+(.+?)\??$",
        re.IGNORECASE,
    ),
    # "what timezone is London", "what's the time zone of Tokyo", "what timezone is Paris in?"
    re.compile(
        r"^what(?:'s|\s+is)?\s+(?:the\s+)?time\s*zones?\s+(?:is\s+|of\s+|for\s+|in\s+)?(.+?)(?:\s+in)?\??$",
        re.IGNORECASE,
    ),
    # "timezone in Paris", "time zone for Tokyo"
    re.compile(r"^time\s*zones?\s+(?:in|for|of|at)\s+(.+?)\??$", re.IGNORECASE),
    # "Tokyo time", "New York timezone", "London time zone"
    re.compile(r"^(.+?)\s+time(?:\s*zones?|s)?\??$", re.IGNORECASE),
)

# Fixed dispatch order; Clear is handled separately because it captures nothing.
COMMAND_PATTERNS: Tuple[Tuple[IntentKind, Tuple[Pattern[str], ...]], ...] = (
    (IntentKind.CLEAR, CLEAR_PATTERNS),
    (IntentKind.COMPARE, COMPARE_PATTERNS),
    (IntentKind.REMOVE, REMOVE_PATTERNS),
    (IntentKind.ADD, ADD_PATTERNS),
)

# Location Extractor helpers
COMMA_SPLIT_RE = re.compile(r"\s*,\s*")
SEPARATOR_SPLIT_RE = re.compile(r"\s+(?:and|with|vs\.?|versus)\s+", re.IGNORECASE)
TIME_SUFFIX_RE = re.compile(r"\s*\btime(?:\s*zones?|s)?$", re.IGNORECASE)
LEADING_PREPOSITION_RE = re.compile(r"^(?:in|at|for|of)\s+", re.IGNORECASE)
TRAILING_PUNCTUATION_RE = re.compile(r"[\s.,!?;:]+$")


# -----------------------------
# Location Extractor
# -----------------------------

def split_location_parts(text: str) -> List[str]:
    """
    Split a fragment into candidate location names.
    Commas first, then the separator words inside each comma part:
      "Tokyo, Paris and London" -> ["Tokyo", "Paris", "London"]
    """
    parts: List[str] = []
    for comma_part in COMMA_SPLIT_RE.split(text):
        parts.extend(SEPARATOR_SPLIT_RE.split(comma_part))
    return parts


def clean_location_part(part: str) -> str:
    """
    "in New York time." -> "New York"
    """
    cleaned = part.strip()
    cleaned = TRAILING_PUNCTUATION_RE.sub("", cleaned)
    cleaned = TIME_SUFFIX_RE.sub("", cleaned)
    cleaned = LEADING_PREPOSITION_RE.sub("", cleaned)
    cleaned = TRAILING_PUNCTUATION_RE.sub("", cleaned)
    return cleaned.strip()


def resolve_location(
    name: str,
    catalog: TimezoneCatalog,
    threshold: float = EXTRACTION_THRESHOLD,
) -> Optional[str]:
    """
    Resolve one cleaned name: exact lookup first, then the best fuzzy hit
    if its score is strictly below threshold.
    """
    exact = catalog.lookup(name)
    if exact:
        return exact

    hits = catalog.search_index.search(name, limit=1)
    if hits and hits[0].score < threshold:
        return hits[0].record.id
    return None


def extract_locations(
    text: str,
    catalog: TimezoneCatalog,
    threshold: float = EXTRACTION_THRESHOLD,
) -> List[str]:
    """
    Resolve every location named in a fragment, in order of appearance.
    Unresolvable parts contribute nothing; duplicates are kept.
    """
    zones: List[str] = []
    for part in split_location_parts(text):
        cleaned = clean_location_part(part)
        if not cleaned:
            continue
        zone_id = resolve_location(cleaned, catalog, threshold=threshold)
        if zone_id:
            zones.append(zone_id)
    return zones


# -----------------------------
# Command Parser
# -----------------------------

def _extract_groups(match: "re.Match[str]", catalog: TimezoneCatalog, threshold: float) -> List[str]:
    zones: List[str] = []
    for group in match.groups():
        if group:
            zones.extend(extract_locations(group, catalog, threshold=threshold))
    return zones


def _first_resolving(
    patterns: Sequence[Pattern[str]],
    text: str,
    catalog: TimezoneCatalog,
    threshold: float,
    min_zones: int,
) -> Optional[List[str]]:
    """
    Try patterns in order; a structural match that resolves fewer than
    min_zones locations counts as no match and the next pattern is tried.
    """
    for pattern in patterns:
        m = pattern.search(text)
        if not m:
            continue
        zones = _extract_groups(m, catalog, threshold)
        if len(zones) >= min_zones:
            return zones
    return None


def parse_command(
    text: str,
    catalog: TimezoneCatalog,
    threshold: float = EXTRACTION_THRESHOLD,
) -> CommandIntent:
    """
    Classify a free-text command into an intent with resolved zone ids.

    Categories are tried in fixed order: Clear, Compare, Remove, Add.
    Clear wins outright ("remove all" is never a removal of a place called "all").
    Compare needs at least two resolved zones; with fewer, parsing carries on.
    If no pattern resolves anything, the whole input is run through the
    Location Extractor and any hit becomes an Add.
    Never raises for any input string.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return UnknownIntent()

    for kind, patterns in COMMAND_PATTERNS:
        if kind == IntentKind.CLEAR:
            if any(p.search(trimmed) for p in patterns):
                return ClearIntent()
            continue

        if kind == IntentKind.COMPARE:
            zones = _first_resolving(patterns, trimmed, catalog, threshold, min_zones=2)
            if zones:
                return CompareIntent(zones=tuple(zones))
            continue

        zones = _first_resolving(patterns, trimmed, catalog, threshold, min_zones=1)
        if zones:
            if kind == IntentKind.REMOVE:
                return RemoveIntent(zones=tuple(zones))
            return AddIntent(zones=tuple(zones))

    fallback = extract_locations(trimmed, catalog, threshold=threshold)
    if fallback:
        return AddIntent(zones=tuple(fallback))

    return UnknownIntent()
