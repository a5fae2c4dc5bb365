"""
Test fixtures shared across all test modules.

Provides:
1. catalog - TimezoneCatalog over the real dataset, built once per test session
2. make_session - factory for ComparisonSession instances on that catalog
3. jan_15 - a fixed winter date (no DST transition anywhere relevant)

The catalog is read-only after it is built, so sharing it across tests is safe.
Sessions are mutable and are created fresh per test.

Usage in tests:
    def test_something(catalog, make_session):
        session = make_session(["America/New_York"])
"""

from __future__ import annotations

from datetime import date

import pytest

from tzcompare.engine import ComparisonSession
from tzcompare.timezones import TimezoneCatalog


@pytest.fixture(scope="session")
def catalog() -> TimezoneCatalog:
    c = TimezoneCatalog()
    c.prewarm()
    return c


@pytest.fixture()
def jan_15() -> date:
    return date(2024, 1, 15)


@pytest.fixture()
def make_session(catalog: TimezoneCatalog, jan_15: date):
    def _make(zones=(), **kwargs) -> ComparisonSession:
        kwargs.setdefault("selected_date", jan_15)
        return ComparisonSession(catalog, zones=zones, **kwargs)

    return _make
