"""Integration test setup: point the pool at the test database.

These tests need a PostgreSQL database with the journal migrations
applied (scripts/setup_db.py). They are skipped unless
TRADEBACK_TEST_DATABASE_URL is set.
"""

import os

import pytest

from tradeback.infrastructure.config import get_settings
from tradeback.infrastructure.database import close_pool

TEST_DATABASE_URL = os.environ.get("TRADEBACK_TEST_DATABASE_URL")


def pytest_collection_modifyitems(config, items):
    if TEST_DATABASE_URL:
        return
    skip = pytest.mark.skip(reason="TRADEBACK_TEST_DATABASE_URL not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
async def test_database(monkeypatch):
    """Route get_settings() to the test database and close the pool after each test."""
    if TEST_DATABASE_URL:
        monkeypatch.setenv("DATABASE_URL", TEST_DATABASE_URL)
    get_settings.cache_clear()
    yield
    await close_pool()
    get_settings.cache_clear()
