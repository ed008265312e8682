"""Pytest configuration and fixtures for all tests."""

from decimal import Decimal

import pytest

from tradeback.adapters.repositories.memory import in_memory_storage
from tradeback.domain.models.backtest import Backtest
from tradeback.infrastructure.config import Settings


@pytest.fixture
def storage():
    """Fresh in-memory storage context."""
    return in_memory_storage()


@pytest.fixture
def settings():
    """Default validation settings, independent of the environment."""
    return Settings(storage_backend="memory")


@pytest.fixture
def sample_capital():
    """Initial capital used by the worked examples."""
    return Decimal("100000")


@pytest.fixture
async def backtest(storage, sample_capital):
    """A persisted backtest with no trades yet."""
    bt = Backtest.open(name="Breakout test", initial_capital=sample_capital)
    await storage.backtests.save(bt)
    return bt
