"""Unit tests for CatalogService."""

from decimal import Decimal
from uuid import uuid4

import pytest

from tradeback.application.commands.manage_catalog import CatalogService
from tradeback.domain.exceptions import ErrorKind
from tradeback.domain.models.backtest import Backtest


@pytest.fixture
def catalog(storage):
    return CatalogService(storage)


class TestStrategies:
    """Tests for strategy management."""

    async def test_add_and_get(self, catalog):
        added = await catalog.add_strategy(
            "Turtle S1", description="20-day breakout", rules=["enter on 20d high", "2N stop"]
        )

        fetched = await catalog.get_strategy(added.data.id)

        assert fetched.success is True
        assert fetched.data.rules == ("enter on 20d high", "2N stop")

    async def test_empty_name_rejected(self, catalog):
        result = await catalog.add_strategy("")
        assert result.error_kind == ErrorKind.VALIDATION

    async def test_update_keeps_unset_fields(self, catalog):
        strategy = (await catalog.add_strategy("Turtle", description="breakout")).data

        result = await catalog.update_strategy(strategy.id, name="Turtle S2")

        assert result.data.name == "Turtle S2"
        assert result.data.description == "breakout"
        assert result.data.create_time == strategy.create_time

    async def test_list(self, catalog):
        await catalog.add_strategy("A")
        await catalog.add_strategy("B")

        result = await catalog.list_strategies()

        assert {s.name for s in result.data} == {"A", "B"}

    async def test_delete_unused(self, catalog):
        strategy = (await catalog.add_strategy("Unused")).data

        result = await catalog.delete_strategy(strategy.id)

        assert result.success is True
        assert (await catalog.get_strategy(strategy.id)).error_kind == ErrorKind.NOT_FOUND

    async def test_delete_in_use_rejected(self, catalog, storage):
        strategy = (await catalog.add_strategy("Used")).data
        await storage.backtests.save(
            Backtest.open(name="Run", initial_capital=Decimal("1000"), strategy_id=strategy.id)
        )

        result = await catalog.delete_strategy(strategy.id)

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert (await catalog.get_strategy(strategy.id)).success is True

    async def test_delete_missing(self, catalog):
        result = await catalog.delete_strategy(uuid4())
        assert result.error_kind == ErrorKind.NOT_FOUND


class TestStocks:
    """Tests for stock pool management."""

    async def test_add_and_get_by_code(self, catalog):
        await catalog.add_stock("600519", "Kweichow Moutai", note="consumer")

        result = await catalog.get_stock("600519")

        assert result.data.name == "Kweichow Moutai"
        assert result.data.note == "consumer"

    async def test_code_is_unique(self, catalog):
        await catalog.add_stock("600519", "Kweichow Moutai")

        result = await catalog.add_stock(" 600519 ", "Moutai again")

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert len((await catalog.list_stocks()).data) == 1

    async def test_unknown_code(self, catalog):
        result = await catalog.get_stock("000000")
        assert result.error_kind == ErrorKind.NOT_FOUND

    async def test_update_name(self, catalog):
        stock = (await catalog.add_stock("000001", "Ping An")).data

        result = await catalog.update_stock(stock.id, name="Ping An Bank")

        assert result.data.name == "Ping An Bank"
        assert result.data.code == "000001"

    async def test_delete(self, catalog):
        stock = (await catalog.add_stock("000001", "Ping An Bank")).data

        assert (await catalog.delete_stock(stock.id)).success is True
        assert (await catalog.delete_stock(stock.id)).error_kind == ErrorKind.NOT_FOUND
