"""Unit tests for BacktestService."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from tradeback.application.commands.manage_backtest import BacktestService
from tradeback.application.commands.record_trade import TransactionService
from tradeback.domain.exceptions import ErrorKind
from tradeback.domain.models.catalog import Strategy
from tradeback.domain.models.enums import BacktestStatus, TradeType


@pytest.fixture
def service(storage):
    return BacktestService(storage)


class TestCreateBacktest:
    """Tests for opening backtests."""

    async def test_create(self, service, storage):
        result = await service.create_backtest("Turtle S1", Decimal("50000"), notes="first run")

        assert result.success is True
        bt = result.data
        assert bt.current_capital == Decimal("50000")
        assert bt.summary.total_assets == Decimal("50000")
        assert await storage.backtests.get(bt.id) == bt

    async def test_create_with_strategy_copies_name(self, service, storage):
        strategy = Strategy(name="Donchian breakout")
        await storage.strategies.save(strategy)

        result = await service.create_backtest("Run", Decimal("10000"), strategy_id=strategy.id)

        assert result.data.strategy_id == strategy.id
        assert result.data.strategy_name == "Donchian breakout"

    async def test_unknown_strategy(self, service):
        result = await service.create_backtest("Run", Decimal("10000"), strategy_id=uuid4())

        assert result.success is False
        assert result.error_kind == ErrorKind.NOT_FOUND

    async def test_non_positive_capital_rejected(self, service, storage):
        result = await service.create_backtest("Run", Decimal("0"))

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert await storage.backtests.get_all() == []


class TestQueries:
    """Tests for reading backtests."""

    async def test_get_missing(self, service):
        result = await service.get_backtest(uuid4())
        assert result.error_kind == ErrorKind.NOT_FOUND

    async def test_list_filters_by_status(self, service):
        first = (await service.create_backtest("A", Decimal("1000"))).data
        await service.create_backtest("B", Decimal("1000"))
        await service.update_backtest(first.id, status=BacktestStatus.COMPLETED)

        completed = await service.list_backtests(status=BacktestStatus.COMPLETED)
        everything = await service.list_backtests()

        assert [b.name for b in completed.data] == ["A"]
        assert len(everything.data) == 2


class TestUpdateBacktest:
    """Tests for editing backtests."""

    async def test_edit_descriptive_fields(self, service):
        bt = (await service.create_backtest("Old", Decimal("1000"))).data
        end = datetime(2026, 3, 31)

        result = await service.update_backtest(
            bt.id, name="New", notes="done", status="completed", end_date=end
        )

        assert result.success is True
        assert result.data.name == "New"
        assert result.data.status == BacktestStatus.COMPLETED
        assert result.data.end_date == end
        assert result.data.initial_capital == Decimal("1000")

    async def test_derived_fields_cannot_be_edited(self, service):
        bt = (await service.create_backtest("Run", Decimal("1000"))).data

        result = await service.update_backtest(bt.id, current_capital=Decimal("5000"))

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert "current_capital" in result.error

    async def test_invalid_value_rejected(self, service):
        bt = (await service.create_backtest("Run", Decimal("1000"))).data

        result = await service.update_backtest(bt.id, name="")

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION

    async def test_missing_backtest(self, service):
        result = await service.update_backtest(uuid4(), name="x")
        assert result.error_kind == ErrorKind.NOT_FOUND


class TestDeleteBacktest:
    """Tests for deleting backtests."""

    async def test_cascades_to_trades_and_positions(self, service, storage, settings):
        bt = (await service.create_backtest("Run", Decimal("100000"))).data
        other = (await service.create_backtest("Other", Decimal("100000"))).data
        trades = TransactionService(storage, settings)
        for target in (bt, other):
            await trades.add_transaction(
                target.id,
                {
                    "stock_code": "000001",
                    "stock_name": "Ping An Bank",
                    "type": TradeType.BUY,
                    "price": Decimal("10"),
                    "quantity": 100,
                },
            )

        result = await service.delete_backtest(bt.id)

        assert result.success is True
        assert await storage.backtests.get(bt.id) is None
        assert await storage.trades.get_by_backtest(bt.id) == []
        assert await storage.positions.get_by_backtest(bt.id) == []
        assert len(await storage.trades.get_by_backtest(other.id)) == 1
        assert len(await storage.positions.get_by_backtest(other.id)) == 1

    async def test_missing_backtest(self, service):
        result = await service.delete_backtest(uuid4())
        assert result.error_kind == ErrorKind.NOT_FOUND
