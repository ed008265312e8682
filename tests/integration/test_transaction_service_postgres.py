"""End-to-end trade recording against PostgreSQL storage."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from tradeback.application.commands.manage_backtest import BacktestService
from tradeback.application.commands.record_trade import TransactionService
from tradeback.infrastructure.config import Settings
from tradeback.infrastructure.storage import postgres_storage

START = datetime(2026, 1, 5, 9, 30)


@pytest.mark.integration
async def test_round_trip_and_delete():
    storage = postgres_storage()
    backtests = BacktestService(storage)
    service = TransactionService(storage, Settings())
    bt = (await backtests.create_backtest("Integration", Decimal("100000"))).data

    try:
        await service.add_transaction(
            bt.id,
            {
                "stock_code": "TEST01",
                "stock_name": "Test Stock",
                "type": "BUY",
                "price": Decimal("10.00"),
                "quantity": 100,
                "fee": Decimal("5.30"),
                "timestamp": START,
            },
        )
        sell = await service.add_transaction(
            bt.id,
            {
                "stock_code": "TEST01",
                "stock_name": "Test Stock",
                "type": "SELL",
                "price": Decimal("12.00"),
                "quantity": 100,
                "fee": Decimal("6.00"),
                "timestamp": START + timedelta(minutes=1),
            },
        )
        assert sell.trade.profit == Decimal("188.70")
        assert (await storage.backtests.get(bt.id)).current_capital == Decimal("100194.00")

        await service.delete_transaction(bt.id, sell.trade.id)

        position = await storage.positions.get(bt.id, "TEST01")
        assert position.quantity == 100
        assert position.avg_cost == Decimal("10.053")
        assert (await storage.backtests.get(bt.id)).current_capital == Decimal("99000.00")
    finally:
        await backtests.delete_backtest(bt.id)
