"""Unit tests for journal domain models."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from tradeback.domain.models import (
    Backtest,
    BacktestStatus,
    BacktestSummary,
    Position,
    Trade,
    TradeType,
    sort_trades,
)
from tradeback.domain.rules import is_whole_lots, round_lots


def make_trade(**overrides) -> Trade:
    data = {
        "backtest_id": uuid4(),
        "stock_code": "600519",
        "stock_name": "Kweichow Moutai",
        "type": TradeType.BUY,
        "price": Decimal("10.00"),
        "quantity": 100,
    }
    data.update(overrides)
    return Trade(**data)


class TestTrade:
    """Tests for Trade model."""

    def test_amount_filled_from_price_and_quantity(self):
        trade = make_trade(price=Decimal("12.34"), quantity=300)
        assert trade.amount == Decimal("3702.00")

    def test_amount_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            make_trade(amount=Decimal("999"))

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_trade(price=Decimal("0"))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_trade(quantity=0)

    def test_fee_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            make_trade(fee=Decimal("-1"))

    def test_stock_code_required(self):
        with pytest.raises(ValidationError):
            make_trade(stock_code="")

    def test_trade_is_immutable(self):
        trade = make_trade()
        with pytest.raises(ValidationError):
            trade.price = Decimal("11")

    def test_type_accepts_string_value(self):
        trade = make_trade(type="SELL")
        assert trade.type == TradeType.SELL
        assert trade.is_sell is True

    def test_with_profit_returns_copy(self):
        trade = make_trade(type=TradeType.SELL)
        updated = trade.with_profit(Decimal("188.70"))

        assert trade.profit is None
        assert updated.profit == Decimal("188.70")
        assert updated.id == trade.id
        assert updated.is_winner is True

    def test_buy_is_never_a_winner(self):
        assert make_trade().is_winner is False

    def test_aware_timestamp_stored_as_local_naive(self):
        aware = datetime(2026, 1, 5, 1, 30, tzinfo=timezone.utc)
        trade = make_trade(timestamp=aware, create_time=aware)

        assert trade.timestamp.tzinfo is None
        assert trade.timestamp == aware.astimezone().replace(tzinfo=None)
        assert trade.create_time == trade.timestamp

    def test_naive_timestamp_kept(self):
        naive = datetime(2026, 1, 5, 9, 30)
        assert make_trade(timestamp=naive).timestamp == naive


class TestSortTrades:
    """Tests for replay ordering."""

    def test_sorted_by_timestamp(self):
        late = make_trade(timestamp=datetime(2026, 1, 6))
        early = make_trade(timestamp=datetime(2026, 1, 5))
        assert sort_trades([late, early]) == [early, late]

    def test_ties_broken_by_create_time(self):
        ts = datetime(2026, 1, 5, 10, 0)
        second = make_trade(timestamp=ts, create_time=datetime(2026, 1, 5, 10, 2))
        first = make_trade(timestamp=ts, create_time=datetime(2026, 1, 5, 10, 1))
        assert sort_trades([second, first]) == [first, second]

    def test_full_ties_keep_given_order(self):
        ts = datetime(2026, 1, 5, 10, 0)
        a = make_trade(timestamp=ts, create_time=ts)
        b = make_trade(timestamp=ts, create_time=ts)
        assert sort_trades([a, b]) == [a, b]
        assert sort_trades([b, a]) == [b, a]


class TestPosition:
    """Tests for Position model."""

    def test_market_value_and_profit(self):
        position = Position(
            backtest_id=uuid4(),
            stock_code="000001",
            quantity=200,
            avg_cost=Decimal("10.50"),
            market_price=Decimal("11.00"),
        )
        assert position.market_value == Decimal("2200.00")
        assert position.profit == Decimal("100.00")
        assert position.cost_basis == Decimal("2100.00")

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            Position(
                backtest_id=uuid4(),
                stock_code="000001",
                quantity=0,
                avg_cost=Decimal("10"),
                market_price=Decimal("10"),
            )


class TestBacktest:
    """Tests for Backtest model."""

    def test_open_starts_with_cash_equal_to_capital(self):
        bt = Backtest.open(name="Run 1", initial_capital=Decimal("50000"))

        assert bt.current_capital == Decimal("50000")
        assert bt.status == BacktestStatus.ACTIVE
        assert bt.summary.current_cash == Decimal("50000")
        assert bt.summary.total_assets == Decimal("50000")
        assert bt.summary.total_trades == 0

    def test_capital_must_be_positive(self):
        with pytest.raises(ValidationError):
            Backtest.open(name="Broke", initial_capital=Decimal("0"))

    def test_name_required(self):
        with pytest.raises(ValidationError):
            Backtest.open(name="", initial_capital=Decimal("1000"))

    def test_losing_trades_derived(self):
        summary = BacktestSummary(total_trades=5, winning_trades=3)
        assert summary.losing_trades == 2

    def test_infinite_profit_factor_allowed(self):
        summary = BacktestSummary(profit_factor=Decimal("Infinity"))
        assert summary.profit_factor.is_infinite()


class TestLotRules:
    """Tests for lot rounding helpers."""

    def test_round_lots_rounds_down(self):
        assert round_lots(250) == 200
        assert round_lots(99) == 0

    def test_round_lots_custom_lot(self):
        assert round_lots(25, lot_size=10) == 20

    def test_is_whole_lots(self):
        assert is_whole_lots(300) is True
        assert is_whole_lots(150) is False
        assert is_whole_lots(0) is False
