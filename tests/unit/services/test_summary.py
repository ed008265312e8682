"""Unit tests for the backtest summary calculator."""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.enums import TradeType
from tradeback.domain.models.trade import Trade
from tradeback.domain.services.summary import apply_summary, compute_summary

BACKTEST_ID = uuid4()
START = datetime(2026, 1, 5, 9, 30)
CAPITAL = Decimal("100000")


def make_trade(trade_type, price, quantity, fee="0", minute=0, code="000001", profit=None) -> Trade:
    return Trade(
        backtest_id=BACKTEST_ID,
        stock_code=code,
        type=trade_type,
        price=Decimal(price),
        quantity=quantity,
        fee=Decimal(fee),
        timestamp=START + timedelta(minutes=minute),
        profit=Decimal(profit) if profit is not None else None,
    )


def round_trips(profits: list[str]) -> list[Trade]:
    """BUY 100 @ 10 then SELL 100 with the given profit, once per profit."""
    trades = []
    for i, profit in enumerate(profits):
        code = f"00000{i + 1}"
        sell_price = Decimal("10") + Decimal(profit) / 100
        trades.append(make_trade(TradeType.BUY, "10.00", 100, minute=2 * i, code=code))
        trades.append(
            make_trade(
                TradeType.SELL, str(sell_price), 100, minute=2 * i + 1, code=code, profit=profit
            )
        )
    return trades


class TestComputeSummary:
    """Tests for compute_summary."""

    def test_no_trades(self):
        summary = compute_summary([], CAPITAL)

        assert summary.total_trades == 0
        assert summary.winning_trades == 0
        assert summary.win_rate == Decimal("0")
        assert summary.profit_factor == Decimal("0")
        assert summary.expectation == Decimal("0")
        assert summary.profit_ratio == Decimal("0")
        assert summary.max_drawdown == Decimal("0")
        assert summary.current_cash == CAPITAL
        assert summary.total_assets == CAPITAL
        assert not summary.win_rate.is_nan()

    def test_buys_only(self):
        summary = compute_summary([make_trade(TradeType.BUY, "10.00", 100)], CAPITAL)

        assert summary.total_trades == 0
        assert summary.realized_profit == Decimal("0")
        assert summary.current_cash == Decimal("99000.00")
        assert summary.total_assets == CAPITAL

    def test_mixed_results(self):
        summary = compute_summary(round_trips(["100", "-50", "200"]), CAPITAL)

        assert summary.total_trades == 3
        assert summary.winning_trades == 2
        assert summary.losing_trades == 1
        assert summary.win_rate.quantize(Decimal("0.001"), ROUND_HALF_UP) == Decimal("0.667")
        assert summary.profit_factor == Decimal("3")
        assert summary.expectation.quantize(Decimal("0.01"), ROUND_HALF_UP) == Decimal("83.33")
        assert summary.realized_profit == Decimal("250")
        assert summary.total_profit == summary.realized_profit
        assert summary.max_profit == Decimal("200")
        assert summary.max_loss == Decimal("-50")
        assert summary.profit_ratio == Decimal("0.0025")

    def test_all_winners_gives_infinite_profit_factor(self):
        summary = compute_summary(round_trips(["100", "40"]), CAPITAL)

        assert summary.profit_factor.is_infinite()
        assert summary.max_loss == Decimal("0")

    def test_all_losers(self):
        summary = compute_summary(round_trips(["-100", "-40"]), CAPITAL)

        assert summary.profit_factor == Decimal("0")
        assert summary.win_rate == Decimal("0")
        assert summary.max_profit == Decimal("0")
        assert summary.max_loss == Decimal("-100")

    def test_break_even_sell_is_not_a_win(self):
        summary = compute_summary(round_trips(["0"]), CAPITAL)

        assert summary.total_trades == 1
        assert summary.winning_trades == 0
        assert summary.profit_factor == Decimal("0")

    def test_idempotent(self):
        trades = round_trips(["100", "-50", "200"])
        assert compute_summary(trades, CAPITAL) == compute_summary(trades, CAPITAL)

    def test_input_order_does_not_matter(self):
        trades = round_trips(["100", "-50", "200"])
        forward = compute_summary(trades, CAPITAL)
        backward = compute_summary(list(reversed(trades)), CAPITAL)
        assert forward.model_dump() == backward.model_dump()


class TestApplySummary:
    """Tests for apply_summary."""

    def test_replaces_summary_and_current_capital(self):
        bt = Backtest.open(name="Run", initial_capital=CAPITAL)
        trades = [
            make_trade(TradeType.BUY, "10.00", 100, fee="5.30"),
            make_trade(TradeType.SELL, "12.00", 100, fee="6.00", minute=1, profit="188.70"),
        ]

        refreshed = apply_summary(bt, trades)

        assert refreshed.id == bt.id
        assert refreshed.current_capital == Decimal("100194.00")
        assert refreshed.summary.current_cash == Decimal("100194.00")
        assert refreshed.summary.realized_profit == Decimal("188.70")
        assert refreshed.summary.winning_trades == 1
        assert bt.summary.total_trades == 0
