"""Backtest summary calculator.

The authoritative computation of a backtest's statistics. It is a
pure function of (trades, initial capital) and must be re-run after
every trade insertion or deletion, replacing the previous summary.

Trade statistics count SELL trades only (a round trip is "a trade"):
- win_rate      = winning / total
- profit_factor = avg win / avg loss magnitude (∞ with wins and no losses)
- expectation   = realized profit / total
- profit_ratio  = realized profit / initial capital
"""

from datetime import datetime
from decimal import Decimal

from tradeback.domain.models.backtest import Backtest, BacktestSummary
from tradeback.domain.models.trade import Trade, sort_trades
from tradeback.domain.services.balance import compute_balance_and_drawdown

ZERO = Decimal("0")


def _mean(values: list[Decimal]) -> Decimal:
    if not values:
        return ZERO
    return sum(values, ZERO) / len(values)


def compute_summary(trades: list[Trade], initial_capital: Decimal) -> BacktestSummary:
    """Compute all summary statistics from scratch.

    Args:
        trades: All trades of one backtest, in any order
        initial_capital: Starting cash of the backtest

    Returns:
        BacktestSummary (idempotent: same input, same output)
    """
    ordered = sort_trades(trades)
    profits = [t.profit or ZERO for t in ordered if t.is_sell]

    realized_profit = sum(profits, ZERO)
    total_trades = len(profits)
    wins = [p for p in profits if p > 0]
    losses = [-p for p in profits if p < 0]

    max_profit = max([*profits, ZERO])
    max_loss = min([*profits, ZERO])

    win_rate = Decimal(len(wins)) / total_trades if total_trades else ZERO

    avg_win = _mean(wins)
    avg_loss = _mean(losses)
    if avg_loss > 0:
        profit_factor = avg_win / avg_loss
    elif avg_win > 0:
        profit_factor = Decimal("Infinity")
    else:
        profit_factor = ZERO

    expectation = realized_profit / total_trades if total_trades else ZERO
    profit_ratio = realized_profit / initial_capital if initial_capital > 0 else ZERO

    balance = compute_balance_and_drawdown(ordered, initial_capital)

    return BacktestSummary(
        total_profit=realized_profit,
        realized_profit=realized_profit,
        total_trades=total_trades,
        winning_trades=len(wins),
        max_profit=max_profit,
        max_loss=max_loss,
        max_drawdown=balance.max_drawdown,
        win_rate=win_rate,
        profit_factor=profit_factor,
        expectation=expectation,
        profit_ratio=profit_ratio,
        current_cash=balance.cash,
        total_assets=balance.total_assets,
    )


def apply_summary(backtest: Backtest, trades: list[Trade]) -> Backtest:
    """Return the backtest with its summary and cash recomputed.

    Args:
        backtest: Backtest to refresh
        trades: All of its trades

    Returns:
        New Backtest with summary replaced and current_capital set to
        the recomputed cash balance
    """
    summary = compute_summary(trades, backtest.initial_capital)
    return backtest.model_copy(
        update={
            "summary": summary,
            "current_capital": summary.current_cash,
            "update_time": datetime.now(),
        }
    )
