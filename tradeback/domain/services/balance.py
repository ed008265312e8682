"""Account balance and drawdown replay.

Replays a backtest's trades against its initial capital:
- BUY:  cash −= amount          (fee is in the position's cost basis)
- SELL: cash += amount − fee    (fee comes out of the proceeds)

The running cash after each trade forms the equity curve used for
drawdown. Open positions are marked at the last traded price of their
instrument to get total assets.

Example (initial capital 100,000):
    BUY 100 @ 10.00, fee 5.30   → cash 99,000.00
    SELL 100 @ 12.00, fee 6.00  → cash 100,194.00
"""

from dataclasses import dataclass, field
from decimal import Decimal

from tradeback.domain.models.enums import TradeType
from tradeback.domain.models.trade import Trade, sort_trades
from tradeback.domain.services.ledger import apply_trade


@dataclass(frozen=True)
class AccountBalance:
    """Cash, holdings value and drawdown derived from a trade history."""

    cash: Decimal
    positions_market_value: Decimal
    total_assets: Decimal
    max_drawdown: Decimal
    cash_series: list[Decimal] = field(default_factory=list)


def max_drawdown(series: list[Decimal]) -> Decimal:
    """Largest peak-to-trough decline as a fraction of the peak.

    The running peak includes the current point. Points reached while
    the peak is not positive are skipped.

    Args:
        series: Equity values in chronological order

    Returns:
        Max drawdown in [0, 1] (0 for a series of one point or less)
    """
    if len(series) <= 1:
        return Decimal("0")

    worst = Decimal("0")
    peak = series[0]

    for value in series:
        peak = max(peak, value)
        if peak <= 0:
            continue
        worst = max(worst, (peak - value) / peak)

    return worst


def compute_balance_and_drawdown(
    trades: list[Trade],
    initial_capital: Decimal,
) -> AccountBalance:
    """Replay trades to get cash, total assets and max drawdown.

    Args:
        trades: All trades of one backtest, in any order
        initial_capital: Starting cash of the backtest

    Returns:
        AccountBalance for the end of the history
    """
    cash = initial_capital
    cash_series: list[Decimal] = []
    positions = {}
    last_prices: dict[str, Decimal] = {}

    for trade in sort_trades(trades):
        if trade.type == TradeType.BUY:
            cash -= trade.amount
        else:
            cash += trade.amount - trade.fee

        update = apply_trade(positions.get(trade.stock_code), trade)
        if update.position is None:
            positions.pop(trade.stock_code, None)
        else:
            positions[trade.stock_code] = update.position

        last_prices[trade.stock_code] = trade.price
        cash_series.append(cash)

    positions_value = sum(
        (pos.quantity * last_prices[code] for code, pos in positions.items()),
        Decimal("0"),
    )

    return AccountBalance(
        cash=cash,
        positions_market_value=positions_value,
        total_assets=cash + positions_value,
        max_drawdown=max_drawdown(cash_series),
        cash_series=cash_series,
    )
