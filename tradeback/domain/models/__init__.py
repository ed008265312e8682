"""Domain models for the trade journal."""

from tradeback.domain.models.backtest import Backtest, BacktestSummary
from tradeback.domain.models.catalog import Stock, Strategy
from tradeback.domain.models.enums import BacktestStatus, TradeType
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade, sort_trades

__all__ = [
    # Enums
    "TradeType",
    "BacktestStatus",
    # Catalog
    "Strategy",
    "Stock",
    # Backtests
    "Backtest",
    "BacktestSummary",
    # Trades & Positions
    "Trade",
    "Position",
    "sort_trades",
]
