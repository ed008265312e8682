"""Domain enumerations for the trade journal."""

from enum import Enum


class TradeType(str, Enum):
    """Side of a journal trade."""

    BUY = "BUY"
    SELL = "SELL"


class BacktestStatus(str, Enum):
    """Lifecycle status of a backtest run."""

    ACTIVE = "active"  # Still recording trades
    COMPLETED = "completed"  # Closed out, kept for review
    ARCHIVED = "archived"  # Hidden from the working list
