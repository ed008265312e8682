"""Repository interfaces (ports) for data persistence.

Five collections are persisted: strategies, stocks, backtests, trades
and positions. Trades and positions are indexed by backtest. Every
``save`` is an upsert keyed by the record's identity.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.catalog import Stock, Strategy
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade


class StrategyRepository(ABC):
    """Repository interface for strategies."""

    @abstractmethod
    async def save(self, strategy: Strategy) -> None:
        """Insert or update a strategy."""
        ...

    @abstractmethod
    async def get(self, strategy_id: UUID) -> Strategy | None:
        """Get a strategy by id."""
        ...

    @abstractmethod
    async def get_all(self) -> list[Strategy]:
        """Get all strategies, oldest first."""
        ...

    @abstractmethod
    async def delete(self, strategy_id: UUID) -> bool:
        """Delete a strategy. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every strategy."""
        ...


class StockRepository(ABC):
    """Repository interface for the stock pool.

    Stock codes are unique within the pool.
    """

    @abstractmethod
    async def save(self, stock: Stock) -> None:
        """Insert or update a stock."""
        ...

    @abstractmethod
    async def get(self, stock_id: UUID) -> Stock | None:
        """Get a stock by id."""
        ...

    @abstractmethod
    async def get_by_code(self, code: str) -> Stock | None:
        """Get a stock by its code."""
        ...

    @abstractmethod
    async def get_all(self) -> list[Stock]:
        """Get the whole pool, ordered by code."""
        ...

    @abstractmethod
    async def delete(self, stock_id: UUID) -> bool:
        """Delete a stock. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every stock."""
        ...


class BacktestRepository(ABC):
    """Repository interface for backtest runs."""

    @abstractmethod
    async def save(self, backtest: Backtest) -> None:
        """Insert or update a backtest (summary included)."""
        ...

    @abstractmethod
    async def get(self, backtest_id: UUID) -> Backtest | None:
        """Get a backtest by id."""
        ...

    @abstractmethod
    async def get_all(self) -> list[Backtest]:
        """Get all backtests, oldest first."""
        ...

    @abstractmethod
    async def get_by_strategy(self, strategy_id: UUID) -> list[Backtest]:
        """Get the backtests run against a strategy."""
        ...

    @abstractmethod
    async def delete(self, backtest_id: UUID) -> bool:
        """Delete a backtest record. Returns False if it did not exist.

        Does not cascade; the caller removes trades and positions.
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every backtest."""
        ...


class TradeRepository(ABC):
    """Repository interface for journal trades.

    Trades are the source of truth: positions and summaries are
    derived from them.
    """

    @abstractmethod
    async def save(self, trade: Trade) -> None:
        """Insert a trade, or update it (e.g. to write back a SELL profit)."""
        ...

    @abstractmethod
    async def get(self, trade_id: UUID) -> Trade | None:
        """Get a trade by id."""
        ...

    @abstractmethod
    async def get_by_backtest(self, backtest_id: UUID) -> list[Trade]:
        """Get all trades of a backtest in replay order.

        Replay order is ascending timestamp, then insertion time.
        """
        ...

    @abstractmethod
    async def get_all(self) -> list[Trade]:
        """Get every trade of every backtest."""
        ...

    @abstractmethod
    async def delete(self, trade_id: UUID) -> bool:
        """Delete a trade. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        """Delete all trades of a backtest. Returns the number deleted."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every trade."""
        ...


class PositionRepository(ABC):
    """Repository interface for open positions.

    One row per (backtest, stock code). A position with no shares is
    deleted, never stored.
    """

    @abstractmethod
    async def save(self, position: Position) -> None:
        """Insert or update the position for its (backtest, stock code)."""
        ...

    @abstractmethod
    async def get(self, backtest_id: UUID, stock_code: str) -> Position | None:
        """Get the position a backtest holds in a stock."""
        ...

    @abstractmethod
    async def get_by_backtest(self, backtest_id: UUID) -> list[Position]:
        """Get all open positions of a backtest, ordered by stock code."""
        ...

    @abstractmethod
    async def get_all(self) -> list[Position]:
        """Get every open position of every backtest."""
        ...

    @abstractmethod
    async def delete(self, backtest_id: UUID, stock_code: str) -> bool:
        """Delete a position. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def replace_for_backtest(self, backtest_id: UUID, positions: list[Position]) -> None:
        """Replace a backtest's whole position set."""
        ...

    @abstractmethod
    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        """Delete all positions of a backtest. Returns the number deleted."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every position."""
        ...


@dataclass(frozen=True)
class Storage:
    """Storage context handed to the application services.

    Bundles one repository per collection so that a service is
    constructed against an explicit store instead of a global one.
    """

    strategies: StrategyRepository
    stocks: StockRepository
    backtests: BacktestRepository
    trades: TradeRepository
    positions: PositionRepository
