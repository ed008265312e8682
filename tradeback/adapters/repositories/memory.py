"""In-memory implementation of the repository interfaces.

Backs an isolated storage context for tests, scripting and the
default ``memory`` storage backend. Records are immutable pydantic
models, so storing the instances themselves is safe.
"""

from uuid import UUID

from tradeback.domain.interfaces.repositories import (
    BacktestRepository,
    PositionRepository,
    StockRepository,
    Storage,
    StrategyRepository,
    TradeRepository,
)
from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.catalog import Stock, Strategy
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade, sort_trades


class InMemoryStrategyRepository(StrategyRepository):
    """Strategies kept in a dict keyed by id."""

    def __init__(self) -> None:
        self.strategies: dict[UUID, Strategy] = {}

    async def save(self, strategy: Strategy) -> None:
        self.strategies[strategy.id] = strategy

    async def get(self, strategy_id: UUID) -> Strategy | None:
        return self.strategies.get(strategy_id)

    async def get_all(self) -> list[Strategy]:
        return sorted(self.strategies.values(), key=lambda s: s.create_time)

    async def delete(self, strategy_id: UUID) -> bool:
        return self.strategies.pop(strategy_id, None) is not None

    async def clear(self) -> None:
        self.strategies.clear()


class InMemoryStockRepository(StockRepository):
    """Stock pool kept in a dict keyed by id."""

    def __init__(self) -> None:
        self.stocks: dict[UUID, Stock] = {}

    async def save(self, stock: Stock) -> None:
        self.stocks[stock.id] = stock

    async def get(self, stock_id: UUID) -> Stock | None:
        return self.stocks.get(stock_id)

    async def get_by_code(self, code: str) -> Stock | None:
        return next((s for s in self.stocks.values() if s.code == code), None)

    async def get_all(self) -> list[Stock]:
        return sorted(self.stocks.values(), key=lambda s: s.code)

    async def delete(self, stock_id: UUID) -> bool:
        return self.stocks.pop(stock_id, None) is not None

    async def clear(self) -> None:
        self.stocks.clear()


class InMemoryBacktestRepository(BacktestRepository):
    """Backtests kept in a dict keyed by id."""

    def __init__(self) -> None:
        self.backtests: dict[UUID, Backtest] = {}

    async def save(self, backtest: Backtest) -> None:
        self.backtests[backtest.id] = backtest

    async def get(self, backtest_id: UUID) -> Backtest | None:
        return self.backtests.get(backtest_id)

    async def get_all(self) -> list[Backtest]:
        return sorted(self.backtests.values(), key=lambda b: b.create_time)

    async def get_by_strategy(self, strategy_id: UUID) -> list[Backtest]:
        return [b for b in await self.get_all() if b.strategy_id == strategy_id]

    async def delete(self, backtest_id: UUID) -> bool:
        return self.backtests.pop(backtest_id, None) is not None

    async def clear(self) -> None:
        self.backtests.clear()


class InMemoryTradeRepository(TradeRepository):
    """Trades kept in insertion order in a dict keyed by id."""

    def __init__(self) -> None:
        self.trades: dict[UUID, Trade] = {}

    async def save(self, trade: Trade) -> None:
        # Updating an existing key keeps its insertion position
        self.trades[trade.id] = trade

    async def get(self, trade_id: UUID) -> Trade | None:
        return self.trades.get(trade_id)

    async def get_by_backtest(self, backtest_id: UUID) -> list[Trade]:
        return sort_trades([t for t in self.trades.values() if t.backtest_id == backtest_id])

    async def get_all(self) -> list[Trade]:
        return sort_trades(list(self.trades.values()))

    async def delete(self, trade_id: UUID) -> bool:
        return self.trades.pop(trade_id, None) is not None

    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        doomed = [tid for tid, t in self.trades.items() if t.backtest_id == backtest_id]
        for trade_id in doomed:
            del self.trades[trade_id]
        return len(doomed)

    async def clear(self) -> None:
        self.trades.clear()


class InMemoryPositionRepository(PositionRepository):
    """Positions kept in a dict keyed by (backtest id, stock code)."""

    def __init__(self) -> None:
        self.positions: dict[tuple[UUID, str], Position] = {}

    async def save(self, position: Position) -> None:
        self.positions[(position.backtest_id, position.stock_code)] = position

    async def get(self, backtest_id: UUID, stock_code: str) -> Position | None:
        return self.positions.get((backtest_id, stock_code))

    async def get_by_backtest(self, backtest_id: UUID) -> list[Position]:
        held = [p for (bid, _), p in self.positions.items() if bid == backtest_id]
        return sorted(held, key=lambda p: p.stock_code)

    async def get_all(self) -> list[Position]:
        return sorted(self.positions.values(), key=lambda p: (str(p.backtest_id), p.stock_code))

    async def delete(self, backtest_id: UUID, stock_code: str) -> bool:
        return self.positions.pop((backtest_id, stock_code), None) is not None

    async def replace_for_backtest(self, backtest_id: UUID, positions: list[Position]) -> None:
        await self.delete_by_backtest(backtest_id)
        for position in positions:
            await self.save(position)

    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        doomed = [key for key in self.positions if key[0] == backtest_id]
        for key in doomed:
            del self.positions[key]
        return len(doomed)

    async def clear(self) -> None:
        self.positions.clear()


def in_memory_storage() -> Storage:
    """Create a fresh, isolated in-memory storage context."""
    return Storage(
        strategies=InMemoryStrategyRepository(),
        stocks=InMemoryStockRepository(),
        backtests=InMemoryBacktestRepository(),
        trades=InMemoryTradeRepository(),
        positions=InMemoryPositionRepository(),
    )
