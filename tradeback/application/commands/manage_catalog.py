"""Strategy and stock pool management command."""

import logging
from datetime import datetime
from uuid import UUID

from tradeback.application.results import ServiceResult
from tradeback.domain.exceptions import NotFoundError, PersistenceError, TradeValidationError
from tradeback.domain.interfaces.repositories import Storage
from tradeback.domain.models.catalog import Stock, Strategy

logger = logging.getLogger(__name__)


class CatalogService:
    """Command to manage strategies and the stock pool.

    Stocks are shared by code across backtests; the code is unique in
    the pool. A strategy that backtests still refer to cannot be
    deleted.
    """

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    async def add_strategy(
        self,
        name: str,
        description: str = "",
        rules: list[str] | None = None,
    ) -> ServiceResult[Strategy]:
        """Create a strategy."""
        try:
            strategy = Strategy(name=name, description=description, rules=tuple(rules or ()))
            await self._storage.strategies.save(strategy)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(strategy)

    async def get_strategy(self, strategy_id: UUID) -> ServiceResult[Strategy]:
        """Get a strategy by id."""
        try:
            strategy = await self._storage.strategies.get(strategy_id)
            if strategy is None:
                raise NotFoundError("Strategy", strategy_id)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(strategy)

    async def list_strategies(self) -> ServiceResult[list[Strategy]]:
        """List all strategies."""
        try:
            return ServiceResult.ok(await self._storage.strategies.get_all())
        except Exception as e:
            return ServiceResult.fail(e, logger)

    async def update_strategy(
        self,
        strategy_id: UUID,
        name: str | None = None,
        description: str | None = None,
        rules: list[str] | None = None,
    ) -> ServiceResult[Strategy]:
        """Edit a strategy. Fields left as None are unchanged."""
        try:
            existing = await self._storage.strategies.get(strategy_id)
            if existing is None:
                raise NotFoundError("Strategy", strategy_id)

            data = existing.model_dump()
            if name is not None:
                data["name"] = name
            if description is not None:
                data["description"] = description
            if rules is not None:
                data["rules"] = tuple(rules)
            data["update_time"] = datetime.now()
            updated = Strategy.model_validate(data)
            await self._storage.strategies.save(updated)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(updated)

    async def delete_strategy(self, strategy_id: UUID) -> ServiceResult[UUID]:
        """Delete a strategy no backtest refers to."""
        try:
            if await self._storage.strategies.get(strategy_id) is None:
                raise NotFoundError("Strategy", strategy_id)
            in_use = await self._storage.backtests.get_by_strategy(strategy_id)
            if in_use:
                raise TradeValidationError(
                    f"strategy {strategy_id} is used by {len(in_use)} backtest(s)"
                )
            if not await self._storage.strategies.delete(strategy_id):
                raise PersistenceError(f"deleting strategy {strategy_id} did not remove a record")
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(strategy_id)

    # -------------------------------------------------------------------------
    # Stocks
    # -------------------------------------------------------------------------

    async def add_stock(self, code: str, name: str, note: str | None = None) -> ServiceResult[Stock]:
        """Add a stock to the pool."""
        try:
            code = code.strip()
            if await self._storage.stocks.get_by_code(code) is not None:
                raise TradeValidationError(f"stock {code} is already in the pool")
            stock = Stock(code=code, name=name, note=note)
            await self._storage.stocks.save(stock)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(stock)

    async def get_stock(self, code: str) -> ServiceResult[Stock]:
        """Get a stock by code."""
        try:
            stock = await self._storage.stocks.get_by_code(code)
            if stock is None:
                raise NotFoundError("Stock", code)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(stock)

    async def list_stocks(self) -> ServiceResult[list[Stock]]:
        """List the stock pool."""
        try:
            return ServiceResult.ok(await self._storage.stocks.get_all())
        except Exception as e:
            return ServiceResult.fail(e, logger)

    async def update_stock(
        self,
        stock_id: UUID,
        name: str | None = None,
        note: str | None = None,
    ) -> ServiceResult[Stock]:
        """Rename a stock or change its note. The code is immutable."""
        try:
            existing = await self._storage.stocks.get(stock_id)
            if existing is None:
                raise NotFoundError("Stock", stock_id)
            updates = {}
            if name is not None:
                updates["name"] = name
            if note is not None:
                updates["note"] = note
            updated = Stock.model_validate({**existing.model_dump(), **updates})
            await self._storage.stocks.save(updated)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(updated)

    async def delete_stock(self, stock_id: UUID) -> ServiceResult[UUID]:
        """Remove a stock from the pool. Recorded trades keep their copy of the name."""
        try:
            if not await self._storage.stocks.delete(stock_id):
                raise NotFoundError("Stock", stock_id)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(stock_id)
