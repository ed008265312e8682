"""Backtest management command for the trade journal.

Creates, updates and deletes backtest runs. A backtest's capital and
summary are never edited here: they change only through trade
recording, which recomputes them from the trade set.
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from tradeback.application.results import ServiceResult
from tradeback.domain.exceptions import NotFoundError, PersistenceError, TradeValidationError
from tradeback.domain.interfaces.repositories import Storage
from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.enums import BacktestStatus

logger = logging.getLogger(__name__)

# Fields a user may edit on an existing backtest
EDITABLE_FIELDS = frozenset({"name", "notes", "status", "end_date", "strategy_name"})


class BacktestService:
    """Command to manage backtest runs."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    async def create_backtest(
        self,
        name: str,
        initial_capital: Decimal,
        strategy_id: UUID | None = None,
        start_date: datetime | None = None,
        notes: str = "",
    ) -> ServiceResult[Backtest]:
        """Open a new backtest with an empty trade history.

        Args:
            name: Display name
            initial_capital: Starting cash (must be positive)
            strategy_id: Strategy under test, if any (must exist)
            start_date: When the run starts (defaults to now)
            notes: Free text

        Returns:
            ServiceResult with the created backtest
        """
        try:
            strategy_name = ""
            if strategy_id is not None:
                strategy = await self._storage.strategies.get(strategy_id)
                if strategy is None:
                    raise NotFoundError("Strategy", strategy_id)
                strategy_name = strategy.name

            backtest = Backtest.open(
                name=name,
                initial_capital=initial_capital,
                strategy_id=strategy_id,
                strategy_name=strategy_name,
                start_date=start_date,
                notes=notes,
            )
            await self._storage.backtests.save(backtest)
        except Exception as e:
            return ServiceResult.fail(e, logger)

        logger.info("Created backtest %s (%s) with capital %s", backtest.id, name, initial_capital)
        return ServiceResult.ok(backtest)

    async def get_backtest(self, backtest_id: UUID) -> ServiceResult[Backtest]:
        """Get a backtest by id."""
        try:
            backtest = await self._storage.backtests.get(backtest_id)
            if backtest is None:
                raise NotFoundError("Backtest", backtest_id)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(backtest)

    async def list_backtests(self, status: BacktestStatus | None = None) -> ServiceResult[list[Backtest]]:
        """List backtests, optionally only those with a given status."""
        try:
            backtests = await self._storage.backtests.get_all()
        except Exception as e:
            return ServiceResult.fail(e, logger)
        if status is not None:
            backtests = [b for b in backtests if b.status == status]
        return ServiceResult.ok(backtests)

    async def update_backtest(self, backtest_id: UUID, **changes) -> ServiceResult[Backtest]:
        """Edit the descriptive fields of a backtest.

        Args:
            backtest_id: Backtest to edit
            **changes: Any of name, notes, status, end_date, strategy_name

        Returns:
            ServiceResult with the updated backtest
        """
        try:
            illegal = set(changes) - EDITABLE_FIELDS
            if illegal:
                raise TradeValidationError(
                    f"cannot edit {', '.join(sorted(illegal))}; derived fields change only via trades"
                )
            existing = await self._storage.backtests.get(backtest_id)
            if existing is None:
                raise NotFoundError("Backtest", backtest_id)

            # Round-trip through validation so edits obey the model constraints
            data = existing.model_dump()
            data.update(changes)
            data["update_time"] = datetime.now()
            updated = Backtest.model_validate(data)
            await self._storage.backtests.save(updated)
        except Exception as e:
            return ServiceResult.fail(e, logger)
        return ServiceResult.ok(updated)

    async def delete_backtest(self, backtest_id: UUID) -> ServiceResult[UUID]:
        """Delete a backtest together with its trades and positions."""
        try:
            if await self._storage.backtests.get(backtest_id) is None:
                raise NotFoundError("Backtest", backtest_id)
            trades = await self._storage.trades.delete_by_backtest(backtest_id)
            positions = await self._storage.positions.delete_by_backtest(backtest_id)
            if not await self._storage.backtests.delete(backtest_id):
                raise PersistenceError(f"deleting backtest {backtest_id} did not remove a record")
        except Exception as e:
            return ServiceResult.fail(e, logger)

        logger.info(
            "Deleted backtest %s with %d trades and %d positions",
            backtest_id,
            trades,
            positions,
        )
        return ServiceResult.ok(backtest_id)
