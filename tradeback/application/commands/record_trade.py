"""Trade recording command for the trade journal.

This is the application layer entry point for adding and deleting
journal trades. It keeps the derived state of a backtest (positions,
summary, cash) consistent with its trade set:

Adding a trade:
1. Validate the draft into a typed Trade (and against the position
   and cash it trades against)
2. Persist the trade
3. Apply it to the position ledger (writing a SELL's profit back)
4. Recompute the backtest summary from the full trade set

Deleting a trade:
1. Remove the trade (a BUY that a later SELL needs is kept)
2. Rebuild the position set from the remaining history
3. Recompute the backtest summary

If a step after the trade was written fails, the trade write is
undone and the derived state is rebuilt from the persisted history,
so a failure never leaves a trade behind with a stale summary.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Mapping
from uuid import UUID

from pydantic import ValidationError

from tradeback.application.results import describe_error, format_validation_error
from tradeback.domain.exceptions import (
    ErrorKind,
    NotFoundError,
    PersistenceError,
    TradeValidationError,
)
from tradeback.domain.interfaces.repositories import Storage
from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.enums import TradeType
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade
from tradeback.domain.rules import is_whole_lots
from tradeback.domain.services.balance import compute_balance_and_drawdown
from tradeback.domain.services.ledger import (
    apply_trade,
    recalculate_from_history,
    uncovered_sells,
)
from tradeback.domain.services.summary import apply_summary
from tradeback.infrastructure.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class TransactionResult:
    """Result of a trade add, delete or reconcile."""

    success: bool
    trade: Trade | None = None
    backtest: Backtest | None = None
    positions: list[Position] = field(default_factory=list)
    error: str | None = None
    error_kind: ErrorKind | None = None


def _replay_key(trade: Trade) -> tuple:
    return (trade.timestamp, trade.create_time)


class TransactionService:
    """Command to add and delete journal trades.

    This command:
    1. Validates trade drafts at the core boundary
    2. Persists trades through the storage context
    3. Keeps positions and the backtest summary derived from the
       persisted trades

    Operations on one backtest are expected to run one at a time.
    """

    def __init__(self, storage: Storage, settings: Settings | None = None) -> None:
        """Initialize the transaction service.

        Args:
            storage: Storage context holding the journal collections
            settings: Validation settings (defaults to environment settings)
        """
        self._storage = storage
        self._settings = settings or get_settings()

    async def add_transaction(
        self,
        backtest_id: UUID,
        draft: Mapping[str, Any] | Trade,
    ) -> TransactionResult:
        """Record a new trade against a backtest.

        Args:
            backtest_id: Backtest the trade belongs to
            draft: Trade fields (stock_code, type, price, quantity, fee,
                timestamp, reason, ...) or a pre-built Trade. The id and
                timestamp are generated when absent.

        Returns:
            TransactionResult with the persisted trade (profit filled in
            for a SELL), the refreshed backtest and its positions
        """
        try:
            backtest = await self._require_backtest(backtest_id)
            trade = await self._build_trade(backtest_id, draft)
            history = await self._storage.trades.get_by_backtest(backtest_id)
            if any(t.id == trade.id for t in history):
                raise TradeValidationError(f"trade {trade.id} is already recorded")
            self._validate(trade, backtest, history)
        except Exception as e:
            return self._failure(e)

        try:
            await self._storage.trades.save(trade)
        except Exception as e:
            return self._failure(e)

        logger.info(
            "Recorded %s %d %s @ %s in backtest %s",
            trade.type.value,
            trade.quantity,
            trade.stock_code,
            trade.price,
            backtest_id,
        )

        try:
            if all(_replay_key(t) <= _replay_key(trade) for t in history):
                trade = await self._apply_incrementally(trade)
                backtest = await self._refresh_summary(backtest)
                positions = await self._storage.positions.get_by_backtest(backtest_id)
            else:
                # Back-dated trade: later SELL profits depend on it
                logger.info("Trade %s is back-dated; rebuilding backtest %s", trade.id, backtest_id)
                backtest, positions = await self._rebuild(backtest)
                trade = await self._storage.trades.get(trade.id) or trade
        except Exception as e:
            logger.error("Derived state update failed after recording trade %s", trade.id, exc_info=True)
            await self._compensate(backtest, undo=lambda: self._storage.trades.delete(trade.id))
            return self._failure(e)

        return TransactionResult(success=True, trade=trade, backtest=backtest, positions=positions)

    async def delete_transaction(self, backtest_id: UUID, trade_id: UUID) -> TransactionResult:
        """Delete a trade and rederive the backtest's positions and summary.

        Positions are rebuilt from the remaining history rather than by
        reversing the deleted trade, so no rounding drift accumulates.

        Args:
            backtest_id: Backtest the trade belongs to
            trade_id: Trade to delete

        Returns:
            TransactionResult with the deleted trade, the refreshed
            backtest and its positions
        """
        try:
            backtest = await self._require_backtest(backtest_id)
            trade = await self._storage.trades.get(trade_id)
            if trade is None or trade.backtest_id != backtest_id:
                raise NotFoundError("Trade", trade_id)
            if self._settings.reject_oversell and trade.type == TradeType.BUY:
                history = await self._storage.trades.get_by_backtest(backtest_id)
                remaining = [t for t in history if t.id != trade_id]
                self._check_later_sells(history, remaining, f"deleting BUY {trade_id}")
            if not await self._storage.trades.delete(trade_id):
                raise PersistenceError(f"deleting trade {trade_id} did not remove a record")
        except Exception as e:
            return self._failure(e)

        logger.info("Deleted trade %s from backtest %s", trade_id, backtest_id)

        try:
            backtest, positions = await self._rebuild(backtest)
        except Exception as e:
            logger.error("Derived state update failed after deleting trade %s", trade_id, exc_info=True)
            await self._compensate(backtest, undo=lambda: self._storage.trades.save(trade))
            return self._failure(e)

        return TransactionResult(success=True, trade=trade, backtest=backtest, positions=positions)

    async def reconcile(self, backtest_id: UUID) -> TransactionResult:
        """Rebuild a backtest's positions and summary from its trades.

        Args:
            backtest_id: Backtest to reconcile

        Returns:
            TransactionResult with the refreshed backtest and positions
        """
        try:
            backtest = await self._require_backtest(backtest_id)
            backtest, positions = await self._rebuild(backtest)
        except Exception as e:
            return self._failure(e)
        return TransactionResult(success=True, backtest=backtest, positions=positions)

    async def _require_backtest(self, backtest_id: UUID) -> Backtest:
        backtest = await self._storage.backtests.get(backtest_id)
        if backtest is None:
            raise NotFoundError("Backtest", backtest_id)
        return backtest

    async def _build_trade(self, backtest_id: UUID, draft: Mapping[str, Any] | Trade) -> Trade:
        """Turn a loosely typed draft into a validated Trade."""
        if isinstance(draft, Trade):
            if draft.backtest_id != backtest_id:
                raise TradeValidationError(
                    f"trade {draft.id} belongs to backtest {draft.backtest_id}, not {backtest_id}"
                )
            trade = draft
        else:
            data = {k: v for k, v in dict(draft).items() if v is not None}
            data["backtest_id"] = backtest_id
            # Realized profit is derived, never entered
            data.pop("profit", None)
            try:
                trade = Trade.model_validate(data)
            except ValidationError as e:
                raise TradeValidationError(format_validation_error(e)) from e

        if not trade.stock_name:
            stock = await self._storage.stocks.get_by_code(trade.stock_code)
            if stock is None:
                raise NotFoundError("Stock", trade.stock_code)
            trade = trade.model_copy(update={"stock_name": stock.name})

        if trade.type == TradeType.BUY and trade.profit is not None:
            trade = trade.model_copy(update={"profit": None})

        return trade

    def _validate(self, trade: Trade, backtest: Backtest, history: list[Trade]) -> None:
        """Check the trade against the book as of its timestamp.

        Raises:
            TradeValidationError: oversell, sell of an instrument not
                held, insufficient cash or a broken lot
        """
        prior = [t for t in history if _replay_key(t) <= _replay_key(trade)]
        held = recalculate_from_history(backtest.id, prior).positions.get(trade.stock_code)
        held_quantity = held.quantity if held else 0

        lot_size = self._settings.lot_size
        if self._settings.enforce_lot_size and not is_whole_lots(trade.quantity, lot_size):
            # Selling out an odd-lot remainder is allowed
            if not (trade.type == TradeType.SELL and trade.quantity == held_quantity):
                raise TradeValidationError(
                    f"quantity {trade.quantity} is not a multiple of the lot size {lot_size}"
                )

        if trade.type == TradeType.SELL:
            if not self._settings.reject_oversell:
                return
            if held is None:
                raise TradeValidationError(
                    f"no open position in {trade.stock_code} to sell as of {trade.timestamp}"
                )
            if trade.quantity > held_quantity:
                raise TradeValidationError(
                    f"sell quantity {trade.quantity} exceeds held quantity "
                    f"{held_quantity} of {trade.stock_code}"
                )
            # A back-dated SELL takes shares that later SELLs may need
            self._check_later_sells(history, [*history, trade], f"selling {trade.id}")
            return

        if self._settings.reject_insufficient_cash:
            available = self._available_cash(backtest, history, len(prior))
            if trade.amount > available:
                raise TradeValidationError(
                    f"buy amount {trade.amount} exceeds available cash {available}"
                )

    def _check_later_sells(self, before: list[Trade], after: list[Trade], change: str) -> None:
        """Reject a change that leaves a SELL without enough shares to close.

        SELLs that were already uncovered before the change are left alone.
        """
        known = {sell.id for sell, _ in uncovered_sells(before)}
        for sell, held in uncovered_sells(after):
            if sell.id not in known:
                raise TradeValidationError(
                    f"{change} would leave SELL {sell.id} of {sell.quantity} "
                    f"{sell.stock_code} at {sell.timestamp} with {held} shares held"
                )

    def _available_cash(self, backtest: Backtest, history: list[Trade], index: int) -> Decimal:
        """Lowest cash balance from the insertion point onwards.

        A BUY lowers every later balance by its amount, so it fits only
        if that lowest balance covers it.
        """
        series = compute_balance_and_drawdown(history, backtest.initial_capital).cash_series
        before = series[index - 1] if index > 0 else backtest.initial_capital
        return min([before, *series[index:]])

    async def _apply_incrementally(self, trade: Trade) -> Trade:
        """Apply a trade to its stored position and write back any profit."""
        positions = self._storage.positions
        current = await positions.get(trade.backtest_id, trade.stock_code)
        update = apply_trade(current, trade)

        if update.position is not None:
            await positions.save(update.position)
        elif current is not None:
            if not await positions.delete(trade.backtest_id, trade.stock_code):
                raise PersistenceError(
                    f"closing position {trade.stock_code} did not remove a record"
                )

        if update.realized_profit is not None:
            trade = trade.with_profit(update.realized_profit)
            await self._storage.trades.save(trade)

        return trade

    async def _refresh_summary(self, backtest: Backtest) -> Backtest:
        """Recompute and persist the summary from the full trade set."""
        trades = await self._storage.trades.get_by_backtest(backtest.id)
        refreshed = apply_summary(backtest, trades)
        await self._storage.backtests.save(refreshed)
        return refreshed

    async def _rebuild(self, backtest: Backtest) -> tuple[Backtest, list[Position]]:
        """Rederive positions, SELL profits and summary from the trade history."""
        trades = await self._storage.trades.get_by_backtest(backtest.id)
        replay = recalculate_from_history(backtest.id, trades)

        current: list[Trade] = []
        for trade in trades:
            if trade.is_sell:
                profit = replay.profits.get(trade.id)
                if profit != trade.profit:
                    trade = trade.with_profit(profit)
                    await self._storage.trades.save(trade)
            current.append(trade)

        positions = sorted(replay.positions.values(), key=lambda p: p.stock_code)
        await self._storage.positions.replace_for_backtest(backtest.id, positions)

        refreshed = apply_summary(backtest, current)
        await self._storage.backtests.save(refreshed)
        return refreshed, positions

    async def _compensate(self, backtest: Backtest, undo: Callable[[], Awaitable[Any]]) -> None:
        """Undo the trade write and rebuild derived state from history."""
        try:
            await undo()
            await self._rebuild(backtest)
            logger.warning("Rolled back trade change on backtest %s", backtest.id)
        except Exception:
            logger.error(
                "Rollback failed; backtest %s needs reconcile()",
                backtest.id,
                exc_info=True,
            )

    def _failure(self, error: Exception) -> TransactionResult:
        message, kind = describe_error(error)
        if kind == ErrorKind.PERSISTENCE:
            logger.error("Trade operation failed: %s", message)
        else:
            logger.warning("Trade operation rejected: %s", message)
        return TransactionResult(success=False, error=message, error_kind=kind)
