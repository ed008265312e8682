"""Backtest report query.

Rederives a backtest's positions and summary from its persisted
trades on every read, so the report is correct even when the cached
summary on the backtest record is stale.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from tradeback.application.results import ServiceResult
from tradeback.domain.exceptions import NotFoundError
from tradeback.domain.interfaces.repositories import Storage
from tradeback.domain.models.backtest import Backtest, BacktestSummary
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade
from tradeback.domain.services.balance import compute_balance_and_drawdown
from tradeback.domain.services.ledger import recalculate_from_history
from tradeback.domain.services.summary import compute_summary

logger = logging.getLogger(__name__)


@dataclass
class BacktestReport:
    """Everything needed to display one backtest."""

    backtest: Backtest
    summary: BacktestSummary
    positions: list[Position] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    cash_series: list[Decimal] = field(default_factory=list)
    stale: bool = False

    @property
    def positions_market_value(self) -> Decimal:
        """Sum of the open positions marked at their last price."""
        return sum((p.market_value for p in self.positions), Decimal("0"))


class BacktestReportQuery:
    """Query that builds a BacktestReport from the trade history."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    async def get_report(self, backtest_id: UUID) -> ServiceResult[BacktestReport]:
        """Build the report for a backtest.

        ``stale`` is True when the cached summary or the stored position
        set no longer match what the trades imply; callers can then
        run TransactionService.reconcile().
        """
        try:
            backtest = await self._storage.backtests.get(backtest_id)
            if backtest is None:
                raise NotFoundError("Backtest", backtest_id)
            trades = await self._storage.trades.get_by_backtest(backtest_id)
            stored = await self._storage.positions.get_by_backtest(backtest_id)
        except Exception as e:
            return ServiceResult.fail(e, logger)

        replay = recalculate_from_history(backtest_id, trades)
        summary = compute_summary(trades, backtest.initial_capital)
        balance = compute_balance_and_drawdown(trades, backtest.initial_capital)
        positions = sorted(replay.positions.values(), key=lambda p: p.stock_code)

        stale = (
            summary.model_dump() != backtest.summary.model_dump()
            or sorted(p.holding_key() for p in stored) != replay.holdings()
        )

        return ServiceResult.ok(
            BacktestReport(
                backtest=backtest,
                summary=summary,
                positions=positions,
                trades=trades,
                cash_series=balance.cash_series,
                stale=stale,
            )
        )
