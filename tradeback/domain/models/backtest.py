"""Backtest run and summary models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field

from tradeback.domain.models.enums import BacktestStatus


class BacktestSummary(BaseModel):
    """Derived performance statistics for a backtest.

    This is a cache: it is fully recomputable from the backtest's
    initial capital and its trade set, and is always replaced
    wholesale, never patched.
    """

    model_config = {"frozen": True}

    total_profit: Decimal = Decimal("0")
    realized_profit: Decimal = Decimal("0")
    total_trades: int = Field(default=0, description="Number of SELL trades")
    winning_trades: int = 0
    max_profit: Decimal = Decimal("0")
    max_loss: Decimal = Decimal("0")
    max_drawdown: Decimal = Decimal("0")
    win_rate: Decimal = Decimal("0")
    profit_factor: Decimal = Field(
        default=Decimal("0"),
        allow_inf_nan=True,
        description="avg win / avg loss; Infinity when there are wins but no losses",
    )
    expectation: Decimal = Decimal("0")
    profit_ratio: Decimal = Decimal("0")
    current_cash: Decimal = Decimal("0")
    total_assets: Decimal = Decimal("0")

    @computed_field
    @property
    def losing_trades(self) -> int:
        """SELL trades that did not book a profit."""
        return self.total_trades - self.winning_trades

    @classmethod
    def initial(cls, initial_capital: Decimal) -> "BacktestSummary":
        """Summary of a backtest with no trades yet."""
        return cls(current_cash=initial_capital, total_assets=initial_capital)


class Backtest(BaseModel):
    """A named simulated trading run with its own capital and trade history.

    ``current_capital`` mirrors ``summary.current_cash`` and is only
    changed by a summary recompute.
    """

    model_config = {"frozen": True}

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    strategy_id: UUID | None = None
    strategy_name: str = ""

    start_date: datetime = Field(default_factory=datetime.now)
    end_date: datetime | None = None

    initial_capital: Decimal = Field(..., gt=0)
    current_capital: Decimal
    status: BacktestStatus = BacktestStatus.ACTIVE
    summary: BacktestSummary
    notes: str = ""

    create_time: datetime = Field(default_factory=datetime.now)
    update_time: datetime = Field(default_factory=datetime.now)

    @classmethod
    def open(
        cls,
        name: str,
        initial_capital: Decimal,
        strategy_id: UUID | None = None,
        strategy_name: str = "",
        start_date: datetime | None = None,
        notes: str = "",
    ) -> "Backtest":
        """Create a fresh backtest whose cash equals its initial capital.

        Args:
            name: Display name of the run
            initial_capital: Starting cash (must be positive)
            strategy_id: Strategy the run is testing, if any
            strategy_name: Denormalized strategy name for display
            start_date: When the run starts (defaults to now)
            notes: Free text

        Returns:
            New Backtest with an all-zero summary
        """
        extra = {"start_date": start_date} if start_date is not None else {}
        return cls(
            name=name,
            strategy_id=strategy_id,
            strategy_name=strategy_name,
            initial_capital=initial_capital,
            current_capital=initial_capital,
            summary=BacktestSummary.initial(initial_capital),
            notes=notes,
            **extra,
        )
