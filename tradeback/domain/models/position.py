"""Position model for the trade journal."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field


class Position(BaseModel):
    """Current holding of one instrument within one backtest.

    A position only exists while quantity > 0; it is deleted, not
    zeroed, when a SELL closes it out. Acquisition fees are part of
    ``avg_cost``.
    """

    model_config = {"frozen": True}

    id: UUID = Field(default_factory=uuid4)
    backtest_id: UUID
    stock_code: str
    stock_name: str = ""

    quantity: int = Field(..., gt=0)
    avg_cost: Decimal = Field(..., description="Weighted average cost per share incl. fees")
    market_price: Decimal = Field(..., description="Last known trade price")
    update_time: datetime = Field(default_factory=datetime.now)

    @computed_field
    @property
    def market_value(self) -> Decimal:
        """Quantity marked at the last known price."""
        return self.market_price * self.quantity

    @computed_field
    @property
    def profit(self) -> Decimal:
        """Unrealized P&L at the last known price."""
        return (self.market_price - self.avg_cost) * self.quantity

    @property
    def cost_basis(self) -> Decimal:
        """Total cost of the shares held, fees included."""
        return self.avg_cost * self.quantity

    def holding_key(self) -> tuple[str, int, Decimal, Decimal]:
        """Identity-free view used to compare position books."""
        return (self.stock_code, self.quantity, self.avg_cost, self.market_price)
