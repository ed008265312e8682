"""Trade record model for the trade journal."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from tradeback.domain.models.enums import TradeType


class Trade(BaseModel):
    """A single hand-entered BUY or SELL against a backtest.

    Trades are immutable once created. The only field that is ever
    filled in after the fact is ``profit`` on a SELL, which is done by
    persisting a copy (see ``with_profit``).

    Used for:
    - Position ledger updates (weighted-average cost)
    - Summary statistics (realized profit, win rate, ...)
    - Cash balance and drawdown replay
    """

    model_config = {"frozen": True}

    id: UUID = Field(default_factory=uuid4)
    backtest_id: UUID
    stock_code: str = Field(..., min_length=1)
    stock_name: str = ""
    type: TradeType

    price: Decimal = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    amount: Decimal = Field(..., description="price × quantity, fee excluded")
    fee: Decimal = Field(default=Decimal("0"), ge=0)

    timestamp: datetime = Field(default_factory=datetime.now)
    create_time: datetime = Field(default_factory=datetime.now)

    # Realized P&L, only meaningful on SELL trades
    profit: Decimal | None = None

    reason: str = ""
    notes: str | None = None

    @field_validator("timestamp", "create_time")
    @classmethod
    def _to_local_naive(cls, value: datetime) -> datetime:
        """Store instants as naive local time so all trades compare."""
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @model_validator(mode="before")
    @classmethod
    def _fill_amount(cls, data: Any) -> Any:
        """Compute amount from price and quantity when it is not given."""
        if isinstance(data, dict) and data.get("amount") is None:
            price = data.get("price")
            quantity = data.get("quantity")
            if price is not None and quantity is not None:
                try:
                    amount = Decimal(str(price)) * int(quantity)
                except (ArithmeticError, TypeError, ValueError):
                    # Leave it to field validation to report the bad input
                    return data
                data = {**data, "amount": amount}
        return data

    @model_validator(mode="after")
    def _check_amount(self) -> "Trade":
        """Amount must equal price × quantity at creation time."""
        if self.amount != self.price * self.quantity:
            raise ValueError(
                f"amount {self.amount} does not equal price × quantity "
                f"({self.price} × {self.quantity})"
            )
        return self

    @computed_field
    @property
    def is_sell(self) -> bool:
        """Check if this trade closes (part of) a position."""
        return self.type == TradeType.SELL

    @computed_field
    @property
    def is_winner(self) -> bool:
        """Check if this SELL booked a profit."""
        return self.is_sell and (self.profit or Decimal("0")) > 0

    def with_profit(self, profit: Decimal) -> "Trade":
        """Return a copy with the realized profit filled in."""
        return self.model_copy(update={"profit": profit})


def sort_trades(trades: list[Trade]) -> list[Trade]:
    """Sort trades into replay order.

    Ascending by timestamp; ties are broken by insertion time and then
    by the order the trades were given in (the sort is stable).
    """
    return sorted(trades, key=lambda t: (t.timestamp, t.create_time))
