"""Position ledger: weighted-average cost accounting for journal trades.

Rules:
- BUY opens or adds to a position; the fee is capitalized into cost
    avg_cost = (old_avg × old_qty + price × qty + fee) / new_qty
- SELL reduces a position; the fee is deducted from proceeds
    profit = (price − avg_cost) × qty − fee
  avg_cost is unchanged by a SELL
- A SELL that brings quantity to zero (or below) removes the position

Example:
    BUY 100 @ 10.00, fee 5.30   → 100 shares, avg_cost 10.053
    SELL 100 @ 12.00, fee 6.00  → profit 188.70, position removed

The functions here are pure. Oversell and selling something not held
are absorbed (and logged) at this level so that any stored history can
be replayed; the transaction service rejects them up front.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from tradeback.domain.models.enums import TradeType
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade, sort_trades
from tradeback.domain.rules import LOT_SIZE, round_lots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerUpdate:
    """Outcome of applying one trade to one position."""

    position: Position | None
    realized_profit: Decimal | None = None
    removed: bool = False


@dataclass
class LedgerReplay:
    """Position book rebuilt from a trade history."""

    positions: dict[str, Position] = field(default_factory=dict)
    profits: dict[UUID, Decimal] = field(default_factory=dict)

    def holdings(self) -> list[tuple[str, int, Decimal, Decimal]]:
        """Identity-free view of the book, sorted by stock code."""
        return sorted(p.holding_key() for p in self.positions.values())


def apply_trade(position: Position | None, trade: Trade) -> LedgerUpdate:
    """Apply a single trade to the current position in its instrument.

    Args:
        position: Current position for the trade's stock, or None
        trade: Trade to apply

    Returns:
        LedgerUpdate with the new position (None if there is none
        afterwards) and, for a SELL against a held position, the
        realized profit to write back onto the trade
    """
    if position is not None and (
        position.backtest_id != trade.backtest_id or position.stock_code != trade.stock_code
    ):
        raise ValueError(
            f"trade {trade.id} ({trade.stock_code}) does not belong to position "
            f"{position.stock_code} of backtest {position.backtest_id}"
        )

    if trade.type == TradeType.BUY:
        return LedgerUpdate(position=_apply_buy(position, trade))
    return _apply_sell(position, trade)


def _apply_buy(position: Position | None, trade: Trade) -> Position:
    if position is None:
        return Position(
            backtest_id=trade.backtest_id,
            stock_code=trade.stock_code,
            stock_name=trade.stock_name,
            quantity=trade.quantity,
            avg_cost=(trade.price * trade.quantity + trade.fee) / trade.quantity,
            market_price=trade.price,
            update_time=trade.timestamp,
        )

    new_quantity = position.quantity + trade.quantity
    total_cost = position.cost_basis + trade.price * trade.quantity + trade.fee
    return position.model_copy(
        update={
            "quantity": new_quantity,
            "avg_cost": total_cost / new_quantity,
            "market_price": trade.price,
            "update_time": trade.timestamp,
        }
    )


def _apply_sell(position: Position | None, trade: Trade) -> LedgerUpdate:
    if position is None:
        logger.warning(
            "SELL %s of %s in backtest %s has no position to close; ignored",
            trade.id,
            trade.stock_code,
            trade.backtest_id,
        )
        return LedgerUpdate(position=None)

    profit = (trade.price - position.avg_cost) * trade.quantity - trade.fee
    remaining = position.quantity - trade.quantity

    if remaining <= 0:
        if remaining < 0:
            logger.warning(
                "SELL %s oversells %s by %d shares; excess absorbed",
                trade.id,
                trade.stock_code,
                -remaining,
            )
        return LedgerUpdate(position=None, realized_profit=profit, removed=True)

    updated = position.model_copy(
        update={
            "quantity": remaining,
            "market_price": trade.price,
            "update_time": trade.timestamp,
        }
    )
    return LedgerUpdate(position=updated, realized_profit=profit)


def recalculate_from_history(backtest_id: UUID, trades: list[Trade]) -> LedgerReplay:
    """Rebuild a backtest's whole position book from its trades.

    Replays the trades in ascending timestamp order from an empty book
    using exactly the same rules as ``apply_trade``, so the result is
    equal to applying the trades one at a time.

    Args:
        backtest_id: Backtest whose book is rebuilt
        trades: All trades of that backtest, in any order

    Returns:
        LedgerReplay with the open positions by stock code and the
        realized profit of every SELL that closed against a position
    """
    replay = LedgerReplay()

    for trade in sort_trades(trades):
        if trade.backtest_id != backtest_id:
            raise ValueError(f"trade {trade.id} belongs to backtest {trade.backtest_id}")

        update = apply_trade(replay.positions.get(trade.stock_code), trade)

        if update.realized_profit is not None:
            replay.profits[trade.id] = update.realized_profit

        if update.position is None:
            replay.positions.pop(trade.stock_code, None)
        else:
            replay.positions[trade.stock_code] = update.position

    return replay


def uncovered_sells(trades: list[Trade]) -> list[tuple[Trade, int]]:
    """Find the SELLs that close more shares than are held.

    Replays the trades in ascending timestamp order, tracking only the
    held quantity per stock. An uncovered SELL leaves nothing held,
    the same way ``apply_trade`` absorbs it.

    Args:
        trades: Trades of one backtest, in any order

    Returns:
        (sell, held_quantity) for every uncovered SELL, in replay order
    """
    held: dict[str, int] = {}
    uncovered: list[tuple[Trade, int]] = []

    for trade in sort_trades(trades):
        quantity = held.get(trade.stock_code, 0)
        if trade.type == TradeType.BUY:
            held[trade.stock_code] = quantity + trade.quantity
            continue
        if trade.quantity > quantity:
            uncovered.append((trade, quantity))
        held[trade.stock_code] = max(quantity - trade.quantity, 0)

    return uncovered


def mark_to_market(position: Position, price: Decimal, at: datetime | None = None) -> Position:
    """Re-price a position by hand.

    Args:
        position: Position to re-price
        price: New market price (must be positive)
        at: When the price was observed (defaults to now)

    Returns:
        New Position with the updated market price
    """
    if price <= 0:
        raise ValueError(f"market price must be positive, got {price}")
    return position.model_copy(
        update={"market_price": price, "update_time": at or datetime.now()}
    )


def sell_quantity_for_ratio(position: Position, ratio: Decimal, lot_size: int = LOT_SIZE) -> int:
    """Shares to sell to dispose of a fraction of a position, in whole lots.

    Args:
        position: Position being reduced
        ratio: Fraction to sell, 0..1 (e.g. Decimal("0.5") for half)
        lot_size: Shares per lot

    Returns:
        Lot-rounded (down) share count
    """
    if not Decimal("0") <= ratio <= Decimal("1"):
        raise ValueError(f"ratio must be between 0 and 1, got {ratio}")
    return round_lots(int(position.quantity * ratio), lot_size)


def remaining_quantity_for_ratio(
    position: Position, ratio: Decimal, lot_size: int = LOT_SIZE
) -> int:
    """Shares left after selling a fraction, with the remainder rounded down to lots."""
    if not Decimal("0") <= ratio <= Decimal("1"):
        raise ValueError(f"ratio must be between 0 and 1, got {ratio}")
    return round_lots(int(position.quantity * (Decimal("1") - ratio)), lot_size)
