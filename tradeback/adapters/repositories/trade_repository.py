"""PostgreSQL implementation of TradeRepository."""

from decimal import Decimal
from uuid import UUID

from tradeback.domain.interfaces.repositories import TradeRepository
from tradeback.domain.models.enums import TradeType
from tradeback.domain.models.trade import Trade
from tradeback.infrastructure.database import affected_rows, execute, fetch, fetchrow

_COLUMNS = """
    id, backtest_id, stock_code, stock_name, type,
    price, quantity, amount, fee,
    timestamp, create_time, profit, reason, notes
"""


class PostgresTradeRepository(TradeRepository):
    """PostgreSQL implementation of journal trade persistence.

    Trades are immutable except for the realized profit written back
    onto a SELL, which is the only column the upsert touches.
    """

    async def save(self, trade: Trade) -> None:
        """Insert a trade, or update its realized profit."""
        await execute(
            f"""
            INSERT INTO trades ({_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            ON CONFLICT (id) DO UPDATE SET
                profit = EXCLUDED.profit
            """,
            trade.id,
            trade.backtest_id,
            trade.stock_code,
            trade.stock_name,
            trade.type.value,
            trade.price,
            trade.quantity,
            trade.amount,
            trade.fee,
            trade.timestamp,
            trade.create_time,
            trade.profit,
            trade.reason,
            trade.notes,
        )

    async def get(self, trade_id: UUID) -> Trade | None:
        """Get a trade by id."""
        row = await fetchrow(f"SELECT {_COLUMNS} FROM trades WHERE id = $1", trade_id)
        return self._row_to_trade(row) if row else None

    async def get_by_backtest(self, backtest_id: UUID) -> list[Trade]:
        """Get all trades of a backtest in replay order."""
        rows = await fetch(
            f"""
            SELECT {_COLUMNS}
            FROM trades
            WHERE backtest_id = $1
            ORDER BY timestamp, create_time
            """,
            backtest_id,
        )
        return [self._row_to_trade(row) for row in rows]

    async def get_all(self) -> list[Trade]:
        """Get every trade of every backtest."""
        rows = await fetch(f"SELECT {_COLUMNS} FROM trades ORDER BY timestamp, create_time")
        return [self._row_to_trade(row) for row in rows]

    async def delete(self, trade_id: UUID) -> bool:
        """Delete a trade."""
        status = await execute("DELETE FROM trades WHERE id = $1", trade_id)
        return affected_rows(status) > 0

    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        """Delete all trades of a backtest."""
        status = await execute("DELETE FROM trades WHERE backtest_id = $1", backtest_id)
        return affected_rows(status)

    async def clear(self) -> None:
        """Delete every trade."""
        await execute("DELETE FROM trades")

    def _row_to_trade(self, row) -> Trade:
        """Convert database row to Trade model."""
        return Trade(
            id=row["id"] if isinstance(row["id"], UUID) else UUID(row["id"]),
            backtest_id=row["backtest_id"],
            stock_code=row["stock_code"],
            stock_name=row["stock_name"],
            type=TradeType(row["type"]),
            price=Decimal(str(row["price"])),
            quantity=row["quantity"],
            amount=Decimal(str(row["amount"])),
            fee=Decimal(str(row["fee"])),
            timestamp=row["timestamp"],
            create_time=row["create_time"],
            profit=Decimal(str(row["profit"])) if row["profit"] is not None else None,
            reason=row["reason"] or "",
            notes=row["notes"],
        )
