"""PostgreSQL implementation of PositionRepository."""

from decimal import Decimal
from uuid import UUID

from tradeback.domain.interfaces.repositories import PositionRepository
from tradeback.domain.models.position import Position
from tradeback.infrastructure.database import affected_rows, execute, fetch, fetchrow, get_connection

_COLUMNS = """
    id, backtest_id, stock_code, stock_name,
    quantity, avg_cost, market_price, update_time
"""

_UPSERT = f"""
    INSERT INTO positions ({_COLUMNS})
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
    ON CONFLICT (backtest_id, stock_code) DO UPDATE SET
        stock_name = EXCLUDED.stock_name,
        quantity = EXCLUDED.quantity,
        avg_cost = EXCLUDED.avg_cost,
        market_price = EXCLUDED.market_price,
        update_time = EXCLUDED.update_time
"""


class PostgresPositionRepository(PositionRepository):
    """PostgreSQL implementation of open positions.

    Uses upsert pattern - one row per (backtest, stock code).
    """

    async def save(self, position: Position) -> None:
        """Insert or update a position."""
        await execute(_UPSERT, *self._position_args(position))

    async def get(self, backtest_id: UUID, stock_code: str) -> Position | None:
        """Get the position a backtest holds in a stock."""
        row = await fetchrow(
            f"""
            SELECT {_COLUMNS}
            FROM positions
            WHERE backtest_id = $1 AND stock_code = $2
            """,
            backtest_id,
            stock_code,
        )
        return self._row_to_position(row) if row else None

    async def get_by_backtest(self, backtest_id: UUID) -> list[Position]:
        """Get all open positions of a backtest."""
        rows = await fetch(
            f"SELECT {_COLUMNS} FROM positions WHERE backtest_id = $1 ORDER BY stock_code",
            backtest_id,
        )
        return [self._row_to_position(row) for row in rows]

    async def get_all(self) -> list[Position]:
        """Get every open position."""
        rows = await fetch(f"SELECT {_COLUMNS} FROM positions ORDER BY backtest_id, stock_code")
        return [self._row_to_position(row) for row in rows]

    async def delete(self, backtest_id: UUID, stock_code: str) -> bool:
        """Delete a position."""
        status = await execute(
            "DELETE FROM positions WHERE backtest_id = $1 AND stock_code = $2",
            backtest_id,
            stock_code,
        )
        return affected_rows(status) > 0

    async def replace_for_backtest(self, backtest_id: UUID, positions: list[Position]) -> None:
        """Replace a backtest's position set in one transaction."""
        async with get_connection() as conn:
            async with conn.transaction():
                await conn.execute("DELETE FROM positions WHERE backtest_id = $1", backtest_id)
                for position in positions:
                    await conn.execute(_UPSERT, *self._position_args(position))

    async def delete_by_backtest(self, backtest_id: UUID) -> int:
        """Delete all positions of a backtest."""
        status = await execute("DELETE FROM positions WHERE backtest_id = $1", backtest_id)
        return affected_rows(status)

    async def clear(self) -> None:
        """Delete every position."""
        await execute("DELETE FROM positions")

    def _position_args(self, position: Position) -> tuple:
        return (
            position.id,
            position.backtest_id,
            position.stock_code,
            position.stock_name,
            position.quantity,
            position.avg_cost,
            position.market_price,
            position.update_time,
        )

    def _row_to_position(self, row) -> Position:
        """Convert database row to Position model."""
        return Position(
            id=row["id"],
            backtest_id=row["backtest_id"],
            stock_code=row["stock_code"],
            stock_name=row["stock_name"],
            quantity=row["quantity"],
            avg_cost=Decimal(str(row["avg_cost"])),
            market_price=Decimal(str(row["market_price"])),
            update_time=row["update_time"],
        )
