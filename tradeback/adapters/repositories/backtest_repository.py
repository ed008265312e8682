"""PostgreSQL implementation of BacktestRepository."""

from decimal import Decimal
from uuid import UUID

from tradeback.domain.interfaces.repositories import BacktestRepository
from tradeback.domain.models.backtest import Backtest, BacktestSummary
from tradeback.domain.models.enums import BacktestStatus
from tradeback.infrastructure.database import affected_rows, execute, fetch, fetchrow

_COLUMNS = """
    id, name, strategy_id, strategy_name, start_date, end_date,
    initial_capital, current_capital, status, summary, notes,
    create_time, update_time
"""


class PostgresBacktestRepository(BacktestRepository):
    """PostgreSQL implementation of backtest persistence.

    The derived summary is stored as a JSONB document and overwritten
    wholesale on every recompute.
    """

    async def save(self, backtest: Backtest) -> None:
        """Insert or update a backtest."""
        await execute(
            f"""
            INSERT INTO backtests ({_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb, $11, $12, $13)
            ON CONFLICT (id) DO UPDATE SET
                name = EXCLUDED.name,
                strategy_id = EXCLUDED.strategy_id,
                strategy_name = EXCLUDED.strategy_name,
                start_date = EXCLUDED.start_date,
                end_date = EXCLUDED.end_date,
                current_capital = EXCLUDED.current_capital,
                status = EXCLUDED.status,
                summary = EXCLUDED.summary,
                notes = EXCLUDED.notes,
                update_time = EXCLUDED.update_time
            """,
            backtest.id,
            backtest.name,
            backtest.strategy_id,
            backtest.strategy_name,
            backtest.start_date,
            backtest.end_date,
            backtest.initial_capital,
            backtest.current_capital,
            backtest.status.value,
            backtest.summary.model_dump_json(),
            backtest.notes,
            backtest.create_time,
            backtest.update_time,
        )

    async def get(self, backtest_id: UUID) -> Backtest | None:
        """Get a backtest by id."""
        row = await fetchrow(f"SELECT {_COLUMNS} FROM backtests WHERE id = $1", backtest_id)
        return self._row_to_backtest(row) if row else None

    async def get_all(self) -> list[Backtest]:
        """Get all backtests, oldest first."""
        rows = await fetch(f"SELECT {_COLUMNS} FROM backtests ORDER BY create_time")
        return [self._row_to_backtest(row) for row in rows]

    async def get_by_strategy(self, strategy_id: UUID) -> list[Backtest]:
        """Get the backtests run against a strategy."""
        rows = await fetch(
            f"SELECT {_COLUMNS} FROM backtests WHERE strategy_id = $1 ORDER BY create_time",
            strategy_id,
        )
        return [self._row_to_backtest(row) for row in rows]

    async def delete(self, backtest_id: UUID) -> bool:
        """Delete a backtest record."""
        status = await execute("DELETE FROM backtests WHERE id = $1", backtest_id)
        return affected_rows(status) > 0

    async def clear(self) -> None:
        """Delete every backtest."""
        await execute("DELETE FROM backtests")

    def _row_to_backtest(self, row) -> Backtest:
        """Convert database row to Backtest model."""
        return Backtest(
            id=row["id"],
            name=row["name"],
            strategy_id=row["strategy_id"],
            strategy_name=row["strategy_name"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            initial_capital=Decimal(str(row["initial_capital"])),
            current_capital=Decimal(str(row["current_capital"])),
            status=BacktestStatus(row["status"]),
            summary=BacktestSummary.model_validate_json(row["summary"]),
            notes=row["notes"] or "",
            create_time=row["create_time"],
            update_time=row["update_time"],
        )
