"""PostgreSQL implementations of StrategyRepository and StockRepository."""

import json
from uuid import UUID

from tradeback.domain.interfaces.repositories import StockRepository, StrategyRepository
from tradeback.domain.models.catalog import Stock, Strategy
from tradeback.infrastructure.database import affected_rows, execute, fetch, fetchrow


class PostgresStrategyRepository(StrategyRepository):
    """PostgreSQL implementation of strategy persistence."""

    async def save(self, strategy: Strategy) -> None:
        """Insert or update a strategy."""
        await execute(
            """
            INSERT INTO strategies (id, name, description, rules, create_time, update_time)
            VALUES ($1, $2, $3, $4::jsonb, $5, $6)
            ON CONFLICT (id) DO UPDATE SET
                name = EXCLUDED.name,
                description = EXCLUDED.description,
                rules = EXCLUDED.rules,
                update_time = EXCLUDED.update_time
            """,
            strategy.id,
            strategy.name,
            strategy.description,
            json.dumps(list(strategy.rules)),
            strategy.create_time,
            strategy.update_time,
        )

    async def get(self, strategy_id: UUID) -> Strategy | None:
        """Get a strategy by id."""
        row = await fetchrow(
            """
            SELECT id, name, description, rules, create_time, update_time
            FROM strategies
            WHERE id = $1
            """,
            strategy_id,
        )
        return self._row_to_strategy(row) if row else None

    async def get_all(self) -> list[Strategy]:
        """Get all strategies, oldest first."""
        rows = await fetch(
            """
            SELECT id, name, description, rules, create_time, update_time
            FROM strategies
            ORDER BY create_time
            """
        )
        return [self._row_to_strategy(row) for row in rows]

    async def delete(self, strategy_id: UUID) -> bool:
        """Delete a strategy."""
        status = await execute("DELETE FROM strategies WHERE id = $1", strategy_id)
        return affected_rows(status) > 0

    async def clear(self) -> None:
        """Delete every strategy."""
        await execute("DELETE FROM strategies")

    def _row_to_strategy(self, row) -> Strategy:
        """Convert database row to Strategy model."""
        rules = row["rules"]
        if isinstance(rules, str):
            rules = json.loads(rules)
        return Strategy(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            rules=tuple(rules or ()),
            create_time=row["create_time"],
            update_time=row["update_time"],
        )


class PostgresStockRepository(StockRepository):
    """PostgreSQL implementation of the stock pool."""

    async def save(self, stock: Stock) -> None:
        """Insert or update a stock."""
        await execute(
            """
            INSERT INTO stocks (id, code, name, note)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (id) DO UPDATE SET
                code = EXCLUDED.code,
                name = EXCLUDED.name,
                note = EXCLUDED.note
            """,
            stock.id,
            stock.code,
            stock.name,
            stock.note,
        )

    async def get(self, stock_id: UUID) -> Stock | None:
        """Get a stock by id."""
        row = await fetchrow("SELECT id, code, name, note FROM stocks WHERE id = $1", stock_id)
        return self._row_to_stock(row) if row else None

    async def get_by_code(self, code: str) -> Stock | None:
        """Get a stock by its code."""
        row = await fetchrow("SELECT id, code, name, note FROM stocks WHERE code = $1", code)
        return self._row_to_stock(row) if row else None

    async def get_all(self) -> list[Stock]:
        """Get the whole pool, ordered by code."""
        rows = await fetch("SELECT id, code, name, note FROM stocks ORDER BY code")
        return [self._row_to_stock(row) for row in rows]

    async def delete(self, stock_id: UUID) -> bool:
        """Delete a stock."""
        status = await execute("DELETE FROM stocks WHERE id = $1", stock_id)
        return affected_rows(status) > 0

    async def clear(self) -> None:
        """Delete every stock."""
        await execute("DELETE FROM stocks")

    def _row_to_stock(self, row) -> Stock:
        """Convert database row to Stock model."""
        return Stock(id=row["id"], code=row["code"], name=row["name"], note=row["note"])
