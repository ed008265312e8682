"""Storage context factory."""

from tradeback.adapters.repositories.backtest_repository import PostgresBacktestRepository
from tradeback.adapters.repositories.catalog_repository import (
    PostgresStockRepository,
    PostgresStrategyRepository,
)
from tradeback.adapters.repositories.memory import in_memory_storage
from tradeback.adapters.repositories.position_repository import PostgresPositionRepository
from tradeback.adapters.repositories.trade_repository import PostgresTradeRepository
from tradeback.domain.interfaces.repositories import Storage
from tradeback.infrastructure.config import Settings, get_settings


def postgres_storage() -> Storage:
    """Storage context backed by the shared PostgreSQL pool."""
    return Storage(
        strategies=PostgresStrategyRepository(),
        stocks=PostgresStockRepository(),
        backtests=PostgresBacktestRepository(),
        trades=PostgresTradeRepository(),
        positions=PostgresPositionRepository(),
    )


def build_storage(settings: Settings | None = None) -> Storage:
    """Create the storage context selected by STORAGE_BACKEND."""
    settings = settings or get_settings()
    if settings.storage_backend == "postgres":
        return postgres_storage()
    return in_memory_storage()
