"""Snapshot export and import for the trade journal.

A snapshot is one JSON document holding every collection:

    {
      "version": 1,
      "exported_at": "2026-10-18T09:30:00",
      "strategies": [...],
      "backtests": [...],
      "trades": [...],
      "positions": [...],
      "stocks": [...]
    }

Import is a full overwrite, not a merge: every record is validated
first, then all collections are cleared and refilled. A failed write
puts the previous data back.
"""

import json
import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from tradeback.application.results import format_validation_error
from tradeback.domain.exceptions import PersistenceError, SnapshotError
from tradeback.domain.interfaces.repositories import Storage
from tradeback.domain.models.backtest import Backtest
from tradeback.domain.models.catalog import Stock, Strategy
from tradeback.domain.models.position import Position
from tradeback.domain.models.trade import Trade
from tradeback.domain.rules import SNAPSHOT_VERSION

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """All journal collections at one point in time."""

    version: int = SNAPSHOT_VERSION
    exported_at: datetime = Field(default_factory=datetime.now)
    strategies: list[Strategy] = Field(default_factory=list)
    backtests: list[Backtest] = Field(default_factory=list)
    trades: list[Trade] = Field(default_factory=list)
    positions: list[Position] = Field(default_factory=list)
    stocks: list[Stock] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        """Number of records per collection."""
        return {
            "strategies": len(self.strategies),
            "backtests": len(self.backtests),
            "trades": len(self.trades),
            "positions": len(self.positions),
            "stocks": len(self.stocks),
        }


async def take_snapshot(storage: Storage) -> Snapshot:
    """Read every collection into a Snapshot."""
    return Snapshot(
        strategies=await storage.strategies.get_all(),
        backtests=await storage.backtests.get_all(),
        trades=await storage.trades.get_all(),
        positions=await storage.positions.get_all(),
        stocks=await storage.stocks.get_all(),
    )


async def export_snapshot(storage: Storage, indent: int | None = 2) -> str:
    """Serialize every collection to a single JSON text."""
    snapshot = await take_snapshot(storage)
    logger.info("Exporting snapshot: %s", snapshot.counts())
    return snapshot.model_dump_json(indent=indent)


def parse_snapshot(text: str) -> Snapshot:
    """Parse and validate snapshot text.

    Raises:
        SnapshotError: If the text is not valid JSON, is from an
            unsupported version, or holds invalid records
    """
    try:
        raw: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"snapshot is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise SnapshotError("snapshot must be a JSON object")

    version = raw.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"unsupported snapshot version {version}")

    try:
        return Snapshot.model_validate(raw)
    except ValidationError as e:
        raise SnapshotError(format_validation_error(e)) from e


async def _clear(storage: Storage) -> None:
    await storage.positions.clear()
    await storage.trades.clear()
    await storage.backtests.clear()
    await storage.strategies.clear()
    await storage.stocks.clear()


async def _write(storage: Storage, snapshot: Snapshot) -> None:
    for strategy in snapshot.strategies:
        await storage.strategies.save(strategy)
    for stock in snapshot.stocks:
        await storage.stocks.save(stock)
    for backtest in snapshot.backtests:
        await storage.backtests.save(backtest)
    for trade in snapshot.trades:
        await storage.trades.save(trade)
    for position in snapshot.positions:
        await storage.positions.save(position)


async def import_snapshot(storage: Storage, text: str) -> Snapshot:
    """Replace every collection with the contents of a snapshot.

    The current data is read into memory first. If clearing or writing
    fails partway, the collections are cleared again and the previous
    data is written back before the error is raised.

    Args:
        storage: Storage context to overwrite
        text: Snapshot JSON produced by export_snapshot

    Returns:
        The imported Snapshot

    Raises:
        SnapshotError: If the text is malformed (nothing is cleared)
        PersistenceError: If the import failed and the previous data
            was restored
    """
    snapshot = parse_snapshot(text)
    previous = await take_snapshot(storage)

    try:
        await _clear(storage)
        await _write(storage, snapshot)
    except Exception as e:
        logger.error("Snapshot import failed; restoring previous data", exc_info=True)
        await _clear(storage)
        await _write(storage, previous)
        raise PersistenceError(f"snapshot import failed and was rolled back: {e}") from e

    logger.info("Imported snapshot: %s", snapshot.counts())
    return snapshot
