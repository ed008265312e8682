#!/usr/bin/env python3
"""Export or restore the whole trade journal as one JSON snapshot.

Usage:
    python scripts/data_snapshot.py export backup.json
    python scripts/data_snapshot.py import backup.json

Requires STORAGE_BACKEND=postgres. Import is a full overwrite of every
collection.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from tradeback.application.commands.snapshot import export_snapshot, import_snapshot
from tradeback.domain.exceptions import TradebackError
from tradeback.infrastructure.config import get_settings
from tradeback.infrastructure.database import close_pool
from tradeback.infrastructure.storage import build_storage

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format=settings.log_format,
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run(action: str, path: Path) -> None:
    storage = build_storage(settings)
    try:
        if action == "export":
            text = await export_snapshot(storage)
            path.write_text(text, encoding="utf-8")
            logger.info("Wrote snapshot to %s", path)
        else:
            text = path.read_text(encoding="utf-8")
            await import_snapshot(storage, text)
            logger.info("Restored snapshot from %s", path)
    finally:
        await close_pool()


def main():
    parser = argparse.ArgumentParser(
        description="Export or import a trade journal snapshot"
    )
    parser.add_argument(
        "action",
        choices=["export", "import"],
        help="export writes a snapshot, import overwrites all data with one",
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Snapshot JSON file",
    )
    args = parser.parse_args()

    if settings.storage_backend == "memory":
        parser.error(
            "STORAGE_BACKEND is memory, which holds no data between runs; "
            "set STORAGE_BACKEND=postgres"
        )

    if args.action == "import" and not args.path.exists():
        parser.error(f"snapshot file not found: {args.path}")

    try:
        asyncio.run(run(args.action, args.path))
    except TradebackError as e:
        logger.error("Snapshot %s failed: %s", args.action, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
