"""Import the catalog from a bulk JSON feed file.

Usage:
    python -m figureshelf.jobs.import_catalog --file data/amiibo.json
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from figureshelf.db.database import async_session_factory
from figureshelf.services.catalog_import import replace_catalog, transform_feed

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Raised when the feed file cannot be read."""


def load_feed(path: Path) -> dict[str, Any]:
    """Read and parse a feed file."""
    try:
        with open(path, encoding="utf-8") as f:
            payload: dict[str, Any] = json.load(f)
    except (FileNotFoundError, PermissionError, OSError) as exc:
        raise FeedError(f"Failed to read feed file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise FeedError(f"Invalid JSON in feed file '{path}': {exc}") from exc
    return payload


async def run_import(path: Path, batch_size: int | None = None) -> int:
    """
    Replace the catalog with the contents of a feed file.

    Returns:
        Number of catalog items inserted
    """
    rows = transform_feed(load_feed(path))

    async with async_session_factory() as session:
        try:
            count = await replace_catalog(session, rows, batch_size)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    logger.info("Successfully imported %d items", count)
    return count


def main() -> None:
    """CLI entrypoint for feed import."""
    parser = argparse.ArgumentParser(description="Import the catalog from a JSON feed")
    parser.add_argument(
        "--file",
        type=Path,
        required=True,
        help="Path to the feed JSON file",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows per insert batch (defaults to FIGURESHELF_IMPORT_BATCH_SIZE)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.file.exists():
        print(f"Error: Feed file not found: {args.file}")
        return

    count = asyncio.run(run_import(args.file, args.batch_size))
    print(f"Imported {count} items")


if __name__ == "__main__":
    main()
