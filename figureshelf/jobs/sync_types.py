"""
Backfill figure types from catalog hex ids.

Only rows whose decoded type differs from the stored one are updated.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.db.database import async_session_factory
from figureshelf.db.operations import list_catalog_items
from figureshelf.services.catalog_import import figure_type_from_hex

logger = logging.getLogger(__name__)

MAX_SAMPLES = 10


@dataclass
class TypeSyncResult:
    """Summary of one type backfill."""

    updated: int = 0
    total: int = 0
    samples: list[str] = field(default_factory=list)


async def sync_types(session: AsyncSession) -> TypeSyncResult:
    """Update catalog item types in the session. The caller commits."""
    items = await list_catalog_items(session)
    result = TypeSyncResult(total=len(items))
    logger.info("Found %d catalog items", len(items))

    for item in items:
        figure_type = figure_type_from_hex(item.hex_id)
        if figure_type is None or figure_type.value == item.type:
            continue

        if len(result.samples) < MAX_SAMPLES:
            result.samples.append(f"{item.name}: {item.type} -> {figure_type.value}")
        item.type = figure_type.value
        result.updated += 1

    await session.flush()
    logger.info("Updated %d catalog items", result.updated)
    for sample in result.samples:
        logger.info(sample)
    return result


async def run_type_sync() -> TypeSyncResult:
    async with async_session_factory() as session:
        result = await sync_types(session)
        await session.commit()
    return result


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_type_sync())


if __name__ == "__main__":
    main()
