"""
Scheduled job to refresh the catalog from the public catalog API.

Fetches every figure, transforms it, and replaces the catalog table in
batches. Can be run as a standalone script or called from a scheduler.
"""

import asyncio
import logging
from typing import Any

import httpx

from figureshelf.config import settings
from figureshelf.db.database import async_session_factory
from figureshelf.services.catalog_import import replace_catalog, transform_api_payload

logger = logging.getLogger(__name__)


async def fetch_catalog(client: httpx.AsyncClient, url: str | None = None) -> dict[str, Any]:
    """
    Fetch the raw catalog payload.

    Raises:
        httpx.HTTPError: If the request fails or returns a non-2xx status
    """
    response = await client.get(url or settings.catalog_api_url)
    response.raise_for_status()
    payload: dict[str, Any] = response.json()
    return payload


async def run_sync(url: str | None = None, batch_size: int | None = None) -> int:
    """
    Fetch the public catalog and replace the stored one.

    Returns:
        Number of catalog items inserted
    """
    logger.info("Fetching catalog from API...")

    async with httpx.AsyncClient(timeout=60.0) as client:
        payload = await fetch_catalog(client, url)

    rows = transform_api_payload(payload)
    logger.info("Fetched %d items from API", len(rows))

    async with async_session_factory() as session:
        try:
            count = await replace_catalog(session, rows, batch_size)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    logger.info("Successfully synced %d items", count)
    return count


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_sync())


if __name__ == "__main__":
    main()
