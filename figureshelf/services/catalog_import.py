"""
Catalog import transforms.

Turns the public catalog API response and the hand-maintained bulk JSON feed
into catalog rows, derives figure types from hex ids, and replaces the
catalog table in fixed-size batches.
"""

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.config import settings
from figureshelf.db.operations import delete_all_catalog_items, insert_catalog_batch
from figureshelf.models.catalog import RELEASE_REGIONS, FigureType
from figureshelf.models.failure import InvalidInputError

logger = logging.getLogger(__name__)

# Type byte (characters 6-7 of the hex head) -> figure type
TYPE_BY_BYTE: dict[str, FigureType] = {
    "00": FigureType.FIGURE,
    "01": FigureType.CARD,
    "02": FigureType.YARN,
    "03": FigureType.BAND,
    "04": FigureType.BLOCK,
}

# Feed series keys are the first five characters of the hex id ("0x000")
SERIES_PREFIX_LENGTH = 5


def _releases(release: dict[str, Any] | None) -> dict[str, str | None]:
    release = release or {}
    return {f"release_{region}": release.get(region) or None for region in RELEASE_REGIONS}


def figure_type_from_hex(hex_id: str | None) -> FigureType | None:
    """
    Decode the figure type from a 16-hex-digit id.

    The type lives in byte 4 of the head: "0x00000000 00000002" -> "00" ->
    Figure. Returns None for short ids or unknown bytes.
    """
    if not hex_id:
        return None
    digits = hex_id.lower().removeprefix("0x")
    if len(digits) < 16:
        return None
    return TYPE_BY_BYTE.get(digits[6:8])


def transform_api_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Map one public-API record to a catalog row."""
    head = entry.get("head") or ""
    tail = entry.get("tail") or ""
    hex_id = f"0x{head}{tail}" if head and tail else None

    row: dict[str, Any] = {
        "name": entry["name"],
        "series": entry.get("amiiboSeries") or None,
        "character": entry.get("character") or None,
        "type": entry.get("type") or None,
        "image_path": entry.get("image") or None,
        "hex_id": hex_id,
    }
    row.update(_releases(entry.get("release")))
    return row


def transform_api_payload(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Map the public API's `{"amiibo": [...]}` response to catalog rows."""
    entries = payload.get("amiibo")
    if not isinstance(entries, list):
        raise InvalidInputError("Catalog API response is missing the 'amiibo' list.")
    return [transform_api_entry(entry) for entry in entries]


def series_from_hex(hex_id: str, series_map: dict[str, str]) -> str | None:
    """Look up a series by the hex id's prefix, e.g. "0x000" -> "Super Mario"."""
    return series_map.get(hex_id[:SERIES_PREFIX_LENGTH])


def transform_feed(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Map the bulk JSON feed to catalog rows.

    Expected shape:
        {"amiibos": {hex_id: {"name": ..., "release": {"au", "na", "eu", "jp"}}},
         "game_series": {hex_prefix: series_name}}
    """
    figures = payload.get("amiibos")
    if not isinstance(figures, dict) or not figures:
        raise InvalidInputError("Invalid JSON format: missing 'amiibos' key")

    series_map: dict[str, str] = payload.get("game_series") or {}
    rows = []
    for hex_id, data in figures.items():
        row: dict[str, Any] = {
            "hex_id": hex_id,
            "name": data["name"],
            "series": series_from_hex(hex_id, series_map),
            "type": _type_value(hex_id),
        }
        row.update(_releases(data.get("release")))
        rows.append(row)
    return rows


def _type_value(hex_id: str) -> str | None:
    figure_type = figure_type_from_hex(hex_id)
    return figure_type.value if figure_type else None


def batched(rows: Sequence[dict[str, Any]], size: int) -> Iterator[Sequence[dict[str, Any]]]:
    """Yield consecutive slices of at most `size` rows."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


async def replace_catalog(
    session: AsyncSession,
    rows: Sequence[dict[str, Any]],
    batch_size: int | None = None,
) -> int:
    """
    Replace the entire catalog with `rows`.

    Existing items are deleted first, then rows are inserted in batches.
    The caller owns the transaction, so a failed batch rolls back the whole
    replacement when the session is rolled back.

    Returns the number of inserted rows.
    """
    size = batch_size or settings.import_batch_size

    deleted = await delete_all_catalog_items(session)
    logger.info("Deleted %d existing catalog items", deleted)
    logger.info("Importing %d catalog items...", len(rows))

    inserted = 0
    for number, batch in enumerate(batched(rows, size), start=1):
        try:
            inserted += await insert_catalog_batch(session, batch)
        except Exception:
            logger.error("Error inserting batch %d", number)
            raise
        logger.info("Inserted %d/%d items", inserted, len(rows))

    return inserted
