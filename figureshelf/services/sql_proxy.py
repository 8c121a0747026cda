"""
External SQL proxy.

Forwards a query and its parameters verbatim to a separate MySQL-compatible
database and reports rows, affected rows, and the last insert id. Nothing in
the collection pipeline uses this; it is a generic passthrough.

Placeholders follow the configured driver's paramstyle (`%s` for aiomysql,
`?` for aiosqlite).
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from figureshelf.config import settings

logger = logging.getLogger(__name__)

SqlParam = str | int | float | bool | None


@dataclass
class SqlProxyResult:
    """Outcome of one proxied query."""

    success: bool
    rows: list[dict[str, Any]] = field(default_factory=list)
    affected_rows: int | None = None
    last_insert_id: int | None = None
    error: str | None = None


class SqlProxy:
    """Lazily connects to the external database on first query."""

    def __init__(self, url: str | None = None) -> None:
        self.url = settings.external_sql_url if url is None else url
        self._engine: AsyncEngine | None = None

    def _get_engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.url, pool_pre_ping=True)
        return self._engine

    async def execute(
        self, query: str | None, params: list[SqlParam] | None = None
    ) -> SqlProxyResult:
        """
        Run one query.

        Never raises for database errors: failures come back as
        `success=False` with the driver's message.
        """
        if not query or not query.strip():
            return SqlProxyResult(success=False, error="Query is required")
        if not self.url:
            return SqlProxyResult(
                success=False,
                error="External SQL database not configured. Set FIGURESHELF_EXTERNAL_SQL_URL.",
            )

        logger.info("Executing proxied query: %s", query)
        try:
            async with self._get_engine().begin() as conn:
                result = await conn.exec_driver_sql(query, tuple(params or ()))
                if result.returns_rows:
                    rows = [dict(row._mapping) for row in result.fetchall()]
                    logger.info("Proxied query returned %d rows", len(rows))
                    return SqlProxyResult(success=True, rows=rows)

                return SqlProxyResult(
                    success=True,
                    affected_rows=result.rowcount,
                    last_insert_id=result.lastrowid or None,
                )
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.error("Proxied query failed: %s", message)
            return SqlProxyResult(success=False, error=message)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None


@lru_cache(maxsize=1)
def get_sql_proxy() -> SqlProxy:
    """Default proxy for the configured external database."""
    return SqlProxy()
