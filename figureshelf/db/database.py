"""
Engine, session factory and the per-request session dependency.

The configured URL picks the driver: asyncpg for Postgres in production,
aiosqlite for local runs. SQLite needs foreign keys switched on per
connection for the catalog cascades to apply.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from figureshelf.config import settings
from figureshelf.models.db import Base

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict[str, Any]:
    """Keyword arguments for create_async_engine, by backend."""
    options: dict[str, Any] = {"echo": settings.debug}
    if make_url(url).get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
    return options


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> AsyncEngine:
    built = create_async_engine(url, **engine_options(url))
    if built.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(built)
    return built


engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    The request's writes are committed once the handler returns. Any
    exception, KnownError included, rolls back what was flushed.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables. Existing tables are left as they are."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready on %s", engine.url.render_as_string(hide_password=True))
