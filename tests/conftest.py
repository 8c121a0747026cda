from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from figureshelf.db.database import get_session
from figureshelf.db.operations import create_catalog_item, grant_role
from figureshelf.main import app
from figureshelf.models.db import Base, CatalogItemDB

ADMIN_ID = "admin-1"

# Identity the test client sends by default; writes to this user's records pass
USER_ID = "user-1"


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Provide an async test client with overridden database session, signed in as USER_ID."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers={"X-User-Id": USER_ID}
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Id": ADMIN_ID}


@pytest.fixture
async def admin(session_factory) -> str:
    """Grant the admin role to ADMIN_ID."""
    async with session_factory() as session:
        await grant_role(session, ADMIN_ID)
        await session.commit()
    return ADMIN_ID


async def _add_catalog_items(session: AsyncSession, *rows: dict[str, Any]) -> list[CatalogItemDB]:
    """Insert catalog rows and commit."""
    items = [await create_catalog_item(session, row) for row in rows]
    await session.commit()
    return items


@pytest.fixture
async def seeded(session_factory) -> dict[str, str]:
    """
    A small catalog: two Super Mario figures, one Zelda figure, one card.

    Returns a name -> id mapping.
    """
    async with session_factory() as session:
        items = await _add_catalog_items(
            session,
            {
                "name": "Mario",
                "series": "Super Mario",
                "type": "Figure",
                "character": "Mario",
                "release_na": "2014-11-21",
            },
            {
                "name": "Luigi",
                "series": "Super Mario",
                "type": "Figure",
                "character": "Luigi",
                "release_na": "2014-12-14",
            },
            {
                "name": "Link",
                "series": "The Legend of Zelda",
                "type": "Figure",
                "character": "Link",
                "release_na": "2014-11-21",
            },
            {
                "name": "Isabelle Card",
                "series": "Animal Crossing",
                "type": "Card",
                "character": "Isabelle",
            },
        )
    return {item.name: item.id for item in items}
