"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
catalog items, ownership and wishlist records, profiles, and roles.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.models.catalog import (
    CatalogItem,
    Condition,
    OwnershipRecord,
    Profile,
    WishlistRecord,
)
from figureshelf.models.db import (
    CatalogItemDB,
    OwnershipDB,
    ProfileDB,
    UserRoleDB,
    WishlistDB,
)
from figureshelf.models.failure import DuplicateRecordError

CATALOG_FIELDS = (
    "name",
    "series",
    "type",
    "character",
    "image_path",
    "hex_id",
    "release_na",
    "release_jp",
    "release_eu",
    "release_au",
)

OWNERSHIP_FIELDS = ("is_boxed", "condition", "value_paid", "notes", "acquired_at")

PROFILE_FIELDS = ("username", "avatar_url", "birthdate", "country", "language", "currency")

ADMIN_ROLE = "admin"

# SQLSTATE for unique_violation; SQLite reports it only in the message
UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Whether an IntegrityError came from a unique constraint, not a FK or NOT NULL."""
    orig = error.orig
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig).lower()

# --- Catalog Operations ---


async def list_catalog_items(session: AsyncSession) -> list[CatalogItemDB]:
    """Get every catalog item, ordered by name."""
    result = await session.execute(select(CatalogItemDB).order_by(CatalogItemDB.name))
    return list(result.scalars().all())


async def count_catalog_items(session: AsyncSession) -> int:
    """Number of items in the catalog."""
    result = await session.execute(select(func.count()).select_from(CatalogItemDB))
    return int(result.scalar_one())


async def get_catalog_item(session: AsyncSession, item_id: str) -> CatalogItemDB | None:
    """Get a catalog item by id. Returns None if absent."""
    return await session.get(CatalogItemDB, item_id)


async def create_catalog_item(session: AsyncSession, fields: dict[str, Any]) -> CatalogItemDB:
    """Create a catalog item from a field mapping. Unknown keys are ignored."""
    item = CatalogItemDB(**{k: v for k, v in fields.items() if k in CATALOG_FIELDS})
    session.add(item)
    await session.flush()
    return item


async def update_catalog_item(
    session: AsyncSession, item_id: str, patch: dict[str, Any]
) -> CatalogItemDB | None:
    """
    Apply a partial update to a catalog item.

    Returns None if the item does not exist.
    """
    item = await get_catalog_item(session, item_id)
    if item is None:
        return None

    for key, value in patch.items():
        if key in CATALOG_FIELDS:
            setattr(item, key, value)

    await session.flush()
    return item


async def delete_catalog_item(session: AsyncSession, item_id: str) -> bool:
    """
    Delete a catalog item and every record that references it.

    Returns True if deleted, False if not found.
    """
    item = await get_catalog_item(session, item_id)
    if item is None:
        return False

    await session.execute(delete(OwnershipDB).where(OwnershipDB.item_id == item_id))
    await session.execute(delete(WishlistDB).where(WishlistDB.item_id == item_id))
    await session.delete(item)
    return True


async def delete_all_catalog_items(session: AsyncSession) -> int:
    """
    Delete the whole catalog.

    Returns the number of deleted records.
    """
    result = await session.execute(delete(CatalogItemDB))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount)  # type: ignore[attr-defined]


async def insert_catalog_batch(session: AsyncSession, rows: Sequence[dict[str, Any]]) -> int:
    """Insert a batch of catalog rows. Returns the number inserted."""
    session.add_all(
        CatalogItemDB(**{k: v for k, v in row.items() if k in CATALOG_FIELDS}) for row in rows
    )
    await session.flush()
    return len(rows)


def catalog_item_to_model(item: CatalogItemDB) -> CatalogItem:
    """Convert a database catalog item to a domain model."""
    return CatalogItem(
        id=item.id,
        name=item.name,
        series=item.series,
        type=item.type,
        character=item.character,
        image_path=item.image_path,
        hex_id=item.hex_id,
        release_na=item.release_na,
        release_jp=item.release_jp,
        release_eu=item.release_eu,
        release_au=item.release_au,
    )


# --- Ownership Operations ---


async def list_ownership(session: AsyncSession, user_id: str) -> list[OwnershipDB]:
    """Get every ownership record for a user."""
    result = await session.execute(select(OwnershipDB).where(OwnershipDB.user_id == user_id))
    return list(result.scalars().all())


async def get_ownership(session: AsyncSession, user_id: str, item_id: str) -> OwnershipDB | None:
    """Get the ownership record for (user, item). Returns None if absent."""
    result = await session.execute(
        select(OwnershipDB).where(
            OwnershipDB.user_id == user_id,
            OwnershipDB.item_id == item_id,
        )
    )
    return result.scalar_one_or_none()


async def insert_ownership(session: AsyncSession, record: OwnershipRecord) -> OwnershipDB:
    """
    Create an ownership record.

    Raises DuplicateRecordError if the user already owns the item.
    """
    if await get_ownership(session, record.owner, record.item_id) is not None:
        raise DuplicateRecordError(f"Item {record.item_id} is already in the collection.")

    row = OwnershipDB(
        user_id=record.owner,
        item_id=record.item_id,
        is_boxed=record.is_boxed,
        condition=record.condition.value,
        value_paid=record.value_paid,
        notes=record.notes,
        acquired_at=record.acquired_at,
    )
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise DuplicateRecordError(
            f"Item {record.item_id} is already in the collection.", detail=str(e.orig)
        ) from e
    return row


async def update_ownership(
    session: AsyncSession, user_id: str, item_id: str, patch: dict[str, Any]
) -> OwnershipDB | None:
    """
    Overwrite fields on an ownership record.

    Returns None if the user does not own the item.
    """
    row = await get_ownership(session, user_id, item_id)
    if row is None:
        return None

    for key, value in patch.items():
        if key not in OWNERSHIP_FIELDS:
            continue
        if isinstance(value, Condition):
            value = value.value
        setattr(row, key, value)

    await session.flush()
    return row


async def delete_ownership(session: AsyncSession, user_id: str, item_id: str) -> bool:
    """
    Delete the ownership record for (user, item).

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        delete(OwnershipDB).where(
            OwnershipDB.user_id == user_id,
            OwnershipDB.item_id == item_id,
        )
    )
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


def ownership_to_model(row: OwnershipDB) -> OwnershipRecord:
    """Convert a database ownership record to a domain model."""
    return OwnershipRecord(
        item_id=row.item_id,
        owner=row.user_id,
        is_boxed=bool(row.is_boxed),
        condition=Condition(row.condition or Condition.NEW.value),
        value_paid=row.value_paid,
        notes=row.notes,
        acquired_at=row.acquired_at,
    )


# --- Wishlist Operations ---


async def list_wishlist(session: AsyncSession, user_id: str) -> list[WishlistDB]:
    """Get every wishlist record for a user."""
    result = await session.execute(select(WishlistDB).where(WishlistDB.user_id == user_id))
    return list(result.scalars().all())


async def get_wishlist_entry(
    session: AsyncSession, user_id: str, item_id: str
) -> WishlistDB | None:
    """Get the wishlist record for (user, item). Returns None if absent."""
    result = await session.execute(
        select(WishlistDB).where(
            WishlistDB.user_id == user_id,
            WishlistDB.item_id == item_id,
        )
    )
    return result.scalar_one_or_none()


async def insert_wishlist(session: AsyncSession, record: WishlistRecord) -> WishlistDB:
    """
    Create a wishlist record.

    Raises DuplicateRecordError if the item is already wishlisted.
    """
    if await get_wishlist_entry(session, record.owner, record.item_id) is not None:
        raise DuplicateRecordError(f"Item {record.item_id} is already in the wishlist.")

    row = WishlistDB(user_id=record.owner, item_id=record.item_id, notes=record.notes)
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise DuplicateRecordError(
            f"Item {record.item_id} is already in the wishlist.", detail=str(e.orig)
        ) from e
    return row


async def delete_wishlist(session: AsyncSession, user_id: str, item_id: str) -> bool:
    """
    Delete the wishlist record for (user, item).

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        delete(WishlistDB).where(
            WishlistDB.user_id == user_id,
            WishlistDB.item_id == item_id,
        )
    )
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


def wishlist_to_model(row: WishlistDB) -> WishlistRecord:
    """Convert a database wishlist record to a domain model."""
    return WishlistRecord(item_id=row.item_id, owner=row.user_id, notes=row.notes)


# --- Profile Operations ---


async def get_profile(session: AsyncSession, user_id: str) -> ProfileDB | None:
    """Get a user's profile. Returns None if the user is unknown."""
    return await session.get(ProfileDB, user_id)


async def upsert_profile(
    session: AsyncSession, user_id: str, fields: dict[str, Any]
) -> ProfileDB:
    """
    Create or update a profile.

    Only keys present in `fields` are written; unknown keys are ignored.
    """
    profile = await get_profile(session, user_id)
    if profile is None:
        profile = ProfileDB(user_id=user_id)
        session.add(profile)

    for key, value in fields.items():
        if key in PROFILE_FIELDS:
            setattr(profile, key, value)

    await session.flush()
    return profile


async def list_profiles(session: AsyncSession) -> list[ProfileDB]:
    """Get every profile, newest first."""
    result = await session.execute(select(ProfileDB).order_by(ProfileDB.created_at.desc()))
    return list(result.scalars().all())


def profile_to_model(profile: ProfileDB) -> Profile:
    """Convert a database profile to a domain model."""
    return Profile(
        user_id=profile.user_id,
        username=profile.username,
        avatar_url=profile.avatar_url,
        birthdate=profile.birthdate,
        country=profile.country,
        language=profile.language,
        currency=profile.currency,
    )


# --- Role Operations ---


async def has_role(session: AsyncSession, user_id: str, role: str = ADMIN_ROLE) -> bool:
    """Check whether a user holds a role."""
    result = await session.execute(
        select(func.count())
        .select_from(UserRoleDB)
        .where(UserRoleDB.user_id == user_id, UserRoleDB.role == role)
    )
    return int(result.scalar_one()) > 0


async def list_roles(session: AsyncSession) -> dict[str, list[str]]:
    """Map each user id to the roles they hold."""
    result = await session.execute(select(UserRoleDB).order_by(UserRoleDB.user_id))
    roles: dict[str, list[str]] = {}
    for row in result.scalars().all():
        roles.setdefault(row.user_id, []).append(row.role)
    return roles


async def grant_role(session: AsyncSession, user_id: str, role: str = ADMIN_ROLE) -> bool:
    """
    Grant a role.

    Returns True if granted, False if the user already held it.
    """
    if await has_role(session, user_id, role):
        return False

    session.add(UserRoleDB(user_id=user_id, role=role))
    await session.flush()
    return True


async def revoke_role(session: AsyncSession, user_id: str, role: str = ADMIN_ROLE) -> bool:
    """
    Revoke a role.

    Returns True if revoked, False if the user did not hold it.
    """
    result = await session.execute(
        delete(UserRoleDB).where(UserRoleDB.user_id == user_id, UserRoleDB.role == role)
    )
    return int(result.rowcount) > 0  # type: ignore[attr-defined]
