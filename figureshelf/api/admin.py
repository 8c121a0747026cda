"""
Administrative endpoints.

User role management and catalog maintenance: bulk feed import, refresh from
the public catalog API, and figure type backfill. Every route requires the
admin role.
"""

import logging
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.dependencies import require_admin
from figureshelf.config import settings
from figureshelf.db import ADMIN_ROLE, grant_role, list_profiles, list_roles, revoke_role
from figureshelf.db.database import get_session
from figureshelf.jobs.sync_catalog import fetch_catalog
from figureshelf.jobs.sync_types import sync_types
from figureshelf.models.failure import ExternalServiceError, InvalidInputError
from figureshelf.services.catalog_import import (
    replace_catalog,
    transform_api_payload,
    transform_feed,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminUserResponse(BaseModel):
    user_id: str
    username: str | None = None
    country: str | None = None
    roles: list[str] = Field(default_factory=list)
    is_admin: bool = False


class RoleChangeResponse(BaseModel):
    user_id: str
    role: str
    changed: bool = Field(..., description="False when the role was already in that state")


class CatalogImportResponse(BaseModel):
    imported: int


class TypeSyncResponse(BaseModel):
    updated: int
    total: int
    samples: list[str] = Field(default_factory=list)


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> list[AdminUserResponse]:
    """List every user with a profile, newest first, with their roles."""
    roles = await list_roles(session)
    return [
        AdminUserResponse(
            user_id=profile.user_id,
            username=profile.username,
            country=profile.country,
            roles=roles.get(profile.user_id, []),
            is_admin=ADMIN_ROLE in roles.get(profile.user_id, []),
        )
        for profile in await list_profiles(session)
    ]


@router.post("/roles/{user_id}", response_model=RoleChangeResponse)
async def grant_admin(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    admin_id: Annotated[str, Depends(require_admin)],
) -> RoleChangeResponse:
    """Grant the admin role."""
    changed = await grant_role(session, user_id)
    logger.info("Admin role granted to %s by %s (changed=%s)", user_id, admin_id, changed)
    return RoleChangeResponse(user_id=user_id, role=ADMIN_ROLE, changed=changed)


@router.delete("/roles/{user_id}", response_model=RoleChangeResponse)
async def revoke_admin(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    admin_id: Annotated[str, Depends(require_admin)],
) -> RoleChangeResponse:
    """Revoke the admin role. Admins cannot revoke their own role."""
    if user_id == admin_id:
        raise InvalidInputError("You cannot remove your own administrator role.")

    changed = await revoke_role(session, user_id)
    logger.info("Admin role revoked from %s by %s (changed=%s)", user_id, admin_id, changed)
    return RoleChangeResponse(user_id=user_id, role=ADMIN_ROLE, changed=changed)


@router.post("/catalog/import", response_model=CatalogImportResponse)
async def import_catalog_feed(
    payload: dict[str, Any],
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> CatalogImportResponse:
    """
    Replace the catalog with a bulk JSON feed.

    The body is the feed itself: `{"amiibos": {...}, "game_series": {...}}`.
    """
    rows = transform_feed(payload)
    imported = await replace_catalog(session, rows)
    return CatalogImportResponse(imported=imported)


@router.post("/catalog/sync", response_model=CatalogImportResponse)
async def sync_catalog_from_api(
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> CatalogImportResponse:
    """Replace the catalog with the public catalog API's current listing."""
    try:
        async with httpx.AsyncClient(timeout=60.0) as client:
            payload = await fetch_catalog(client)
    except httpx.HTTPError as e:
        logger.warning("Catalog API request failed: %s", e)
        raise ExternalServiceError(
            "Could not fetch the catalog.", detail=f"{settings.catalog_api_url}: {e}"
        ) from e

    imported = await replace_catalog(session, transform_api_payload(payload))
    return CatalogImportResponse(imported=imported)


@router.post("/catalog/sync-types", response_model=TypeSyncResponse)
async def sync_catalog_types(
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> TypeSyncResponse:
    """Re-derive figure types from hex ids, updating only rows that changed."""
    result = await sync_types(session)
    return TypeSyncResponse(updated=result.updated, total=result.total, samples=result.samples)
