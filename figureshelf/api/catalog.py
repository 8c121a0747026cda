"""
Catalog API endpoints.

Everyone can read the catalog; creating, editing, deleting, and attaching
images requires the admin role.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.dependencies import require_admin
from figureshelf.db import (
    catalog_item_to_model,
    create_catalog_item,
    delete_catalog_item,
    get_catalog_item,
    list_catalog_items,
    update_catalog_item,
)
from figureshelf.db.database import get_session
from figureshelf.models.catalog import CatalogItem
from figureshelf.models.failure import InvalidInputError, NotFoundError
from figureshelf.services.pipeline import filter_options
from figureshelf.services.storage import (
    CATALOG_IMAGES_BUCKET,
    ObjectStorage,
    get_storage,
    image_extension,
    resolve_image_url,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])


class CatalogItemResponse(BaseModel):
    """A catalog item as returned by the API."""

    id: str
    name: str
    series: str | None = None
    type: str | None = None
    character: str | None = None
    image_path: str | None = None
    image_url: str | None = None
    hex_id: str | None = None
    release_na: str | None = None
    release_jp: str | None = None
    release_eu: str | None = None
    release_au: str | None = None

    @classmethod
    def from_model(cls, item: CatalogItem) -> "CatalogItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            series=item.series,
            type=item.type,
            character=item.character,
            image_path=item.image_path,
            image_url=resolve_image_url(item.image_path),
            hex_id=item.hex_id,
            release_na=item.release_na,
            release_jp=item.release_jp,
            release_eu=item.release_eu,
            release_au=item.release_au,
        )


class CatalogItemRequest(BaseModel):
    """Fields for creating or editing a catalog item."""

    name: str = Field(..., description="Display name", examples=["Mario"])
    series: str | None = None
    type: str | None = None
    character: str | None = None
    image_path: str | None = None
    hex_id: str | None = None
    release_na: str | None = None
    release_jp: str | None = None
    release_eu: str | None = None
    release_au: str | None = None


class CatalogItemPatch(BaseModel):
    """Partial update; only fields that are sent are written."""

    name: str | None = None
    series: str | None = None
    type: str | None = None
    character: str | None = None
    image_path: str | None = None
    hex_id: str | None = None
    release_na: str | None = None
    release_jp: str | None = None
    release_eu: str | None = None
    release_au: str | None = None


class FilterOptionsResponse(BaseModel):
    """Distinct values for the series, type, and character dropdowns."""

    series: list[str] = Field(default_factory=list)
    type: list[str] = Field(default_factory=list)
    character: list[str] = Field(default_factory=list)


class DeleteItemResponse(BaseModel):
    id: str
    deleted: bool


def _blank_to_none(fields: dict[str, Any]) -> dict[str, Any]:
    # Admin forms submit empty strings for cleared optional fields
    return {k: (v.strip() or None) if isinstance(v, str) else v for k, v in fields.items()}


@router.get("", response_model=list[CatalogItemResponse])
async def list_catalog(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[CatalogItemResponse]:
    """Get the whole catalog, ordered by name."""
    items = await list_catalog_items(session)
    return [CatalogItemResponse.from_model(catalog_item_to_model(i)) for i in items]


@router.get("/options", response_model=FilterOptionsResponse)
async def get_filter_options(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> FilterOptionsResponse:
    """Get the distinct series, types, and characters in the catalog."""
    items = [catalog_item_to_model(i) for i in await list_catalog_items(session)]
    return FilterOptionsResponse(**filter_options(items))


@router.get("/{item_id}", response_model=CatalogItemResponse)
async def get_item(
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogItemResponse:
    """Get one catalog item."""
    item = await get_catalog_item(session, item_id)
    if item is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")
    return CatalogItemResponse.from_model(catalog_item_to_model(item))


@router.post("", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: CatalogItemRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> CatalogItemResponse:
    """Create a catalog item. Requires the admin role."""
    fields = _blank_to_none(request.model_dump())
    if not fields.get("name"):
        raise InvalidInputError("Name is required.")

    item = await create_catalog_item(session, fields)
    return CatalogItemResponse.from_model(catalog_item_to_model(item))


@router.put("/{item_id}", response_model=CatalogItemResponse)
async def update_item(
    item_id: str,
    request: CatalogItemPatch,
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> CatalogItemResponse:
    """Update a catalog item. Requires the admin role."""
    patch = _blank_to_none(request.model_dump(exclude_unset=True))
    if "name" in patch and not patch["name"]:
        raise InvalidInputError("Name cannot be empty.")

    item = await update_catalog_item(session, item_id, patch)
    if item is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")
    return CatalogItemResponse.from_model(catalog_item_to_model(item))


@router.delete("/{item_id}", response_model=DeleteItemResponse)
async def delete_item(
    item_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    _admin: Annotated[str, Depends(require_admin)],
) -> DeleteItemResponse:
    """Delete a catalog item and every collection/wishlist entry for it."""
    deleted = await delete_catalog_item(session, item_id)
    return DeleteItemResponse(id=item_id, deleted=deleted)


@router.put("/{item_id}/image", response_model=CatalogItemResponse)
async def upload_item_image(
    item_id: str,
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
    _admin: Annotated[str, Depends(require_admin)],
) -> CatalogItemResponse:
    """
    Upload an image for a catalog item.

    The request body is the raw image; its Content-Type picks the extension.
    The stored path is written to the item's image_path.
    """
    item = await get_catalog_item(session, item_id)
    if item is None:
        raise NotFoundError(f"Catalog item {item_id} not found.")

    extension = image_extension(request.headers.get("content-type"))
    path = f"{item_id}{extension}"
    await storage.upload(CATALOG_IMAGES_BUCKET, path, await request.body())

    item.image_path = path
    await session.flush()
    return CatalogItemResponse.from_model(catalog_item_to_model(item))
