"""Read-only public view of a user's collection."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.collection import DisplayItemResponse, SeriesProgressResponse
from figureshelf.db import get_profile
from figureshelf.db.database import get_session
from figureshelf.db.ledger_backend import load_snapshot
from figureshelf.models.failure import NotFoundError
from figureshelf.services.pipeline import annotate
from figureshelf.services.stats import collection_stats, series_progress

router = APIRouter(prefix="/public", tags=["public"])

DEFAULT_DISPLAY_NAME = "Collector"


class PublicCollectionResponse(BaseModel):
    """What anyone with the link can see."""

    user_id: str
    display_name: str
    avatar_url: str | None = None
    total: int = 0
    collected: int = 0
    boxed: int = 0
    wishlist_count: int = 0
    percentage: int = 0
    series: list[SeriesProgressResponse] = Field(default_factory=list)
    collection: list[DisplayItemResponse] = Field(default_factory=list)
    wishlist: list[DisplayItemResponse] = Field(default_factory=list)


@router.get("/{user_id}", response_model=PublicCollectionResponse)
async def get_public_collection(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PublicCollectionResponse:
    """
    Get a user's collection and wishlist for public display.

    Unknown users are a 404; nothing else about the user is exposed beyond
    the username and avatar.
    """
    profile = await get_profile(session, user_id)
    if profile is None:
        raise NotFoundError(f"User {user_id} not found.")

    snapshot = await load_snapshot(session, user_id)
    ownership = {record.item_id: record for record in snapshot.ownership}
    wishlist = snapshot.wishlist_ids()
    stats = collection_stats(snapshot.catalog, snapshot.ownership, wishlist)

    return PublicCollectionResponse(
        user_id=user_id,
        display_name=profile.username or DEFAULT_DISPLAY_NAME,
        avatar_url=profile.avatar_url,
        total=stats.total,
        collected=stats.collected,
        boxed=stats.boxed,
        wishlist_count=stats.wishlist,
        percentage=stats.percentage,
        series=[
            SeriesProgressResponse(
                name=s.name, total=s.total, collected=s.collected, percentage=s.percentage
            )
            for s in series_progress(snapshot.catalog, set(ownership))
        ],
        collection=[
            DisplayItemResponse.from_model(annotate(item, ownership, wishlist))
            for item in snapshot.catalog
            if item.id in ownership
        ],
        wishlist=[
            DisplayItemResponse.from_model(annotate(item, ownership, wishlist))
            for item in snapshot.catalog
            if item.id in wishlist
        ],
    )
