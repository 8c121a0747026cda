"""
Profile API endpoints.

A profile carries the display name, avatar, and the language and currency
preferences used to format stats.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.api.dependencies import require_owner
from figureshelf.db import get_profile, profile_to_model, upsert_profile
from figureshelf.db.database import get_session
from figureshelf.models.catalog import Profile
from figureshelf.models.failure import InvalidInputError, NotFoundError
from figureshelf.services.currency import Currency
from figureshelf.services.preferences import SUPPORTED_LANGUAGES
from figureshelf.services.storage import AVATARS_BUCKET, ObjectStorage, get_storage, image_extension

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileResponse(BaseModel):
    user_id: str
    username: str | None = None
    avatar_url: str | None = None
    birthdate: date | None = None
    country: str | None = None
    language: str | None = None
    currency: str | None = None

    @classmethod
    def from_model(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            user_id=profile.user_id,
            username=profile.username,
            avatar_url=profile.avatar_url,
            birthdate=profile.birthdate,
            country=profile.country,
            language=profile.language,
            currency=profile.currency,
        )


class ProfileUpdateRequest(BaseModel):
    """Fields to write; omitted fields are left as they are."""

    username: str | None = Field(default=None, max_length=255)
    birthdate: date | None = None
    country: str | None = Field(default=None, max_length=100)
    language: str | None = Field(default=None, examples=["pt"])
    currency: str | None = Field(default=None, examples=["BRL"])


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_user_profile(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ProfileResponse:
    """Get a user's profile."""
    profile = await get_profile(session, user_id)
    if profile is None:
        raise NotFoundError(f"Profile for {user_id} not found.")
    return ProfileResponse.from_model(profile_to_model(profile))


@router.put(
    "/{user_id}",
    response_model=ProfileResponse,
    dependencies=[Depends(require_owner)],
)
async def update_user_profile(
    user_id: str,
    request: ProfileUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ProfileResponse:
    """Create or update a profile. Unsupported languages or currencies are rejected."""
    fields = request.model_dump(exclude_unset=True)

    language = fields.get("language")
    if language is not None:
        if language.lower() not in SUPPORTED_LANGUAGES:
            raise InvalidInputError(
                f"Unsupported language: {language}",
                detail=f"Expected one of {', '.join(SUPPORTED_LANGUAGES)}",
            )
        fields["language"] = language.lower()

    currency = fields.get("currency")
    if currency is not None:
        try:
            fields["currency"] = Currency(currency.upper()).value
        except ValueError:
            raise InvalidInputError(
                f"Unsupported currency: {currency}",
                detail=f"Expected one of {', '.join(c.value for c in Currency)}",
            ) from None

    if "username" in fields and fields["username"] is not None:
        fields["username"] = fields["username"].strip() or None

    profile = await upsert_profile(session, user_id, fields)
    return ProfileResponse.from_model(profile_to_model(profile))


@router.put(
    "/{user_id}/avatar",
    response_model=ProfileResponse,
    dependencies=[Depends(require_owner)],
)
async def upload_avatar(
    user_id: str,
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
) -> ProfileResponse:
    """
    Upload a profile picture.

    The request body is the raw image. The avatar's public URL is stored on
    the profile, creating the profile if needed.
    """
    extension = image_extension(request.headers.get("content-type"))
    body = await request.body()
    url = await storage.upload(AVATARS_BUCKET, f"{user_id}/avatar{extension}", body)

    profile = await upsert_profile(session, user_id, {"avatar_url": url})
    return ProfileResponse.from_model(profile_to_model(profile))
