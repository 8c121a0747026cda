"""Shared FastAPI dependencies: admin and owner gating, overridable services."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.db import has_role
from figureshelf.db.database import get_session
from figureshelf.models.failure import ForbiddenError
from figureshelf.services.currency import CurrencyConverter


async def require_admin(
    session: Annotated[AsyncSession, Depends(get_session)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """
    Gate administrative endpoints on the admin role.

    The caller's identity arrives in the X-User-Id header, as issued by the
    authentication provider. Returns the admin's user id.
    """
    if not x_user_id:
        raise ForbiddenError("Sign in as an administrator to use this endpoint.")
    if not await has_role(session, x_user_id):
        raise ForbiddenError()
    return x_user_id


async def require_owner(
    user_id: str,
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """
    Gate writes to a user's records on the caller being that user.

    Returns the owner's user id.
    """
    if not x_user_id:
        raise ForbiddenError("Sign in to change a collection.")
    if x_user_id != user_id:
        raise ForbiddenError("You can only change your own records.")
    return user_id


def get_currency_converter() -> CurrencyConverter:
    """A fresh converter per request, so rates are fetched on demand."""
    return CurrencyConverter()
