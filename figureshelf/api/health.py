"""
Service status endpoints.

`/health` answers as long as the process is up. `/ready` also confirms the
database answers and reports how many catalog items it holds, so a deploy
can tell an empty catalog apart from a broken one.
"""

from importlib.metadata import version as pkg_version
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from figureshelf.db import count_catalog_items
from figureshelf.db.database import get_session

router = APIRouter(tags=["health"])


class StatusResponse(BaseModel):
    status: str
    version: str
    database: str | None = None
    catalog_items: int | None = None


def _version() -> str:
    return pkg_version("figureshelf")


@router.get("/health", response_model=StatusResponse)
async def health() -> StatusResponse:
    """Liveness: the process is serving requests. Touches nothing else."""
    return StatusResponse(status="healthy", version=_version())


@router.get(
    "/ready",
    response_model=StatusResponse,
    responses={503: {"model": StatusResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> StatusResponse:
    """Readiness: the database answers a catalog count. 503 when it does not."""
    try:
        total = await count_catalog_items(session)
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return StatusResponse(status="not ready", version=_version(), database="unreachable")

    return StatusResponse(
        status="ready", version=_version(), database="connected", catalog_items=total
    )
