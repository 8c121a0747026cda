import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from figureshelf.api import (
    admin_router,
    catalog_router,
    collection_router,
    health_router,
    profile_router,
    public_router,
    sql_proxy_router,
    wishlist_router,
)
from figureshelf.config import settings
from figureshelf.db.database import init_db
from figureshelf.models.failure import ApiResponse, KnownError
from figureshelf.services.sql_proxy import get_sql_proxy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield
    await get_sql_proxy().close()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("figureshelf"),
    lifespan=lifespan,
)

app.include_router(admin_router)
app.include_router(catalog_router)
app.include_router(collection_router)
app.include_router(health_router)
app.include_router(profile_router)
app.include_router(public_router)
app.include_router(sql_proxy_router)
app.include_router(wishlist_router)

app.mount(
    "/storage",
    StaticFiles(directory=settings.storage_dir, check_dir=False),
    name="storage",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ApiResponse.unknown_failure(exc).model_dump(mode="json"),
    )
