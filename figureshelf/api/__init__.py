from figureshelf.api.admin import router as admin_router
from figureshelf.api.catalog import router as catalog_router
from figureshelf.api.collection import router as collection_router
from figureshelf.api.health import router as health_router
from figureshelf.api.profile import router as profile_router
from figureshelf.api.public import router as public_router
from figureshelf.api.sql_proxy import router as sql_proxy_router
from figureshelf.api.wishlist import router as wishlist_router

__all__ = [
    "admin_router",
    "catalog_router",
    "collection_router",
    "health_router",
    "profile_router",
    "public_router",
    "sql_proxy_router",
    "wishlist_router",
]
