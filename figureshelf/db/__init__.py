from figureshelf.db.database import get_session, init_db
from figureshelf.db.operations import (
    ADMIN_ROLE,
    catalog_item_to_model,
    count_catalog_items,
    create_catalog_item,
    delete_all_catalog_items,
    delete_catalog_item,
    delete_ownership,
    delete_wishlist,
    get_catalog_item,
    get_ownership,
    get_profile,
    get_wishlist_entry,
    grant_role,
    has_role,
    insert_catalog_batch,
    insert_ownership,
    insert_wishlist,
    list_catalog_items,
    list_ownership,
    list_profiles,
    list_roles,
    list_wishlist,
    ownership_to_model,
    profile_to_model,
    revoke_role,
    update_catalog_item,
    update_ownership,
    upsert_profile,
    wishlist_to_model,
)

__all__ = [
    "ADMIN_ROLE",
    "catalog_item_to_model",
    "count_catalog_items",
    "create_catalog_item",
    "delete_all_catalog_items",
    "delete_catalog_item",
    "delete_ownership",
    "delete_wishlist",
    "get_catalog_item",
    "get_ownership",
    "get_profile",
    "get_session",
    "get_wishlist_entry",
    "grant_role",
    "has_role",
    "init_db",
    "insert_catalog_batch",
    "insert_ownership",
    "insert_wishlist",
    "list_catalog_items",
    "list_ownership",
    "list_profiles",
    "list_roles",
    "list_wishlist",
    "ownership_to_model",
    "profile_to_model",
    "revoke_role",
    "update_catalog_item",
    "update_ownership",
    "upsert_profile",
    "wishlist_to_model",
]
