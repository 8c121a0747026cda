from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="FIGURESHELF_")

    app_name: str = "FigureShelf"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/figureshelf"

    # Base URL the client library talks to
    api_base_url: str = "http://localhost:8000"

    # Public catalog feed used by the sync job
    catalog_api_url: str = "https://www.amiiboapi.com/api/amiibo/"
    import_batch_size: int = 100

    # Values paid are stored in this currency and converted for display
    reference_currency: str = "BRL"
    exchange_rate_url: str = "https://open.er-api.com/v6/latest"

    default_page_size: int = 20

    # Object storage (local filesystem, served under storage_public_url)
    storage_dir: str = "storage"
    storage_public_url: str = "http://localhost:8000/storage"

    # Separate MySQL-compatible database behind the SQL proxy endpoint
    external_sql_url: str = ""


settings = Settings()


# =============================================================================
# DISPLAY LIMITS
# =============================================================================

ALLOWED_PAGE_SIZES = (10, 20, 50, 100)

# The items-per-page preference survives for a year
ITEMS_PER_PAGE_COOKIE = "items_per_page"
ITEMS_PER_PAGE_COOKIE_MAX_AGE = 365 * 24 * 60 * 60

FILTER_PREFS_COOKIE = "filter_prefs"
