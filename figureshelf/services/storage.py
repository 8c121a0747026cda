"""
Object storage for catalog images and profile pictures.

Files live under `settings.storage_dir/<bucket>/<path>` and are served from
`settings.storage_public_url`.
"""

import logging
from functools import lru_cache
from pathlib import Path, PurePosixPath

from fastapi.concurrency import run_in_threadpool

from figureshelf.config import settings
from figureshelf.models.failure import InvalidInputError

logger = logging.getLogger(__name__)

CATALOG_IMAGES_BUCKET = "catalog-images"
AVATARS_BUCKET = "avatars"

# Uploads larger than this are rejected before touching disk
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def image_extension(content_type: str | None) -> str:
    """File extension for an uploaded image's Content-Type header."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    extension = IMAGE_EXTENSIONS.get(media_type)
    if extension is None:
        raise InvalidInputError(
            "Unsupported image type.",
            detail=f"Expected one of {', '.join(IMAGE_EXTENSIONS)}, got {media_type or 'none'}",
        )
    return extension


class ObjectStorage:
    """Bucketed file store with public URLs."""

    def __init__(self, root: Path | str, public_url: str) -> None:
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")

    def _safe_path(self, bucket: str, path: str) -> PurePosixPath:
        relative = PurePosixPath(path.lstrip("/"))
        if not relative.parts or ".." in relative.parts:
            raise InvalidInputError(f"Invalid storage path: {path!r}")
        return PurePosixPath(bucket) / relative

    async def upload(self, bucket: str, path: str, data: bytes) -> str:
        """
        Store `data` at `bucket/path`, overwriting any existing file.

        The write runs in a worker thread. Returns the public URL of the stored
        file.
        """
        if not data:
            raise InvalidInputError("Uploaded file is empty.")
        if len(data) > MAX_UPLOAD_BYTES:
            raise InvalidInputError(
                f"Uploaded file exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)} MB."
            )

        key = self._safe_path(bucket, path)
        await run_in_threadpool(_write_file, self.root / key, data)
        logger.info("Stored %d bytes at %s", len(data), key)
        return self.get_public_url(bucket, path)

    def get_public_url(self, bucket: str, path: str) -> str:
        """Public URL for `bucket/path`, whether or not the file exists."""
        return f"{self.public_url}/{self._safe_path(bucket, path)}"

    def exists(self, bucket: str, path: str) -> bool:
        return (self.root / self._safe_path(bucket, path)).is_file()


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


@lru_cache(maxsize=1)
def get_storage() -> ObjectStorage:
    """Default storage rooted at the configured directory."""
    return ObjectStorage(settings.storage_dir, settings.storage_public_url)


def resolve_image_url(image_path: str | None, storage: ObjectStorage | None = None) -> str | None:
    """
    Turn a catalog item's image reference into a URL.

    Absolute URLs (imported feeds) pass through; bucket paths are resolved
    against the catalog image bucket.
    """
    if not image_path:
        return None
    if image_path.startswith(("http://", "https://")):
        return image_path
    return (storage or get_storage()).get_public_url(CATALOG_IMAGES_BUCKET, image_path)
