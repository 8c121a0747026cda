"""
FigureShelf API client.

Typed httpx client for the FigureShelf service, plus the LedgerBackend that
lets a client-side CollectionLedger write through the API.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

import httpx

from figureshelf.config import settings
from figureshelf.models.catalog import (
    CatalogItem,
    Condition,
    OwnershipRecord,
    Profile,
    WishlistRecord,
)
from figureshelf.models.failure import (
    BackendError,
    DuplicateRecordError,
    ExternalServiceError,
    FailureKind,
    ForbiddenError,
    InvalidInputError,
    KnownError,
    NotFoundError,
    PartialMutationError,
)

logger = logging.getLogger(__name__)


def _catalog_item(data: dict[str, Any]) -> CatalogItem:
    return CatalogItem(
        id=data["id"],
        name=data["name"],
        series=data.get("series"),
        type=data.get("type"),
        character=data.get("character"),
        image_path=data.get("image_path"),
        hex_id=data.get("hex_id"),
        release_na=data.get("release_na"),
        release_jp=data.get("release_jp"),
        release_eu=data.get("release_eu"),
        release_au=data.get("release_au"),
    )


def _ownership(data: dict[str, Any]) -> OwnershipRecord:
    value_paid = data.get("value_paid")
    acquired_at = data.get("acquired_at")
    return OwnershipRecord(
        item_id=data["item_id"],
        owner=data["owner"],
        is_boxed=bool(data.get("is_boxed", False)),
        condition=Condition(data.get("condition") or Condition.NEW.value),
        value_paid=Decimal(value_paid) if value_paid is not None else None,
        notes=data.get("notes"),
        acquired_at=date.fromisoformat(acquired_at) if acquired_at else None,
    )


def _wishlist(data: dict[str, Any]) -> WishlistRecord:
    return WishlistRecord(item_id=data["item_id"], owner=data["owner"], notes=data.get("notes"))


def _profile(data: dict[str, Any]) -> Profile:
    birthdate = data.get("birthdate")
    return Profile(
        user_id=data["user_id"],
        username=data.get("username"),
        avatar_url=data.get("avatar_url"),
        birthdate=date.fromisoformat(birthdate) if birthdate else None,
        country=data.get("country"),
        language=data.get("language"),
        currency=data.get("currency"),
    )


def error_from_response(response: httpx.Response) -> KnownError:
    """
    Rebuild the server's failure envelope as a KnownError.

    Responses that are not an envelope (proxies, validation errors) map by
    status code.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    failure = body.get("failure") if isinstance(body, dict) else None
    if not isinstance(failure, dict):
        if response.status_code == 422:
            return InvalidInputError("The request was rejected.", detail=response.text)
        return BackendError(
            f"Request failed with status {response.status_code}.", detail=response.text[:200]
        )

    message = failure.get("message") or "Request failed."
    detail = failure.get("detail")
    kind = failure.get("kind")

    if kind == FailureKind.INVALID_INPUT.value:
        return InvalidInputError(message, detail)
    if kind == FailureKind.NOT_FOUND.value:
        return NotFoundError(message, detail)
    if kind == FailureKind.DUPLICATE.value:
        return DuplicateRecordError(message, detail)
    if kind == FailureKind.FORBIDDEN.value:
        return ForbiddenError(message)
    if kind == FailureKind.EXTERNAL_API_ERROR.value:
        return ExternalServiceError(message, detail)
    if kind == FailureKind.PARTIAL_FAILURE.value:
        return PartialMutationError(
            applied=list(failure.get("applied_steps") or []),
            failed=failure.get("failed_step") or "a later step",
            detail=detail,
        )
    return BackendError(message, detail)


class FigureShelfClient:
    """
    Client for the FigureShelf API.

    Every call raises a KnownError subclass on failure: the server's own
    failure kind when it sent one, BackendError when the service could not
    be reached.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        user_id: str | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API base URL. Defaults to settings.api_base_url.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (e.g. ASGITransport in tests).
            user_id: Caller identity sent as X-User-Id on every request.
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.user_id = user_id

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_headers = dict(headers or {})
        if self.user_id:
            request_headers["X-User-Id"] = self.user_id

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    content=content,
                    headers=request_headers,
                )
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise BackendError("Could not reach the FigureShelf API.", detail=str(e)) from e

        if response.is_error:
            raise error_from_response(response)
        return response.json()

    # --- Catalog ---

    async def list_catalog(self) -> list[CatalogItem]:
        data = await self._request("GET", "/catalog")
        return [_catalog_item(item) for item in data]

    async def get_catalog_item(self, item_id: str) -> CatalogItem:
        return _catalog_item(await self._request("GET", f"/catalog/{item_id}"))

    async def get_filter_options(self) -> dict[str, list[str]]:
        data: dict[str, list[str]] = await self._request("GET", "/catalog/options")
        return data

    # --- Collection ---

    async def list_ownership(self, user_id: str) -> list[OwnershipRecord]:
        data = await self._request("GET", f"/collection/{user_id}")
        return [_ownership(record) for record in data["ownership"]]

    async def list_wishlist(self, user_id: str) -> list[WishlistRecord]:
        data = await self._request("GET", f"/wishlist/{user_id}")
        return [_wishlist(record) for record in data]

    async def add_ownership(self, user_id: str, item_id: str) -> OwnershipRecord:
        """Run the server's add intent, which also drops the item from the wishlist."""
        data = await self._request("POST", f"/collection/{user_id}/items/{item_id}")
        return _ownership(data)

    async def insert_ownership(self, user_id: str, item_id: str) -> OwnershipRecord:
        """Insert the ownership record alone, leaving any wishlist entry in place."""
        data = await self._request("POST", f"/collection/{user_id}/records/{item_id}")
        return _ownership(data)

    async def update_ownership(
        self, user_id: str, item_id: str, patch: dict[str, Any]
    ) -> OwnershipRecord:
        data = await self._request(
            "PATCH", f"/collection/{user_id}/items/{item_id}", json=_patch_body(patch)
        )
        return _ownership(data)

    async def delete_ownership(self, user_id: str, item_id: str) -> bool:
        data = await self._request("DELETE", f"/collection/{user_id}/items/{item_id}")
        return bool(data["deleted"])

    async def add_wishlist(self, user_id: str, item_id: str) -> WishlistRecord:
        return _wishlist(await self._request("POST", f"/wishlist/{user_id}/items/{item_id}"))

    async def delete_wishlist(self, user_id: str, item_id: str) -> bool:
        data = await self._request("DELETE", f"/wishlist/{user_id}/items/{item_id}")
        return bool(data["deleted"])

    async def get_stats(self, user_id: str, currency: str | None = None) -> dict[str, Any]:
        params = {"currency": currency} if currency else None
        data: dict[str, Any] = await self._request(
            "GET", f"/collection/{user_id}/stats", params=params
        )
        return data

    # --- Profiles ---

    async def get_profile(self, user_id: str) -> Profile:
        return _profile(await self._request("GET", f"/profile/{user_id}"))

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> Profile:
        return _profile(await self._request("PUT", f"/profile/{user_id}", json=fields))

    async def upload_avatar(self, user_id: str, data: bytes, content_type: str) -> Profile:
        body = await self._request(
            "PUT",
            f"/profile/{user_id}/avatar",
            content=data,
            headers={"Content-Type": content_type},
        )
        return _profile(body)

    async def get_public_collection(self, user_id: str) -> dict[str, Any]:
        data: dict[str, Any] = await self._request("GET", f"/public/{user_id}")
        return data

    async def health_check(self) -> bool:
        """
        Check if the API is available.

        Returns:
            True if the API is healthy, False otherwise
        """
        try:
            await self._request("GET", "/health")
        except KnownError:
            return False
        return True


def _patch_body(patch: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for key, value in patch.items():
        if isinstance(value, Condition):
            value = value.value
        elif isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, date):
            value = value.isoformat()
        body[key] = value
    return body


class HttpLedgerBackend:
    """LedgerBackend that writes through the FigureShelf API."""

    def __init__(self, client: FigureShelfClient) -> None:
        self._client = client

    async def insert_ownership(self, record: OwnershipRecord) -> OwnershipRecord:
        return await self._client.insert_ownership(record.owner, record.item_id)

    async def update_ownership(
        self, owner: str, item_id: str, patch: dict[str, Any]
    ) -> OwnershipRecord:
        return await self._client.update_ownership(owner, item_id, patch)

    async def delete_ownership(self, owner: str, item_id: str) -> bool:
        return await self._client.delete_ownership(owner, item_id)

    async def insert_wishlist(self, record: WishlistRecord) -> WishlistRecord:
        return await self._client.add_wishlist(record.owner, record.item_id)

    async def delete_wishlist(self, owner: str, item_id: str) -> bool:
        return await self._client.delete_wishlist(owner, item_id)
