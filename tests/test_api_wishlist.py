"""Tests for wishlist API endpoints."""

from httpx import AsyncClient

USER = "user-1"


class TestToggle:
    async def test_toggle_adds_then_removes(
        self, client: AsyncClient, seeded: dict[str, str]
    ) -> None:
        link = seeded["Link"]

        added = await client.post(f"/wishlist/{USER}/items/{link}/toggle")
        removed = await client.post(f"/wishlist/{USER}/items/{link}/toggle")

        assert added.json() == {"user_id": USER, "item_id": link, "in_wishlist": True}
        assert removed.json()["in_wishlist"] is False
        assert (await client.get(f"/wishlist/{USER}")).json() == []

    async def test_toggle_does_not_touch_collection(
        self, client: AsyncClient, seeded: dict[str, str]
    ) -> None:
        mario = seeded["Mario"]
        await client.post(f"/collection/{USER}/items/{mario}")

        response = await client.post(f"/wishlist/{USER}/items/{mario}/toggle")

        assert response.json()["in_wishlist"] is True
        collection = (await client.get(f"/collection/{USER}")).json()
        assert [r["item_id"] for r in collection["ownership"]] == [mario]

    async def test_wishlists_are_per_user(
        self, client: AsyncClient, seeded: dict[str, str]
    ) -> None:
        await client.post(f"/wishlist/{USER}/items/{seeded['Link']}/toggle")

        assert (await client.get("/wishlist/someone-else")).json() == []


class TestListWishlist:
    async def test_lists_entries(self, client: AsyncClient, seeded: dict[str, str]) -> None:
        await client.post(f"/wishlist/{USER}/items/{seeded['Link']}/toggle")
        await client.post(f"/wishlist/{USER}/items/{seeded['Luigi']}/toggle")

        response = await client.get(f"/wishlist/{USER}")

        assert response.status_code == 200
        assert {e["item_id"] for e in response.json()} == {seeded["Link"], seeded["Luigi"]}
        assert all(e["owner"] == USER for e in response.json())


class TestPrimitiveWrites:
    async def test_insert(self, client: AsyncClient, seeded: dict[str, str]) -> None:
        response = await client.post(f"/wishlist/{USER}/items/{seeded['Link']}")

        assert response.status_code == 201
        assert response.json()["item_id"] == seeded["Link"]

    async def test_duplicate_insert_is_conflict(
        self, client: AsyncClient, seeded: dict[str, str]
    ) -> None:
        await client.post(f"/wishlist/{USER}/items/{seeded['Link']}")

        response = await client.post(f"/wishlist/{USER}/items/{seeded['Link']}")

        assert response.status_code == 409
        assert response.json()["failure"]["kind"] == "duplicate"

    async def test_delete(self, client: AsyncClient, seeded: dict[str, str]) -> None:
        await client.post(f"/wishlist/{USER}/items/{seeded['Link']}")

        first = await client.delete(f"/wishlist/{USER}/items/{seeded['Link']}")
        second = await client.delete(f"/wishlist/{USER}/items/{seeded['Link']}")

        assert first.json()["deleted"] is True
        assert second.json()["deleted"] is False


class TestUnknownItems:
    async def test_toggle_unknown_item_is_not_found(self, client: AsyncClient) -> None:
        response = await client.post(f"/wishlist/{USER}/items/does-not-exist/toggle")

        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"
        assert (await client.get(f"/wishlist/{USER}")).json() == []

    async def test_insert_unknown_item_is_not_found(self, client: AsyncClient) -> None:
        response = await client.post(f"/wishlist/{USER}/items/does-not-exist")

        assert response.status_code == 404
        assert (await client.get(f"/wishlist/{USER}")).json() == []
