"""Tests for administrative endpoints."""

import httpx
import pytest
import respx
from httpx import AsyncClient

from figureshelf.config import settings
from figureshelf.db.operations import create_catalog_item

FEED = {
    "amiibos": {
        "0x0000000000000002": {"name": "Mario", "release": {"na": "2014-11-21", "jp": ""}},
        "0x0000000100000002": {"name": "Mario Card", "release": {}},
        "0x0100000000040002": {"name": "Link", "release": {"eu": "2014-11-28"}},
    },
    "game_series": {"0x000": "Super Mario", "0x010": "The Legend of Zelda"},
}

API_PAYLOAD = {
    "amiibo": [
        {
            "name": "Isabelle",
            "amiiboSeries": "Animal Crossing",
            "character": "Isabelle",
            "type": "Figure",
            "head": "01810000",
            "tail": "024b0502",
            "image": "https://images.example/isabelle.png",
            "release": {"na": "2015-03-20", "jp": "2015-03-19", "eu": None, "au": None},
        }
    ]
}


class TestGating:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/admin/users"),
            ("POST", "/admin/roles/u1"),
            ("DELETE", "/admin/roles/u1"),
            ("POST", "/admin/catalog/sync"),
            ("POST", "/admin/catalog/sync-types"),
        ],
    )
    async def test_requires_admin(self, client: AsyncClient, method: str, path: str) -> None:
        response = await client.request(method, path, headers={"X-User-Id": "u1"})

        assert response.status_code == 403


class TestUsersAndRoles:
    async def test_list_users_with_roles(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        await client.put(
            "/profile/u1",
            json={"username": "ana", "country": "Brazil"},
            headers={"X-User-Id": "u1"},
        )
        await client.put("/profile/u2", json={"username": "bea"}, headers={"X-User-Id": "u2"})
        await client.post("/admin/roles/u2", headers=admin_headers)

        response = await client.get("/admin/users", headers=admin_headers)

        assert response.status_code == 200
        users = {u["user_id"]: u for u in response.json()}
        assert set(users) == {"u1", "u2"}
        assert users["u1"]["country"] == "Brazil"
        assert users["u1"]["is_admin"] is False
        assert users["u2"]["roles"] == ["admin"]
        assert users["u2"]["is_admin"] is True

    async def test_grant_is_idempotent(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        first = await client.post("/admin/roles/u1", headers=admin_headers)
        second = await client.post("/admin/roles/u1", headers=admin_headers)

        assert first.json() == {"user_id": "u1", "role": "admin", "changed": True}
        assert second.json()["changed"] is False

    async def test_granted_user_can_use_admin_routes(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        await client.post("/admin/roles/u1", headers=admin_headers)

        response = await client.get("/admin/users", headers={"X-User-Id": "u1"})

        assert response.status_code == 200

    async def test_revoke(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        await client.post("/admin/roles/u1", headers=admin_headers)

        response = await client.delete("/admin/roles/u1", headers=admin_headers)

        assert response.json()["changed"] is True
        denied = await client.get("/admin/users", headers={"X-User-Id": "u1"})
        assert denied.status_code == 403

    async def test_cannot_revoke_self(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        response = await client.delete(f"/admin/roles/{admin}", headers=admin_headers)

        assert response.status_code == 400
        assert (await client.get("/admin/users", headers=admin_headers)).status_code == 200


class TestFeedImport:
    async def test_import_replaces_catalog(
        self,
        client: AsyncClient,
        seeded: dict[str, str],
        admin: str,
        admin_headers: dict[str, str],
    ) -> None:
        response = await client.post("/admin/catalog/import", json=FEED, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"imported": 3}

        items = {i["name"]: i for i in (await client.get("/catalog")).json()}
        assert set(items) == {"Mario", "Mario Card", "Link"}
        assert items["Mario"]["series"] == "Super Mario"
        assert items["Mario"]["type"] == "Figure"
        assert items["Mario"]["release_jp"] is None
        assert items["Mario Card"]["type"] == "Card"
        assert items["Link"]["series"] == "The Legend of Zelda"

    async def test_import_rejects_feed_without_figures(
        self, client: AsyncClient, admin: str, admin_headers: dict[str, str]
    ) -> None:
        response = await client.post(
            "/admin/catalog/import", json={"game_series": {}}, headers=admin_headers
        )

        assert response.status_code == 400
        assert "amiibos" in response.json()["failure"]["message"]


class TestCatalogSync:
    @respx.mock
    async def test_sync_replaces_catalog(
        self,
        client: AsyncClient,
        seeded: dict[str, str],
        admin: str,
        admin_headers: dict[str, str],
    ) -> None:
        respx.get(settings.catalog_api_url).mock(
            return_value=httpx.Response(200, json=API_PAYLOAD)
        )

        response = await client.post("/admin/catalog/sync", headers=admin_headers)

        assert response.json() == {"imported": 1}
        catalog = (await client.get("/catalog")).json()
        assert len(catalog) == 1
        assert catalog[0]["hex_id"] == "0x01810000024b0502"
        assert catalog[0]["image_url"] == "https://images.example/isabelle.png"
        assert catalog[0]["release_eu"] is None

    @respx.mock
    async def test_upstream_failure_keeps_catalog(
        self,
        client: AsyncClient,
        seeded: dict[str, str],
        admin: str,
        admin_headers: dict[str, str],
    ) -> None:
        respx.get(settings.catalog_api_url).mock(return_value=httpx.Response(503))

        response = await client.post("/admin/catalog/sync", headers=admin_headers)

        assert response.status_code == 502
        assert response.json()["failure"]["kind"] == "external_api_error"
        assert len((await client.get("/catalog")).json()) == len(seeded)


class TestTypeSync:
    async def test_updates_only_mismatched_types(
        self,
        client: AsyncClient,
        session_factory,
        admin: str,
        admin_headers: dict[str, str],
    ) -> None:
        async with session_factory() as session:
            await create_catalog_item(
                session, {"name": "Mario", "hex_id": "0x0000000000000002", "type": "Figure"}
            )
            await create_catalog_item(
                session, {"name": "Yarn Yoshi", "hex_id": "0x0003000202410502", "type": "Figure"}
            )
            await create_catalog_item(session, {"name": "Mystery", "type": "Figure"})
            await session.commit()

        response = await client.post("/admin/catalog/sync-types", headers=admin_headers)

        data = response.json()
        assert data["updated"] == 1
        assert data["total"] == 3
        assert data["samples"] == ["Yarn Yoshi: Figure -> Yarn"]
