"""
Tests for category management.
"""
import pytest
from sqlalchemy import select

from registry.core.errors import ConflictError
from registry.core.security import ADMIN
from registry.models.models import Category
from registry.schemas.gifts import CategoryCreate, CategoryUpdate
from registry.services import catalog


def _create(client, headers, name="Nursery", slug="nursery", **extra):
    return client.post("/categories", json={"name": name, "slug": slug, **extra}, headers=headers)


class TestCategories:
    def test_create_and_list(self, test_client, admin_headers):
        first = _create(test_client, admin_headers)
        second = _create(test_client, admin_headers, name="Bath time", slug="bath-time")

        assert first.status_code == 201
        assert first.json()["order"] == 0
        assert second.json()["order"] == 1

        listed = test_client.get("/categories").json()
        assert [item["slug"] for item in listed] == ["nursery", "bath-time"]
        assert all(item["gift_count"] == 0 for item in listed)

    def test_gift_count(self, test_client, admin_headers):
        category = _create(test_client, admin_headers).json()
        test_client.post(
            "/gifts",
            json={"category_id": category["id"], "title": "Bath", "type": "custom"},
            headers=admin_headers,
        )

        listed = test_client.get("/categories").json()

        assert listed[0]["gift_count"] == 1

    def test_duplicate_slug_conflicts(self, test_client, admin_headers):
        _create(test_client, admin_headers)
        res = _create(test_client, admin_headers, name="Other")
        assert res.status_code == 409

    def test_invalid_slug(self, test_client, admin_headers):
        res = _create(test_client, admin_headers, slug="Not A Slug")
        assert res.status_code == 422

    def test_update(self, test_client, admin_headers):
        category = _create(test_client, admin_headers).json()
        _create(test_client, admin_headers, name="Outdoor", slug="outdoor")

        res = test_client.put(
            f"/categories/{category['id']}", json={"name": " Baby room ", "order": 5}, headers=admin_headers
        )
        assert res.status_code == 200
        assert res.json()["name"] == "Baby room"
        assert res.json()["order"] == 5

        res = test_client.put(f"/categories/{category['id']}", json={"slug": "outdoor"}, headers=admin_headers)
        assert res.status_code == 409

        res = test_client.put("/categories/999", json={"name": "X"}, headers=admin_headers)
        assert res.status_code == 404

    def test_delete_blocked_while_gifts_exist(self, test_client, admin_headers):
        category = _create(test_client, admin_headers).json()
        gift = test_client.post(
            "/gifts",
            json={"category_id": category["id"], "title": "Bath", "type": "custom"},
            headers=admin_headers,
        ).json()

        assert test_client.delete(f"/categories/{category['id']}", headers=admin_headers).status_code == 409

        test_client.delete(f"/gifts/{gift['id']}", headers=admin_headers)
        assert test_client.delete(f"/categories/{category['id']}", headers=admin_headers).status_code == 204
        assert test_client.get("/categories").json() == []

    def test_requires_admin(self, test_client, guest_headers):
        assert _create(test_client, guest_headers).status_code == 403
        assert _create(test_client, {}).status_code == 401


class TestCategorySlugRace:
    """Another request takes the slug between the check and the write."""

    @pytest.fixture
    def skip_slug_check(self, monkeypatch):
        async def no_check(db, slug):
            return None

        monkeypatch.setattr(catalog, "_ensure_slug_free", no_check)

    async def test_update_to_taken_slug_conflicts(self, db_session, skip_slug_check):
        await catalog.create_category(db_session, CategoryCreate(name="Nursery", slug="nursery"), context=ADMIN)
        outdoor = await catalog.create_category(db_session, CategoryCreate(name="Outdoor", slug="outdoor"), context=ADMIN)

        with pytest.raises(ConflictError):
            await catalog.update_category(db_session, outdoor.id, CategoryUpdate(slug="nursery"), context=ADMIN)

        slugs = (await db_session.execute(select(Category.slug).order_by(Category.id))).scalars().all()
        assert slugs == ["nursery", "outdoor"]

    async def test_create_with_taken_slug_conflicts(self, db_session, skip_slug_check):
        await catalog.create_category(db_session, CategoryCreate(name="Nursery", slug="nursery"), context=ADMIN)

        with pytest.raises(ConflictError):
            await catalog.create_category(db_session, CategoryCreate(name="Again", slug="nursery"), context=ADMIN)
