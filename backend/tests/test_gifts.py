"""
Tests for the gift catalog: listing, visibility, admin edits.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import make_gift
from registry.core.errors import AuthorizationError, NotFoundError, ValidationError
from registry.core.security import ADMIN, GUEST
from registry.models.models import Contribution, GiftTypeEnum
from registry.schemas.gifts import GiftCreate, GiftUpdate
from registry.services import catalog


def _category(client: TestClient, headers: dict[str, str], slug: str = "nursery", name: str = "Nursery") -> int:
    res = client.post("/categories", json={"name": name, "slug": slug}, headers=headers)
    assert res.status_code == 201
    return res.json()["id"]


def _gift(client: TestClient, headers: dict[str, str], category_id: int, **overrides) -> dict:
    data = {"category_id": category_id, "title": "Stroller", "type": "fundable", "target_amount": 10000}
    data.update(overrides)
    res = client.post("/gifts", json=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


class TestFundingProgress:
    @pytest.mark.parametrize(
        "current, target, expected",
        [(0, 10000, 0), (2500, 10000, 25), (10000, 10000, 100), (15000, 10000, 100), (500, None, 0), (5, 0, 0)],
    )
    def test_progress(self, current, target, expected):
        assert catalog.funding_progress(current, target) == expected


class TestGiftService:
    async def test_create_requires_admin(self, db_session):
        await make_gift(db_session)
        payload = GiftCreate(category_id=1, title="Bath", type=GiftTypeEnum.CUSTOM)
        with pytest.raises(AuthorizationError):
            await catalog.create_gift(db_session, payload, context=GUEST)

    async def test_fundable_needs_target(self, db_session):
        await make_gift(db_session)
        payload = GiftCreate(category_id=1, title="Crib", type=GiftTypeEnum.FUNDABLE)
        with pytest.raises(ValidationError):
            await catalog.create_gift(db_session, payload, context=ADMIN)

    async def test_external_needs_link(self, db_session):
        await make_gift(db_session)
        payload = GiftCreate(category_id=1, title="Car seat", type=GiftTypeEnum.EXTERNAL)
        with pytest.raises(ValidationError):
            await catalog.create_gift(db_session, payload, context=ADMIN)

    async def test_unknown_category(self, db_session):
        payload = GiftCreate(category_id=42, title="Bath", type=GiftTypeEnum.CUSTOM)
        with pytest.raises(NotFoundError):
            await catalog.create_gift(db_session, payload, context=ADMIN)

    async def test_non_fundable_drops_target(self, db_session):
        await make_gift(db_session)
        payload = GiftCreate(category_id=1, title="Free gift", type=GiftTypeEnum.CUSTOM, target_amount=5000)
        gift = await catalog.create_gift(db_session, payload, context=ADMIN)
        assert gift.target_amount is None

    async def test_order_defaults_to_end_of_category(self, db_session):
        existing = await make_gift(db_session)
        payload = GiftCreate(category_id=1, title="Bath", type=GiftTypeEnum.CUSTOM)
        gift = await catalog.create_gift(db_session, payload, context=ADMIN)
        assert gift.order == existing.order + 1

    async def test_lowering_target_completes_gift(self, db_session):
        gift = await make_gift(db_session, target_amount=10000, current_amount=6000, status="partially_funded")

        updated = await catalog.update_gift(db_session, gift.id, GiftUpdate(target_amount=5000), context=ADMIN)

        assert updated.status == "completed"
        assert updated.current_amount == 6000

    async def test_manual_status_on_fundable_is_rederived(self, db_session):
        gift = await make_gift(db_session, target_amount=10000, current_amount=2000, status="partially_funded")

        updated = await catalog.update_gift(db_session, gift.id, GiftUpdate(status="completed"), context=ADMIN)
        assert updated.status == "partially_funded"

        updated = await catalog.update_gift(db_session, gift.id, GiftUpdate(status="hidden"), context=ADMIN)
        assert updated.status == "hidden"

    async def test_delete_cascades_contributions(self, db_session):
        gift = await make_gift(db_session)
        db_session.add(
            Contribution(
                gift_id=gift.id,
                guest_name="Ana",
                guest_phone="123",
                amount=1000,
                currency="EUR",
                payment_method="bizum",
            )
        )
        await db_session.commit()

        await catalog.delete_gift(db_session, gift.id, context=ADMIN)

        remaining = await db_session.execute(Contribution.__table__.select())
        assert remaining.all() == []


class TestGiftEndpoints:
    def test_list_is_public_and_ordered(self, test_client, admin_headers):
        category_id = _category(test_client, admin_headers)
        _gift(test_client, admin_headers, category_id, title="Second", order=2)
        _gift(test_client, admin_headers, category_id, title="First", order=1)

        res = test_client.get("/gifts")

        assert res.status_code == 200
        data = res.json()
        assert [item["title"] for item in data] == ["First", "Second"]
        assert data[0]["category"]["slug"] == "nursery"
        assert data[0]["progress_percent"] == 0

    def test_filter_by_category(self, test_client, admin_headers):
        nursery = _category(test_client, admin_headers)
        outdoor = _category(test_client, admin_headers, slug="outdoor", name="Outdoor")
        _gift(test_client, admin_headers, nursery, title="Crib")
        _gift(test_client, admin_headers, outdoor, title="Stroller")

        by_slug = test_client.get("/gifts", params={"category": "outdoor"}).json()
        by_id = test_client.get("/gifts", params={"category_id": nursery}).json()

        assert [item["title"] for item in by_slug] == ["Stroller"]
        assert [item["title"] for item in by_id] == ["Crib"]

    def test_hidden_gifts(self, test_client, admin_headers, guest_headers):
        category_id = _category(test_client, admin_headers)
        hidden = _gift(test_client, admin_headers, category_id, title="Secret", status="hidden")
        _gift(test_client, admin_headers, category_id, title="Visible")

        guest_view = test_client.get("/gifts", params={"include_hidden": True}, headers=guest_headers).json()
        admin_view = test_client.get("/gifts", params={"include_hidden": True}, headers=admin_headers).json()

        assert [item["title"] for item in guest_view] == ["Visible"]
        assert {item["title"] for item in admin_view} == {"Secret", "Visible"}
        assert test_client.get(f"/gifts/{hidden['id']}", headers=guest_headers).status_code == 404
        assert test_client.get(f"/gifts/{hidden['id']}", headers=admin_headers).status_code == 200

    def test_get_unknown_gift(self, test_client):
        assert test_client.get("/gifts/999").status_code == 404

    def test_update_ignores_current_amount(self, test_client, admin_headers):
        category_id = _category(test_client, admin_headers)
        gift = _gift(test_client, admin_headers, category_id)

        res = test_client.put(
            f"/gifts/{gift['id']}",
            json={"title": "Better stroller", "current_amount": 9999},
            headers=admin_headers,
        )

        assert res.status_code == 200
        assert res.json()["title"] == "Better stroller"
        assert res.json()["current_amount"] == 0

    def test_create_validation_errors(self, test_client, admin_headers):
        category_id = _category(test_client, admin_headers)

        res = test_client.post(
            "/gifts",
            json={"category_id": category_id, "title": "Crib", "type": "fundable"},
            headers=admin_headers,
        )
        assert res.status_code == 400

        res = test_client.post(
            "/gifts",
            json={"category_id": category_id, "title": "Crib", "type": "unknown"},
            headers=admin_headers,
        )
        assert res.status_code == 422

    def test_admin_only_mutations(self, test_client, admin_headers, guest_headers):
        category_id = _category(test_client, admin_headers)
        gift = _gift(test_client, admin_headers, category_id)

        payload = {"category_id": category_id, "title": "X", "type": "custom"}
        assert test_client.post("/gifts", json=payload, headers=guest_headers).status_code == 403
        assert test_client.put(f"/gifts/{gift['id']}", json={"title": "Y"}, headers=guest_headers).status_code == 403
        assert test_client.delete(f"/gifts/{gift['id']}").status_code == 401

    def test_delete(self, test_client, admin_headers):
        category_id = _category(test_client, admin_headers)
        gift = _gift(test_client, admin_headers, category_id)

        assert test_client.delete(f"/gifts/{gift['id']}", headers=admin_headers).status_code == 204
        assert test_client.get(f"/gifts/{gift['id']}").status_code == 404
        assert test_client.delete(f"/gifts/{gift['id']}", headers=admin_headers).status_code == 404
