"""HTTP tests - app wired to in-memory fakes through dependency overrides."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vrms.api.deps import get_auth_provider, get_store
from vrms.main import app
from tests.fakes import new_id


@pytest_asyncio.fixture
async def client(store, auth):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_auth_provider] = lambda: auth
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _body(world, **overrides):
    body = {
        "promotion_id": world["promotion"].id,
        "property_id": world["property"].id,
        "guest_name": "Jane Guest",
        "guest_email": "Jane@Example.com",
        "guest_phone": "+15550100",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_claim_success(client, store, world):
    response = await client.post("/promotions/claim", json=_body(world))
    assert response.status_code == 200
    data = response.json()
    assert data["is_new_user"] is True
    assert data["conversation_id"] in store.conversations
    assert store.profiles[data["guest_user_id"]].email == "jane@example.com"
    assert "promo code" in data["message"]

    (notification,) = store.notifications
    assert notification.user_id == world["owner"].id
    assert notification.priority == "high"
    assert notification.action_url == f"/manage/chat/conversations/{data['conversation_id']}"
    assert notification.action_label == "View Message"


@pytest.mark.asyncio
async def test_claim_unknown_promotion_is_404(client, world):
    response = await client.post("/promotions/claim", json=_body(world, promotion_id=new_id()))
    assert response.status_code == 404
    assert response.json() == {"error": {"kind": "NOT_FOUND", "message": "Promotion not found"}}


@pytest.mark.asyncio
async def test_claim_inactive_promotion_is_400(client, store, world):
    inactive = store.add_promotion(is_active=False)
    response = await client.post("/promotions/claim", json=_body(world, promotion_id=inactive.id))
    assert response.status_code == 400
    assert response.json()["error"]["kind"] == "BAD_REQUEST"


@pytest.mark.asyncio
async def test_claim_invalid_email_is_422(client, auth, world):
    response = await client.post("/promotions/claim", json=_body(world, guest_email="not-an-email"))
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["kind"] == "VALIDATION_ERROR"
    assert error["details"]
    assert auth.accounts == {}


@pytest.mark.asyncio
async def test_claim_missing_name_is_422(client, world):
    body = _body(world)
    del body["guest_name"]
    response = await client.post("/promotions/claim", json=body)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unexpected_failure_is_500(client, store, world):
    store.failing.add("get_promotion")
    response = await client.post("/promotions/claim", json=_body(world))
    assert response.status_code == 500
    assert response.json() == {
        "error": {"kind": "INTERNAL_ERROR", "message": "Internal server error"}
    }


@pytest.mark.asyncio
async def test_metrics_counts_post_commit_steps(client, world):
    await client.post("/promotions/claim", json=_body(world))
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert response.json()["post_commit"] == {
        "owner_notification.delivered": 1,
        "verification_email.delivered": 1,
    }


@pytest.mark.asyncio
async def test_customer_conversations_after_claim(client, store, world):
    claim = (await client.post("/promotions/claim", json=_body(world))).json()
    (customer,) = store.customers.values()

    response = await client.get(f"/customers/{customer.id}/conversations")
    assert response.status_code == 200
    (conversation,) = response.json()
    assert conversation["id"] == claim["conversation_id"]
    assert conversation["title"] == "Promo Claim: Early Bird"
    assert conversation["property"]["id"] == world["property"].id
    assert conversation["last_message"]["sender_id"] == claim["guest_user_id"]
    assert conversation["unread_count"] == 0

    archived = await client.get(f"/customers/{customer.id}/conversations", params={"archived": True})
    assert archived.json() == []


@pytest.mark.asyncio
async def test_customer_conversations_unknown_customer_is_404(client):
    response = await client.get(f"/customers/{new_id()}/conversations")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Customer not found"


@pytest.mark.asyncio
async def test_customer_conversations_bad_id_is_422(client):
    response = await client.get("/customers/not-a-uuid/conversations")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_find_or_create_customer(client, store, world):
    body = {"email": "Walkin@Example.com", "property_id": world["property"].id, "full_name": "Walk In"}
    created = await client.post("/customers", json=body)
    assert created.status_code == 200
    data = created.json()
    assert data["email"] == "walkin@example.com"
    assert data["company_id"] == world["company"].id
    assert data["status"] == "lead"

    again = await client.post("/customers", json=body)
    assert again.json()["id"] == data["id"]
    assert len(store.customers) == 1


@pytest.mark.asyncio
async def test_find_or_create_customer_unknown_property_is_404(client):
    response = await client.post("/customers", json={"email": "a@example.com", "property_id": new_id()})
    assert response.status_code == 404
