from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio

from feed_doctor.core.config import settings
from feed_doctor.core.database import get_db
from feed_doctor.main import ai_provider_configured, create_app
from feed_doctor.services.ai_provider import AIProviderAdapter, AIProviderConfig, get_ai_provider

from conftest import TENANT_ID, add_rule, mock_provider

BASE = f"/api/v1/tenants/{TENANT_ID}/feed-doctor"


@pytest.fixture
def app(db):
    app = create_app()

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_provider] = lambda: AIProviderAdapter(AIProviderConfig(api_key=""))
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ─────────────────────────────────────────────
# Analysis endpoints
# ─────────────────────────────────────────────
@pytest.mark.asyncio
async def test_analyze_product_returns_analysis(client, product_factory):
    product = await product_factory(name="Phone", description="")

    response = await client.post(f"{BASE}/products/{product.id}/analyze")

    assert response.status_code == 200
    body = response.json()
    assert body["product_id"] == product.id
    assert body["status"] == "completed"
    assert body["title_score"] == 85
    assert body["description_score"] == 60
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_analyze_unknown_product_returns_404(client):
    response = await client.post(f"{BASE}/products/missing/analyze")

    assert response.status_code == 404
    assert "missing" in response.json()["detail"]


@pytest.mark.asyncio
async def test_bulk_analyze_reports_per_item_errors(client, product_factory):
    product = await product_factory()

    response = await client.post(f"{BASE}/bulk-analyze", json={"product_ids": [product.id, "missing_id"]})

    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] == 1
    assert body["failed"] == 1
    assert body["errors"][0]["product_id"] == "missing_id"
    assert body["errors"][0]["error_message"]


@pytest.mark.asyncio
async def test_bulk_analyze_rejects_empty_and_oversized_batches(client, monkeypatch):
    empty = await client.post(f"{BASE}/bulk-analyze", json={"product_ids": []})
    assert empty.status_code == 422

    monkeypatch.setattr(settings, "BULK_MAX_PRODUCTS", 2)
    oversized = await client.post(f"{BASE}/bulk-analyze", json={"product_ids": ["a", "b", "c"]})
    assert oversized.status_code == 422


@pytest.mark.asyncio
async def test_stats_for_empty_tenant(client):
    response = await client.get(f"{BASE}/stats")

    assert response.status_code == 200
    assert response.json() == {
        "total_products": 0,
        "analyzed_count": 0,
        "average_score": 0,
        "low_quality_count": 0,
        "medium_quality_count": 0,
        "high_quality_count": 0,
        "pending_analysis": 0,
    }


@pytest.mark.asyncio
async def test_stats_after_analysis(client, product_factory):
    product = await product_factory()
    await product_factory()
    await client.post(f"{BASE}/products/{product.id}/analyze")

    body = (await client.get(f"{BASE}/stats")).json()

    assert body["total_products"] == 2
    assert body["analyzed_count"] == 1
    assert body["pending_analysis"] == 1
    assert body["average_score"] == 100
    assert body["high_quality_count"] == 1


@pytest.mark.asyncio
async def test_list_and_get_analyses(client, product_factory):
    product = await product_factory()
    await client.post(f"{BASE}/products/{product.id}/analyze")

    listed = await client.get(f"{BASE}/analyses", params={"quality": "high", "status": "completed"})
    assert [a["product_id"] for a in listed.json()] == [product.id]

    low = await client.get(f"{BASE}/analyses", params={"quality": "low"})
    assert low.json() == []

    single = await client.get(f"{BASE}/analyses/{product.id}")
    assert single.status_code == 200
    assert single.json()["overall_score"] == 100


@pytest.mark.asyncio
async def test_invalid_quality_filter_rejected(client):
    response = await client.get(f"{BASE}/analyses", params={"quality": "excellent"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_analysis_returns_404(client):
    response = await client.get(f"{BASE}/analyses/never-analyzed")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_review_analysis(client, product_factory):
    product = await product_factory()
    await client.post(f"{BASE}/products/{product.id}/analyze")

    response = await client.patch(
        f"{BASE}/analyses/{product.id}/review",
        json={"reviewed_by": "ops@example.com", "review_notes": "Approved"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["is_reviewed"] is True
    assert body["reviewed_by"] == "ops@example.com"
    assert body["review_notes"] == "Approved"

    missing = await client.patch(f"{BASE}/analyses/nope/review", json={"reviewed_by": "ops@example.com"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_seo_title_falls_back_without_provider(client):
    response = await client.post(f"{BASE}/seo-title", json={"product_name": "Steel Bottle", "category": "Drinkware"})

    assert response.status_code == 200
    assert response.json() == {"title": "Steel Bottle - Premium Quality | Drinkware", "ai_generated": False}

    no_category = await client.post(f"{BASE}/seo-title", json={"product_name": "Steel Bottle"})
    assert no_category.json()["title"] == "Steel Bottle - Premium Quality | Online Store"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply,expected", [
    (httpx.Response(200, json={"choices": [{"message": {"content": "Steel Bottle 750ml"}}]}), ("Steel Bottle 750ml", True)),
    (httpx.Response(503, text="unavailable"), ("Steel Bottle - Premium Quality | Online Store", False)),
])
async def test_seo_title_reports_actual_source(app, client, reply, expected):
    app.dependency_overrides[get_ai_provider] = lambda: mock_provider(lambda request: reply)

    response = await client.post(f"{BASE}/seo-title", json={"product_name": "Steel Bottle"})

    body = response.json()
    assert (body["title"], body["ai_generated"]) == expected


@pytest.mark.asyncio
async def test_endpoint_logs_use_middleware_request_id(client):
    with patch("feed_doctor.api.v1.endpoints.feed_doctor.log_api_request") as log_request:
        given = await client.post(f"{BASE}/products/missing/analyze", headers={"X-Request-ID": "req-123"})
        generated = await client.post(f"{BASE}/products/missing/analyze")

    assert given.headers["X-Request-ID"] == "req-123"
    assert log_request.call_args_list[0].args[0] == "req-123"
    assert log_request.call_args_list[1].args[0] == generated.headers["X-Request-ID"]


@pytest.mark.parametrize("api_key,expected", [
    ("sk-live-key", True),
    ("your-openai-api-key-here", False),
    ("", False),
])
def test_startup_provider_check_ignores_placeholder_keys(api_key, expected):
    assert ai_provider_configured(settings.model_copy(update={"AI_API_KEY": api_key})) is expected


# ─────────────────────────────────────────────
# Rule management
# ─────────────────────────────────────────────
RULE_PAYLOAD = {
    "rule_name": "Description minimum length",
    "rule_category": "description",
    "rule_type": "length",
    "rule_config": {"min": 150},
    "severity": "error",
}


@pytest.mark.asyncio
async def test_rule_lifecycle(client):
    created = await client.post(f"{BASE}/rules/", json=RULE_PAYLOAD)
    assert created.status_code == 201
    rule = created.json()
    assert rule["tenant_id"] == TENANT_ID
    assert rule["is_active"] is True
    assert rule["rule_category"] == "description"

    toggled = await client.post(f"{BASE}/rules/{rule['id']}/toggle")
    assert toggled.status_code == 200
    assert toggled.json()["is_active"] is False

    active = await client.get(f"{BASE}/rules/", params={"active_only": True})
    assert active.json() == []
    everything = await client.get(f"{BASE}/rules/")
    assert [r["id"] for r in everything.json()] == [rule["id"]]

    deleted = await client.delete(f"{BASE}/rules/{rule['id']}")
    assert deleted.status_code == 204
    assert (await client.get(f"{BASE}/rules/")).json() == []


@pytest.mark.asyncio
async def test_invalid_rule_category_rejected(client):
    response = await client.post(f"{BASE}/rules/", json={**RULE_PAYLOAD, "rule_category": "shipping"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_global_rules_are_listed_but_read_only(client, db):
    global_rule = await add_rule(db, tenant_id=None, rule_name="Global title rule")

    listed = await client.get(f"{BASE}/rules/")
    assert [r["id"] for r in listed.json()] == [global_rule.id]
    assert listed.json()[0]["tenant_id"] is None

    assert (await client.post(f"{BASE}/rules/{global_rule.id}/toggle")).status_code == 404
    assert (await client.delete(f"{BASE}/rules/{global_rule.id}")).status_code == 404
