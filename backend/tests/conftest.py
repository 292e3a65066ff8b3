import json
from typing import Any, Dict, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feed_doctor.core.database import Base
from feed_doctor.models.feed_analysis import FeedAnalysis
from feed_doctor.models.optimization_rule import OptimizationRule
from feed_doctor.models.product import Product
from feed_doctor.services.ai_provider import AIProviderAdapter, AIProviderConfig

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"

HEALTHY_DESCRIPTION = (
    "Crafted from brushed stainless steel, this insulated bottle keeps drinks cold for "
    "twenty four hours and hot for twelve.\nThe leak-proof lid fits every standard cup "
    "holder and the powder coat resists scratches."
)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def add_product(db: AsyncSession, tenant_id: str = TENANT_ID, **overrides) -> Product:
    values = {
        "name": "Insulated Steel Water Bottle 750ml",
        "description": HEALTHY_DESCRIPTION,
        "category_id": "cat-drinkware",
        "price": 24.90,
        "images": ["a.jpg", "b.jpg", "c.jpg"],
        "tags": ["bottle", "outdoor"],
    }
    values.update(overrides)
    product = Product(tenant_id=tenant_id, **values)
    db.add(product)
    await db.commit()
    return product


async def add_rule(db: AsyncSession, tenant_id: Optional[str] = TENANT_ID, **overrides) -> OptimizationRule:
    values = {
        "rule_name": "Title length",
        "rule_category": "title",
        "rule_type": "length",
        "rule_config": {"min": 30},
        "severity": "warning",
    }
    values.update(overrides)
    rule = OptimizationRule(tenant_id=tenant_id, **values)
    db.add(rule)
    await db.commit()
    return rule


@pytest.fixture
def product_factory(db):
    async def _factory(**overrides) -> Product:
        return await add_product(db, **overrides)
    return _factory


@pytest.fixture
def rule_factory(db):
    async def _factory(**overrides) -> OptimizationRule:
        return await add_rule(db, **overrides)
    return _factory


def provider_response(content: Dict[str, Any], status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"content": json.dumps(content)}}]},
    )


def mock_provider(handler, api_key: str = "sk-test-key", **config) -> AIProviderAdapter:
    """Configured adapter whose HTTP calls are answered by ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AIProviderAdapter(AIProviderConfig(api_key=api_key, **config), client=client)


@pytest.fixture
def unconfigured_provider() -> AIProviderAdapter:
    return AIProviderAdapter(AIProviderConfig(api_key=""))


AI_ANALYSIS = {
    "score": 72,
    "issues": [
        {
            "severity": "warning",
            "category": "seo",
            "message": "Title lacks a brand name",
            "suggestion": "Add the brand at the start of the title",
        },
        {
            "severity": "urgent",
            "category": "content",
            "message": "Description has no usage instructions",
            "suggestion": "Describe how to clean the bottle",
        },
    ],
    "optimizations": {
        "suggestedTitle": "Brand Insulated Steel Bottle 750ml",
        "suggestedDescription": "Keeps drinks cold for 24 hours.",
        "suggestedKeywords": ["steel bottle", "insulated"],
    },
    "seoScore": {
        "titleScore": 64,
        "descriptionScore": 58,
        "keywordDensity": 40,
        "readability": 80,
        "overall": 70,
    },
    "marketInsights": {"trendingKeywords": ["eco bottle"]},
}


@pytest.fixture
def ai_provider() -> AIProviderAdapter:
    return mock_provider(lambda request: provider_response(AI_ANALYSIS))


@pytest.fixture
def failing_provider() -> AIProviderAdapter:
    return mock_provider(lambda request: httpx.Response(503, text="upstream unavailable"))


async def count_analyses(db: AsyncSession) -> int:
    from sqlalchemy import func, select
    result = await db.execute(select(func.count()).select_from(FeedAnalysis))
    return result.scalar_one()
