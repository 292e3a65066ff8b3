from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import time
import uuid

from feed_doctor.core.config import settings
from feed_doctor.core.database import get_db
from feed_doctor.core.logging import log_api_request
from feed_doctor.schemas.feed_analysis import (
    AnalysisStats,
    AnalysisStatusValue,
    BulkAnalyzeRequest,
    BulkResult,
    FeedAnalysisOut,
    QualityBand,
    ReviewUpdate,
    SEOTitleOut,
    SEOTitleRequest,
)
from feed_doctor.services.ai_provider import AIProviderAdapter, get_ai_provider
from feed_doctor.services.feed_doctor import FeedDoctorService, ProductNotFoundError

router = APIRouter()


def get_feed_doctor(
    db: AsyncSession = Depends(get_db),
    provider: AIProviderAdapter = Depends(get_ai_provider),
) -> FeedDoctorService:
    return FeedDoctorService(db, provider)


def _request_id(request: Request) -> str:
    """Request id set by ``RequestLoggerMiddleware``."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID") or str(uuid.uuid4())


# ─────────────────────────────────────────────
# 🩺 Analyze a single product
# ─────────────────────────────────────────────
@router.post("/products/{product_id}/analyze", response_model=FeedAnalysisOut)
async def analyze_product(
    tenant_id: str,
    product_id: str,
    request: Request,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    request_id = _request_id(request)
    start_time = time.time()
    path = f"/feed-doctor/products/{product_id}/analyze"

    try:
        analysis = await service.analyze_product(tenant_id, product_id)
    except ProductNotFoundError as e:
        log_api_request(request_id, "POST", path, 404, time.time() - start_time, tenant_id, str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log_api_request(request_id, "POST", path, 500, time.time() - start_time, tenant_id, str(e))
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")

    log_api_request(request_id, "POST", path, 200, time.time() - start_time, tenant_id)
    return analysis


# ─────────────────────────────────────────────
# 📦 Bulk analysis
# ─────────────────────────────────────────────
@router.post("/bulk-analyze", response_model=BulkResult)
async def bulk_analyze(
    tenant_id: str,
    data: BulkAnalyzeRequest,
    request: Request,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    if len(data.product_ids) > settings.BULK_MAX_PRODUCTS:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.BULK_MAX_PRODUCTS} products can be analyzed per request",
        )

    request_id = _request_id(request)
    start_time = time.time()
    result = await service.bulk_analyze(tenant_id, data.product_ids)
    log_api_request(request_id, "POST", "/feed-doctor/bulk-analyze", 200, time.time() - start_time, tenant_id)
    return result


# ─────────────────────────────────────────────
# 📊 Dashboard statistics
# ─────────────────────────────────────────────
@router.get("/stats", response_model=AnalysisStats)
async def get_stats(
    tenant_id: str,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    return await service.get_analysis_stats(tenant_id)


# ─────────────────────────────────────────────
# 📋 Analysis results
# ─────────────────────────────────────────────
@router.get("/analyses", response_model=List[FeedAnalysisOut])
async def list_analyses(
    tenant_id: str,
    quality: Optional[QualityBand] = Query(None, description="low (<50), medium (50-75), high (>75)"),
    status: Optional[AnalysisStatusValue] = None,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    return await service.get_analyses(tenant_id, quality=quality, status=status)


@router.get("/analyses/{product_id}", response_model=FeedAnalysisOut)
async def get_analysis(
    tenant_id: str,
    product_id: str,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    analysis = await service.get_analysis(tenant_id, product_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


@router.patch("/analyses/{product_id}/review", response_model=FeedAnalysisOut)
async def review_analysis(
    tenant_id: str,
    product_id: str,
    data: ReviewUpdate,
    service: FeedDoctorService = Depends(get_feed_doctor),
):
    analysis = await service.review_analysis(tenant_id, product_id, data.reviewed_by, data.review_notes)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


# ─────────────────────────────────────────────
# 🏷️ SEO title suggestion
# ─────────────────────────────────────────────
@router.post("/seo-title", response_model=SEOTitleOut)
async def generate_seo_title(
    tenant_id: str,
    data: SEOTitleRequest,
    provider: AIProviderAdapter = Depends(get_ai_provider),
):
    title, ai_generated = await provider.generate_seo_title(data.product_name, data.category)
    return SEOTitleOut(title=title, ai_generated=ai_generated)
