from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime


SeverityLevel = Literal["info", "warning", "error", "critical"]
AnalysisStatusValue = Literal["pending", "analyzing", "completed", "failed"]
QualityBand = Literal["low", "medium", "high"]


# ─────────────────────────────────────────────
# 🩺 Findings
# ─────────────────────────────────────────────
class Issue(BaseModel):
    type: str = Field(..., examples=["title_too_short"])
    severity: SeverityLevel
    message: str
    field: Optional[str] = Field(None, examples=["title"])


class Suggestion(BaseModel):
    type: str = Field(..., examples=["title_case"])
    message: str
    auto_fixable: bool = False
    fix_action: Optional[str] = Field(None, examples=["convert_title_case"])


# ─────────────────────────────────────────────
# 📥 Analysis input (transient, never persisted)
# ─────────────────────────────────────────────
class AnalysisInput(BaseModel):
    product_id: str
    tenant_id: str
    title: str = ""
    description: str = ""
    category_id: Optional[str] = None
    price: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @classmethod
    def from_product(cls, product) -> "AnalysisInput":
        return cls(
            product_id=product.id,
            tenant_id=product.tenant_id,
            title=product.name or "",
            description=product.description or "",
            category_id=product.category_id,
            price=float(product.price) if product.price is not None else None,
            images=list(product.images or []),
            tags=list(product.tags or []),
        )


# ─────────────────────────────────────────────
# 📤 Analysis result
# ─────────────────────────────────────────────
class FeedAnalysisOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    tenant_id: str
    product_id: str
    overall_score: int = Field(..., ge=0, le=100)
    title_score: Optional[int] = Field(None, ge=0, le=100)
    description_score: Optional[int] = Field(None, ge=0, le=100)
    image_score: Optional[int] = Field(None, ge=0, le=100)
    category_score: Optional[int] = Field(None, ge=0, le=100)
    price_score: Optional[int] = Field(None, ge=0, le=100)
    analysis_data: Optional[Dict[str, Any]] = None
    issues: List[Issue] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)
    optimized_title: Optional[str] = None
    optimized_description: Optional[str] = None
    optimized_keywords: Optional[List[str]] = None
    status: AnalysisStatusValue
    error_message: Optional[str] = None
    is_reviewed: bool = False
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─────────────────────────────────────────────
# 📊 Aggregate statistics
# ─────────────────────────────────────────────
class AnalysisStats(BaseModel):
    total_products: int = 0
    analyzed_count: int = 0
    average_score: int = 0
    low_quality_count: int = 0
    medium_quality_count: int = 0
    high_quality_count: int = 0
    pending_analysis: int = 0


# ─────────────────────────────────────────────
# 📦 Bulk analysis
# ─────────────────────────────────────────────
class BulkAnalyzeRequest(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)


class BulkError(BaseModel):
    product_id: str
    error_message: str


class BulkResult(BaseModel):
    succeeded: int = 0
    failed: int = 0
    errors: List[BulkError] = Field(default_factory=list)


# ─────────────────────────────────────────────
# ✅ Human review
# ─────────────────────────────────────────────
class ReviewUpdate(BaseModel):
    reviewed_by: str = Field(..., min_length=1, examples=["ops@example.com"])
    review_notes: Optional[str] = None


# ─────────────────────────────────────────────
# 🏷️ SEO title generation
# ─────────────────────────────────────────────
class SEOTitleRequest(BaseModel):
    product_name: str = Field(..., min_length=1)
    category: Optional[str] = None


class SEOTitleOut(BaseModel):
    title: str
    ai_generated: bool
