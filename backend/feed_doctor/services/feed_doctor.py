"""
Feed Doctor - product content quality analysis.

Scores a product across five dimensions (title, description, images,
category, price), collects issues and suggestions, and stores the latest
result per (tenant_id, product_id).

When the AI provider is configured its analysis is used for text quality,
with local presence heuristics for the structural dimensions. When the
provider is not configured or fails, the deterministic rule-based scorers
run instead.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from feed_doctor.core.logging import analysis_logger, log_analysis_event
from feed_doctor.models.feed_analysis import AnalysisStatus, FeedAnalysis
from feed_doctor.schemas.feed_analysis import (
    AnalysisInput,
    AnalysisStats,
    BulkError,
    BulkResult,
    Issue,
    Suggestion,
)
from feed_doctor.services.ai_provider import AIProviderAdapter, ProviderResult
from feed_doctor.services.content_generators import (
    extract_keywords,
    generate_optimized_description,
    generate_optimized_title,
)
from feed_doctor.services.repositories import (
    FeedAnalysisRepository,
    ProductRepository,
    RuleRepository,
)
from feed_doctor.services.scorers import (
    score_category,
    score_description,
    score_images,
    score_price,
    score_title,
)
from feed_doctor.services.stats import compute_stats, round_half_up

ANALYZED_FIELDS = ["title", "description", "images", "category", "price"]
VALID_SEVERITIES = {"info", "warning", "error", "critical"}


class ProductNotFoundError(LookupError):
    """The product does not exist in the tenant's catalog."""

    def __init__(self, tenant_id: str, product_id: str):
        self.tenant_id = tenant_id
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found for tenant {tenant_id}")


def _dump(items: Sequence) -> List[Dict[str, Any]]:
    return [item.model_dump() for item in items]


def rule_based_analysis(analysis_input: AnalysisInput, rules: Sequence) -> Dict[str, Any]:
    """Run the five scorers and build the analysis column values."""
    dimensions = {
        "title": score_title(analysis_input.title, rules),
        "description": score_description(analysis_input.description, rules),
        "images": score_images(analysis_input.images, rules),
        "category": score_category(analysis_input.category_id, rules),
        "price": score_price(analysis_input.price, rules),
    }

    issues: List[Issue] = []
    suggestions: List[Suggestion] = []
    for dimension in dimensions.values():
        issues.extend(dimension.issues)
        suggestions.extend(dimension.suggestions)

    scores = [d.score for d in dimensions.values()]

    return {
        "overall_score": round_half_up(sum(scores) / len(scores)),
        "title_score": dimensions["title"].score,
        "description_score": dimensions["description"].score,
        "image_score": dimensions["images"].score,
        "category_score": dimensions["category"].score,
        "price_score": dimensions["price"].score,
        "analysis_data": {
            "product_name": analysis_input.title,
            "analyzed_fields": list(ANALYZED_FIELDS),
            "rules_applied": len(rules),
            "rules_by_dimension": {name: d.rules_considered for name, d in dimensions.items()},
            "ai_powered": False,
        },
        "issues": _dump(issues),
        "suggestions": _dump(suggestions),
        "optimized_title": generate_optimized_title(analysis_input.title),
        "optimized_description": generate_optimized_description(analysis_input.description),
        "optimized_keywords": extract_keywords(f"{analysis_input.title} {analysis_input.description}"),
    }


def ai_based_analysis(analysis_input: AnalysisInput, rules: Sequence, provider_result: ProviderResult) -> Dict[str, Any]:
    """
    Build the analysis column values from a provider result.

    Title and description scores come from the provider; images, category
    and price use presence heuristics. AI suggestions are never auto-fixable.
    """
    issues: List[Issue] = []
    suggestions: List[Suggestion] = []
    for ai_issue in provider_result.issues:
        severity = ai_issue.severity if ai_issue.severity in VALID_SEVERITIES else "info"
        issues.append(Issue(
            type=ai_issue.category,
            severity=severity,
            message=ai_issue.message,
            field=ai_issue.category,
        ))
        suggestions.append(Suggestion(
            type=ai_issue.category,
            message=ai_issue.suggestion,
            auto_fixable=False,
        ))

    optimizations = provider_result.optimizations
    has_price = analysis_input.price is not None and analysis_input.price != 0

    return {
        "overall_score": provider_result.score,
        "title_score": provider_result.seo_score.title_score,
        "description_score": provider_result.seo_score.description_score,
        "image_score": 85 if len(analysis_input.images) >= 3 else 50,
        "category_score": 90 if analysis_input.category_id else 40,
        "price_score": 80 if has_price else 30,
        "analysis_data": {
            "product_name": analysis_input.title,
            "analyzed_fields": list(ANALYZED_FIELDS),
            "rules_applied": len(rules),
            "ai_powered": True,
            "market_insights": provider_result.market_insights,
        },
        "issues": _dump(issues),
        "suggestions": _dump(suggestions),
        "optimized_title": optimizations.suggested_title or generate_optimized_title(analysis_input.title),
        "optimized_description": (
            optimizations.suggested_description
            or generate_optimized_description(analysis_input.description)
        ),
        "optimized_keywords": list(optimizations.suggested_keywords or []),
    }


async def run_analysis(
    analysis_input: AnalysisInput,
    rules: Sequence,
    provider: Optional[AIProviderAdapter] = None,
) -> Dict[str, Any]:
    """Choose the AI path or the rule path for one product and score it."""
    if provider is not None and provider.is_configured():
        outcome = await provider.try_analyze(analysis_input)
        if outcome.ok:
            return ai_based_analysis(analysis_input, rules, outcome.result)
        analysis_logger.warning(
            f"AI analysis failed for product {analysis_input.product_id}, "
            f"falling back to rule-based: {outcome.error}"
        )

    return rule_based_analysis(analysis_input, rules)


class FeedDoctorService:
    """Analysis orchestration, bulk processing and result queries for one session."""

    def __init__(self, db: AsyncSession, provider: Optional[AIProviderAdapter] = None):
        self.db = db
        self.provider = provider
        self.products = ProductRepository(db)
        self.rules = RuleRepository(db)
        self.analyses = FeedAnalysisRepository(db)

    async def analyze_product(self, tenant_id: str, product_id: str) -> FeedAnalysis:
        """
        Analyze one product and persist the result.

        Raises:
            ProductNotFoundError: nothing is persisted.
            Exception: any other failure, after a failed-status record is stored.
        """
        start_time = time.time()

        try:
            product = await self.products.get(tenant_id, product_id)
            if product is None:
                raise ProductNotFoundError(tenant_id, product_id)

            rules = await self.rules.list_for_tenant(tenant_id, active_only=True)
            analysis_input = AnalysisInput.from_product(product)

            await self.analyses.upsert(tenant_id, product_id, {"status": AnalysisStatus.analyzing.value})
            await self.db.commit()

            values = await run_analysis(analysis_input, rules, self.provider)
            values.update(
                status=AnalysisStatus.completed.value,
                error_message=None,
                analyzed_at=datetime.now(timezone.utc),
            )
            analysis = await self.analyses.upsert(tenant_id, product_id, values)
            await self.db.commit()

        except ProductNotFoundError as e:
            log_analysis_event(tenant_id, product_id, "not_found", time.time() - start_time, error=str(e))
            raise
        except Exception as e:
            await self._record_failure(tenant_id, product_id, e)
            log_analysis_event(
                tenant_id, product_id, AnalysisStatus.failed.value, time.time() - start_time,
                overall_score=0, error=str(e) or e.__class__.__name__
            )
            raise

        log_analysis_event(
            tenant_id, product_id, analysis.status, time.time() - start_time,
            overall_score=analysis.overall_score,
            ai_powered=bool((analysis.analysis_data or {}).get("ai_powered")),
        )
        return analysis

    async def _record_failure(self, tenant_id: str, product_id: str, error: Exception):
        """Best-effort failed-status write; never masks the original error."""
        try:
            await self.db.rollback()
            await self.analyses.upsert(tenant_id, product_id, {
                "overall_score": 0,
                "status": AnalysisStatus.failed.value,
                "error_message": str(error) or error.__class__.__name__,
            })
            await self.db.commit()
        except Exception as write_error:
            analysis_logger.error(
                f"Could not record failed analysis for product {product_id}: {write_error}"
            )
            await self.db.rollback()

    async def bulk_analyze(self, tenant_id: str, product_ids: Sequence[str]) -> BulkResult:
        """Analyze products one after another; a failing product never stops the batch."""
        result = BulkResult()

        for product_id in product_ids:
            try:
                await self.analyze_product(tenant_id, product_id)
                result.succeeded += 1
            except Exception as e:
                result.failed += 1
                result.errors.append(BulkError(
                    product_id=product_id,
                    error_message=str(e) or e.__class__.__name__,
                ))

        analysis_logger.info(
            f"Bulk analysis for tenant {tenant_id}: "
            f"{result.succeeded} succeeded, {result.failed} failed"
        )
        return result

    async def get_analysis_stats(self, tenant_id: str) -> AnalysisStats:
        total_products = await self.products.count_for_tenant(tenant_id)
        scores = await self.analyses.scores_for_tenant(tenant_id)
        return compute_stats(total_products, scores, tenant_id=tenant_id)

    async def get_analyses(
        self,
        tenant_id: str,
        quality: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[FeedAnalysis]:
        return await self.analyses.list_for_tenant(tenant_id, quality=quality, status=status)

    async def get_analysis(self, tenant_id: str, product_id: str) -> Optional[FeedAnalysis]:
        """Point lookup; ``None`` when the product was never analyzed."""
        return await self.analyses.get(tenant_id, product_id)

    async def review_analysis(
        self,
        tenant_id: str,
        product_id: str,
        reviewed_by: str,
        review_notes: Optional[str] = None,
    ) -> Optional[FeedAnalysis]:
        analysis = await self.analyses.mark_reviewed(tenant_id, product_id, reviewed_by, review_notes)
        if analysis is not None:
            await self.db.commit()
        return analysis
