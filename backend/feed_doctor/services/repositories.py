"""
Persistence collaborators used by the Feed Doctor engine.

Each repository wraps one table on a shared ``AsyncSession``. Repositories
never commit; the caller owns the transaction.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from feed_doctor.core.logging import db_logger
from feed_doctor.models.feed_analysis import FeedAnalysis
from feed_doctor.models.optimization_rule import OptimizationRule
from feed_doctor.models.product import Product
from feed_doctor.services.stats import HIGH_QUALITY_THRESHOLD, LOW_QUALITY_THRESHOLD

# Columns written by an analysis run; review metadata is never touched by upserts
ANALYSIS_COLUMNS = (
    "overall_score",
    "title_score",
    "description_score",
    "image_score",
    "category_score",
    "price_score",
    "analysis_data",
    "issues",
    "suggestions",
    "optimized_title",
    "optimized_description",
    "optimized_keywords",
    "status",
    "error_message",
    "analyzed_at",
)


class ProductRepository:
    """Read access to the product catalog."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, tenant_id: str, product_id: str) -> Optional[Product]:
        result = await self.db.execute(
            select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def count_for_tenant(self, tenant_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Product).where(Product.tenant_id == tenant_id)
        )
        return result.scalar_one()


class RuleRepository:
    """Optimization rules scoped to a tenant, plus global rules (tenant_id IS NULL)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_tenant(self, tenant_id: str, active_only: bool = True) -> List[OptimizationRule]:
        query = select(OptimizationRule).where(
            or_(OptimizationRule.tenant_id == tenant_id, OptimizationRule.tenant_id.is_(None))
        )
        if active_only:
            query = query.where(OptimizationRule.is_active.is_(True))
        query = query.order_by(OptimizationRule.priority, OptimizationRule.rule_name)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_owned(self, tenant_id: str, rule_id: str) -> Optional[OptimizationRule]:
        """A rule the tenant may modify; global rules are excluded."""
        result = await self.db.execute(
            select(OptimizationRule).where(
                OptimizationRule.id == rule_id, OptimizationRule.tenant_id == tenant_id
            )
        )
        return result.scalar_one_or_none()

    async def create(self, tenant_id: str, data: Dict[str, Any]) -> OptimizationRule:
        rule = OptimizationRule(tenant_id=tenant_id, **data)
        self.db.add(rule)
        await self.db.flush()
        await self.db.refresh(rule)
        return rule

    async def delete_owned(self, tenant_id: str, rule_id: str) -> bool:
        result = await self.db.execute(
            delete(OptimizationRule).where(
                OptimizationRule.id == rule_id, OptimizationRule.tenant_id == tenant_id
            )
        )
        return result.rowcount > 0


class FeedAnalysisRepository:
    """Upsert and read access to analysis results keyed by (tenant_id, product_id)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.bind.dialect.name if self.db.bind is not None else "postgresql"
        if dialect == "sqlite":
            return sqlite.insert(FeedAnalysis)
        return postgresql.insert(FeedAnalysis)

    async def upsert(self, tenant_id: str, product_id: str, values: Dict[str, Any]) -> FeedAnalysis:
        """
        Insert or replace the analysis columns for one product.

        Only keys present in ``values`` are overwritten on conflict, so a
        failed-status write keeps the last known scores.
        """
        unknown = set(values) - set(ANALYSIS_COLUMNS)
        if unknown:
            raise ValueError(f"Not an analysis column: {', '.join(sorted(unknown))}")

        stmt = self._insert().values(tenant_id=tenant_id, product_id=product_id, **values)
        update_set = {key: getattr(stmt.excluded, key) for key in values}
        update_set["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[FeedAnalysis.tenant_id, FeedAnalysis.product_id],
            set_=update_set,
        )
        await self.db.execute(stmt)

        db_logger.debug(f"Upserted feed analysis {tenant_id}/{product_id} status={values.get('status')}")
        analysis = await self.get(tenant_id, product_id, refresh=True)
        if analysis is None:
            raise RuntimeError(f"Feed analysis for {product_id} missing after upsert")
        return analysis

    async def get(self, tenant_id: str, product_id: str, refresh: bool = False) -> Optional[FeedAnalysis]:
        query = select(FeedAnalysis).where(
            FeedAnalysis.tenant_id == tenant_id, FeedAnalysis.product_id == product_id
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_tenant(
        self,
        tenant_id: str,
        quality: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[FeedAnalysis]:
        query = select(FeedAnalysis).where(FeedAnalysis.tenant_id == tenant_id)

        if quality == "low":
            query = query.where(FeedAnalysis.overall_score < LOW_QUALITY_THRESHOLD)
        elif quality == "medium":
            query = query.where(
                FeedAnalysis.overall_score >= LOW_QUALITY_THRESHOLD,
                FeedAnalysis.overall_score <= HIGH_QUALITY_THRESHOLD,
            )
        elif quality == "high":
            query = query.where(FeedAnalysis.overall_score > HIGH_QUALITY_THRESHOLD)
        if status:
            query = query.where(FeedAnalysis.status == status)

        query = query.order_by(desc(FeedAnalysis.analyzed_at).nulls_last(), FeedAnalysis.product_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def scores_for_tenant(self, tenant_id: str) -> List[int]:
        result = await self.db.execute(
            select(FeedAnalysis.overall_score).where(FeedAnalysis.tenant_id == tenant_id)
        )
        return list(result.scalars().all())

    async def mark_reviewed(
        self,
        tenant_id: str,
        product_id: str,
        reviewed_by: str,
        review_notes: Optional[str] = None,
    ) -> Optional[FeedAnalysis]:
        analysis = await self.get(tenant_id, product_id)
        if analysis is None:
            return None

        analysis.is_reviewed = True
        analysis.reviewed_by = reviewed_by
        analysis.reviewed_at = datetime.now(timezone.utc)
        analysis.review_notes = review_notes
        await self.db.flush()
        await self.db.refresh(analysis)
        return analysis
