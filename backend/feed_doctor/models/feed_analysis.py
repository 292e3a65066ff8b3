import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Boolean, JSON, DateTime, UniqueConstraint, func
from feed_doctor.core.database import Base


class AnalysisStatus(str, enum.Enum):
    pending = "pending"
    analyzing = "analyzing"
    completed = "completed"
    failed = "failed"


class FeedAnalysis(Base):
    """Latest analysis result for one product. One row per (tenant_id, product_id)."""

    __tablename__ = "feed_analysis"
    __table_args__ = (
        UniqueConstraint("tenant_id", "product_id", name="uq_feed_analysis_tenant_product"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), nullable=False, index=True)

    # Scores
    overall_score = Column(Integer, nullable=False, default=0)
    title_score = Column(Integer, nullable=True)
    description_score = Column(Integer, nullable=True)
    image_score = Column(Integer, nullable=True)
    category_score = Column(Integer, nullable=True)
    price_score = Column(Integer, nullable=True)

    # Findings
    analysis_data = Column(JSON, nullable=True)
    issues = Column(JSON, nullable=False, default=list)
    suggestions = Column(JSON, nullable=False, default=list)

    # Generated content
    optimized_title = Column(Text, nullable=True)
    optimized_description = Column(Text, nullable=True)
    optimized_keywords = Column(JSON, nullable=True, default=list)

    status = Column(String(20), nullable=False, default=AnalysisStatus.pending.value)
    error_message = Column(Text, nullable=True)

    # Human review workflow
    is_reviewed = Column(Boolean, nullable=False, default=False)
    reviewed_by = Column(String(255), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)

    analyzed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<FeedAnalysis product={self.product_id} score={self.overall_score} status={self.status}>"
