import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, JSON, DateTime, func
from feed_doctor.core.database import Base


class RuleCategory(str, enum.Enum):
    title = "title"
    description = "description"
    image = "image"
    category = "category"
    price = "price"
    general = "general"


class RuleType(str, enum.Enum):
    length = "length"
    keyword = "keyword"
    format = "format"
    regex = "regex"
    ai_check = "ai_check"
    custom = "custom"


class Severity(str, enum.Enum):
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class OptimizationRule(Base):
    """
    Tenant-scoped (or global, when tenant_id is NULL) content rule.

    Rules are read-only inputs to the analysis engine: they are filtered per
    dimension and counted, but their weight and penalty do not change scores.
    """

    __tablename__ = "feed_optimization_rules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), nullable=True, index=True)

    rule_name = Column(String(255), nullable=False)
    rule_description = Column(Text, nullable=True)
    rule_category = Column(String(20), nullable=False)
    channel_type = Column(String(50), nullable=True)
    rule_type = Column(String(20), nullable=False)
    rule_config = Column(JSON, nullable=False, default=dict)

    weight = Column(Float, nullable=False, default=1.0)
    penalty_points = Column(Integer, nullable=False, default=0)
    severity = Column(String(10), nullable=False, default=Severity.warning.value)
    priority = Column(Integer, nullable=False, default=100)
    is_active = Column(Boolean, nullable=False, default=True)
    is_auto_fixable = Column(Boolean, nullable=False, default=False)
    auto_fix_template = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_global(self) -> bool:
        return self.tenant_id is None

    def __repr__(self):
        return f"<OptimizationRule id={self.id} name={self.rule_name!r} category={self.rule_category}>"
