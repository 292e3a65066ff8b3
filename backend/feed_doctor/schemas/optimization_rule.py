from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime

from feed_doctor.models.optimization_rule import RuleCategory, RuleType, Severity


# ─────────────────────────────────────────────
# 📥 Base Shared Schema
# ─────────────────────────────────────────────
class OptimizationRuleBase(BaseModel):
    rule_name: str = Field(..., min_length=1, examples=["Title minimum length"])
    rule_description: Optional[str] = None
    rule_category: RuleCategory
    channel_type: Optional[str] = Field(None, examples=["trendyol"])
    rule_type: RuleType
    rule_config: Dict[str, Any] = Field(default_factory=dict, examples=[{"min": 30}])
    weight: float = Field(1.0, ge=0)
    penalty_points: int = Field(0, ge=0)
    severity: Severity = Severity.warning
    priority: int = 100
    is_auto_fixable: bool = False
    auto_fix_template: Optional[str] = None


# ─────────────────────────────────────────────
# 🆕 Create Schema
# ─────────────────────────────────────────────
class OptimizationRuleCreate(OptimizationRuleBase):
    is_active: bool = True


# ─────────────────────────────────────────────
# 📤 Output Schema
# ─────────────────────────────────────────────
class OptimizationRuleOut(OptimizationRuleBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
