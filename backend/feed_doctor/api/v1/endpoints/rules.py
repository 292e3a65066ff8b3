from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from feed_doctor.core.database import get_db
from feed_doctor.core.logging import api_logger
from feed_doctor.schemas.optimization_rule import OptimizationRuleCreate, OptimizationRuleOut
from feed_doctor.services.repositories import RuleRepository

router = APIRouter()


# ─────────────────────────────────────────────
# 📋 List tenant and global rules
# ─────────────────────────────────────────────
@router.get("/", response_model=List[OptimizationRuleOut])
async def list_rules(
    tenant_id: str,
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await RuleRepository(db).list_for_tenant(tenant_id, active_only=active_only)


# ─────────────────────────────────────────────
# 🆕 Create a tenant rule
# ─────────────────────────────────────────────
@router.post("/", response_model=OptimizationRuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule(
    tenant_id: str,
    data: OptimizationRuleCreate,
    db: AsyncSession = Depends(get_db),
):
    rule = await RuleRepository(db).create(tenant_id, data.model_dump(mode="json"))
    await db.commit()
    api_logger.info(f"Created optimization rule {rule.id} for tenant {tenant_id}")
    return rule


# ─────────────────────────────────────────────
# 🔁 Enable / disable a tenant rule
# ─────────────────────────────────────────────
@router.post("/{rule_id}/toggle", response_model=OptimizationRuleOut)
async def toggle_rule(
    tenant_id: str,
    rule_id: str,
    db: AsyncSession = Depends(get_db),
):
    repo = RuleRepository(db)
    rule = await repo.get_owned(tenant_id, rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found")

    rule.is_active = not rule.is_active
    await db.commit()
    await db.refresh(rule)
    return rule


# ─────────────────────────────────────────────
# 🗑️ Delete a tenant rule
# ─────────────────────────────────────────────
@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    tenant_id: str,
    rule_id: str,
    db: AsyncSession = Depends(get_db),
):
    deleted = await RuleRepository(db).delete_owned(tenant_id, rule_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Rule not found")

    await db.commit()
    api_logger.info(f"Deleted optimization rule {rule_id} for tenant {tenant_id}")
