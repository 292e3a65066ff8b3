from fastapi import APIRouter
from feed_doctor.api.v1.endpoints import feed_doctor, rules

router = APIRouter()

router.include_router(feed_doctor.router, prefix="/tenants/{tenant_id}/feed-doctor", tags=["Feed Doctor"])
router.include_router(rules.router, prefix="/tenants/{tenant_id}/feed-doctor/rules", tags=["Optimization Rules"])
