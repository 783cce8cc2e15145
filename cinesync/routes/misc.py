"""
Miscellaneous routes: health check, promotion inquiries, maintenance.
"""

from fastapi import APIRouter, Depends

from ..auth import verify_admin_key
from ..config import config, state
from ..schemas import PromotionRequest, PromotionResponse, ReconcileResponse
from ..services import PromotionServiceDep, ReconciliationServiceDep

router = APIRouter(tags=["misc"])


# ─────────────────────────────────────────────────────────────
# Health Check
# ─────────────────────────────────────────────────────────────

@router.get("/status")
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "store_ready": state.store is not None,
        "sessions_enabled": config.sessions_enabled(),
        "reconciler_running": bool(state.scheduler and state.scheduler.running),
    }


# ─────────────────────────────────────────────────────────────
# Promotions
# ─────────────────────────────────────────────────────────────

@router.post("/promotions", status_code=201)
async def submit_promotion(
    request: PromotionRequest,
    promotions: PromotionServiceDep,
) -> PromotionResponse:
    """Send an advertising inquiry; no sign-in required."""
    inquiry_id = promotions.submit(
        name=request.name,
        email=request.email,
        message=request.message,
        company=request.company,
    )
    return PromotionResponse(id=inquiry_id)


# ─────────────────────────────────────────────────────────────
# Maintenance
# ─────────────────────────────────────────────────────────────

@router.post("/admin/reconcile", dependencies=[Depends(verify_admin_key)])
def reconcile(reconciler: ReconciliationServiceDep) -> ReconcileResponse:
    """Recompute counters, rating aggregates and comment mirrors."""
    return ReconcileResponse.from_report(reconciler.reconcile_all())
