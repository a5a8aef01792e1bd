"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health   -- simple health check
GET /api/v1/admin/pending  -- disabled on the public portal (403)
GET /api/v1/admin/stats    -- disabled on the public portal (403)
"""

from fastapi import APIRouter, HTTPException

from src.api.schemas import ErrorResponse, HealthResponse

ADMIN_DISABLED = "Admin features not available in public portal"

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get(
    "/pending",
    status_code=403,
    responses={403: {"model": ErrorResponse}},
    summary="Pending verifications (disabled)",
)
@router.get(
    "/stats",
    status_code=403,
    responses={403: {"model": ErrorResponse}},
    summary="Portal statistics (disabled)",
)
async def admin_disabled():
    raise HTTPException(status_code=403, detail=ADMIN_DISABLED)
