"""
Blood request endpoints
=======================

GET /api/v1/blood-requests       -- filtered listing, newest first
GET /api/v1/blood-requests/{id}  -- single request

Write endpoints are disabled on the public portal and answer 403.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import limiter
from src.api.routes.admin import ADMIN_DISABLED
from src.api.schemas import BloodRequestResponse
from src.config import settings
from src.domain.enums import BloodGroup, Urgency
from src.infrastructure.repositories import BloodRequestRepository

router = APIRouter(prefix="/blood-requests", tags=["blood-requests"])


@router.get(
    "",
    response_model=list[BloodRequestResponse],
    summary="List blood requests",
)
@limiter.limit(settings.rate_limit)
async def list_blood_requests(
    request: Request,
    blood_group: Optional[BloodGroup] = None,
    urgency: Optional[Urgency] = None,
    district: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
):
    return await BloodRequestRepository(db).list_requests(
        blood_group=blood_group.value if blood_group else None,
        urgency=urgency.value if urgency else None,
        district=district,
        is_active=is_active,
    )


@router.get(
    "/{request_id}",
    response_model=BloodRequestResponse,
    summary="Get a blood request",
)
@limiter.limit(settings.rate_limit)
async def get_blood_request(
    request: Request,
    request_id: str,
    db: AsyncSession = Depends(get_db),
):
    blood_request = await BloodRequestRepository(db).get_by_id(request_id)
    if not blood_request:
        raise HTTPException(status_code=404, detail="Blood request not found")
    return blood_request


@router.post("", status_code=403, include_in_schema=False)
@router.put("/{request_id}", status_code=403, include_in_schema=False)
@router.delete("/{request_id}", status_code=403, include_in_schema=False)
@router.put("/{request_id}/verify", status_code=403, include_in_schema=False)
async def blood_request_admin_disabled():
    raise HTTPException(status_code=403, detail=ADMIN_DISABLED)
