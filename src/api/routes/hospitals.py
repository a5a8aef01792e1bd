"""
Hospital endpoints
==================

GET /api/v1/hospitals          -- filtered directory listing
GET /api/v1/hospitals/nearby   -- hospitals within a radius, closest first
GET /api/v1/hospitals/{id}     -- single hospital

Write endpoints (create / update / delete / verify) are disabled on the
public portal and answer 403.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_overpass_cache, get_pipeline
from src.api.middleware import limiter
from src.api.routes.admin import ADMIN_DISABLED
from src.api.schemas import ErrorResponse, HospitalResponse, NearbyHospitalResponse
from src.config import settings
from src.domain.entities import (
    CandidateFilters,
    Coordinate,
    InvalidSearchQuery,
    SearchQuery,
)
from src.domain.enums import NearbySource
from src.domain.nearby import (
    CandidateSourceError,
    FallbackCandidateSource,
    NearbySearchPipeline,
)
from src.infrastructure.cache import ResponseCache
from src.infrastructure.directory import StaticCandidateSource
from src.infrastructure.overpass import OverpassCandidateSource
from src.infrastructure.repositories import DatabaseCandidateSource, HospitalRepository

router = APIRouter(prefix="/hospitals", tags=["hospitals"])


@router.get(
    "",
    response_model=list[HospitalResponse],
    summary="List hospitals",
)
@limiter.limit(settings.rate_limit)
async def list_hospitals(
    request: Request,
    district: Optional[str] = None,
    is_free: Optional[bool] = None,
    is_emergency: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await HospitalRepository(db).list_hospitals(
        district=district,
        is_free=is_free,
        is_emergency=is_emergency,
        search=search,
        limit=limit,
    )


# Must be registered before /{hospital_id}
@router.get(
    "/nearby",
    response_model=list[NearbyHospitalResponse],
    summary="Hospitals near a coordinate, closest first",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid search parameters"},
        503: {"model": ErrorResponse, "description": "Hospital source unavailable"},
    },
)
@limiter.limit(settings.rate_limit)
async def nearby_hospitals(
    request: Request,
    lat: float,
    lng: float,
    radius: float = settings.default_radius_km,
    limit: int = settings.default_nearby_limit,
    source: NearbySource = NearbySource.DIRECTORY,
    emergency_only: bool = False,
    free_only: bool = False,
    district: Optional[str] = None,
    include_road_distance: bool = True,
    db: AsyncSession = Depends(get_db),
    pipeline: NearbySearchPipeline = Depends(get_pipeline),
    cache: ResponseCache = Depends(get_overpass_cache),
):
    try:
        query = SearchQuery(
            center=Coordinate(lat, lng),
            radius_km=radius,
            limit=limit,
            road_distance_top_k=(
                settings.road_distance_top_k if include_road_distance else 0
            ),
            filters=CandidateFilters(
                emergency_only=emergency_only,
                free_only=free_only,
                district=district,
            ),
        )
    except InvalidSearchQuery as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if source is NearbySource.DATABASE:
        candidate_source = DatabaseCandidateSource(HospitalRepository(db))
    elif source is NearbySource.OSM:
        candidate_source = FallbackCandidateSource(
            OverpassCandidateSource(cache=cache),
            StaticCandidateSource.from_directory(),
            min_results=settings.min_nearby_results,
        )
    else:
        candidate_source = StaticCandidateSource.from_directory()

    try:
        results = await pipeline.search(query, candidate_source)
    except CandidateSourceError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    return [NearbyHospitalResponse.from_result(r) for r in results]


@router.get(
    "/{hospital_id}",
    response_model=HospitalResponse,
    summary="Get a hospital",
)
@limiter.limit(settings.rate_limit)
async def get_hospital(
    request: Request,
    hospital_id: str,
    db: AsyncSession = Depends(get_db),
):
    hospital = await HospitalRepository(db).get_by_id(hospital_id)
    if not hospital:
        raise HTTPException(status_code=404, detail="Hospital not found")
    return hospital


# ── Disabled write surface ────────────────────────────────────────────


@router.post("", status_code=403, include_in_schema=False)
@router.put("/{hospital_id}", status_code=403, include_in_schema=False)
@router.delete("/{hospital_id}", status_code=403, include_in_schema=False)
@router.put("/{hospital_id}/verify", status_code=403, include_in_schema=False)
async def hospital_admin_disabled():
    raise HTTPException(status_code=403, detail=ADMIN_DISABLED)
