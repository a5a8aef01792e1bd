"""Pydantic response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.domain.entities import DistanceResult


# ── Responses ─────────────────────────────────────────────────────────


class HospitalResponse(BaseModel):
    id: str
    name: str
    address: str
    district: str
    phone: str
    services: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_free: bool = False
    is_verified: bool = False
    is_emergency: bool = True
    open_hours: Optional[str] = "24/7"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NearbyHospitalResponse(HospitalResponse):
    distance_km: float
    road_distance_km: Optional[float] = None
    has_road_distance: bool = False

    @classmethod
    def from_result(cls, result: DistanceResult) -> NearbyHospitalResponse:
        candidate = result.candidate
        attrs = candidate.attributes
        return cls(
            id=candidate.id,
            name=attrs.get("name", ""),
            address=attrs.get("address", ""),
            district=attrs.get("district", ""),
            phone=attrs.get("phone", ""),
            services=attrs.get("services", ""),
            latitude=candidate.location.latitude,
            longitude=candidate.location.longitude,
            is_free=bool(attrs.get("is_free", False)),
            is_verified=bool(attrs.get("is_verified", False)),
            is_emergency=bool(attrs.get("is_emergency", True)),
            open_hours=attrs.get("open_hours"),
            distance_km=result.straight_line_km,
            road_distance_km=result.road_km,
            has_road_distance=result.road_distance_available,
        )


class BloodRequestResponse(BaseModel):
    id: str
    blood_group: str
    units_required: int
    patient_name: Optional[str] = None
    hospital_id: Optional[str] = None
    hospital_name: str
    contact_person: str
    contact_phone: str
    urgency: str
    district: str
    is_active: bool = True
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
