"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  PostGIS-specific features (Geometry columns)
are mocked by using plain String columns in the test models.
"""

import math
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.domain.distance import EARTH_RADIUS_KM
from src.domain.entities import Candidate, Coordinate


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


class TestBase(DeclarativeBase):
    pass


# Mirror the production models but without PostGIS Geometry columns
# (SQLite doesn't support them).

class TestHospitalModel(TestBase):
    __tablename__ = "hospitals"
    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    district = Column(String(120), nullable=False)
    phone = Column(String(40), nullable=False)
    services = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location = Column(String, nullable=True)  # stub for Geometry
    is_free = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)
    is_emergency = Column(Boolean, default=True)
    open_hours = Column(String(60), default="24/7")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


class TestBloodRequestModel(TestBase):
    __tablename__ = "blood_requests"
    id = Column(String(64), primary_key=True)
    blood_group = Column(String(3), nullable=False)
    units_required = Column(Integer, nullable=False)
    patient_name = Column(String(120), nullable=True)
    hospital_id = Column(String(64), ForeignKey("hospitals.id"), nullable=True)
    hospital_name = Column(Text, nullable=False)
    contact_person = Column(String(120), nullable=False)
    contact_phone = Column(String(40), nullable=False)
    urgency = Column(String(10), nullable=False)
    district = Column(String(120), nullable=False)
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


# ── Geometry helpers ──────────────────────────────────────────────────

KATHMANDU = Coordinate(27.7172, 85.3240)


def destination(origin: Coordinate, distance_km: float, bearing_deg: float) -> Coordinate:
    """Point reached by travelling *distance_km* from *origin* on a bearing."""
    delta = distance_km / EARTH_RADIUS_KM
    theta = math.radians(bearing_deg)
    lat1 = math.radians(origin.latitude)
    lng1 = math.radians(origin.longitude)

    sin_lat2 = math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(theta)
    lat2 = math.asin(max(-1.0, min(1.0, sin_lat2)))
    lng2 = lng1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * sin_lat2,
    )
    lng_deg = (math.degrees(lng2) + 540.0) % 360.0 - 180.0
    return Coordinate(math.degrees(lat2), lng_deg)


def north_of(origin: Coordinate, distance_km: float) -> Coordinate:
    return Coordinate(
        origin.latitude + math.degrees(distance_km / EARTH_RADIUS_KM),
        origin.longitude,
    )


def make_candidate(candidate_id: str, location: Coordinate, **attributes) -> Candidate:
    attributes.setdefault("name", f"Hospital {candidate_id}")
    return Candidate(id=candidate_id, location=location, attributes=attributes)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.drop_all)


@pytest.fixture
def kathmandu() -> Coordinate:
    return KATHMANDU
