"""
SQLAlchemy ORM models  (maps to PostgreSQL + PostGIS).

Tables
------
* ``hospitals``       -- directory of hospitals with coordinates and flags
* ``blood_requests``  -- open blood-donation requests, optionally linked to
  a hospital

Indexes
-------
* **B-Tree** on ``(latitude, longitude)`` serves the bounding-box range
  query used by the nearby search.
* **GIST** on ``hospitals.location`` for PostGIS spatial queries.
* **B-Tree** on ``district`` and the filter flags used by the listings.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from geoalchemy2 import Geometry

from .database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class HospitalModel(Base):
    __tablename__ = "hospitals"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    district = Column(String(120), nullable=False)
    phone = Column(String(40), nullable=False)
    services = Column(Text, nullable=False)

    # Plain floats drive the bounding-box range query
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location = Column(
        Geometry("POINT", srid=4326, spatial_index=False), nullable=True
    )

    is_free = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)
    is_emergency = Column(Boolean, default=True)
    open_hours = Column(String(60), default="24/7")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_hospitals_lat_lng", "latitude", "longitude"),
        Index("idx_hospitals_location", "location", postgresql_using="gist"),
        Index("idx_hospitals_district", "district"),
        Index("idx_hospitals_emergency", "is_emergency"),
    )


class BloodRequestModel(Base):
    __tablename__ = "blood_requests"

    id = Column(String(64), primary_key=True, default=_new_id)
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

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_blood_requests_group", "blood_group"),
        Index("idx_blood_requests_urgency", "urgency"),
        Index("idx_blood_requests_district", "district"),
        Index("idx_blood_requests_active", "is_active"),
    )
