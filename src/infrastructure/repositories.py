"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  The mapped model class is injectable so the
same queries run against the SQLite mirrors used in tests.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BloodRequestModel, HospitalModel
from src.domain.entities import (
    Candidate,
    CandidateFilters,
    Coordinate,
    InvalidSearchQuery,
)
from src.domain.geo import BoundingBox
from src.domain.nearby import CandidateSourceError

logger = logging.getLogger(__name__)


class HospitalRepository:
    def __init__(self, session: AsyncSession, model=HospitalModel):
        self.session = session
        self.model = model

    async def get_by_id(self, hospital_id: str):
        return await self.session.get(self.model, hospital_id)

    async def list_hospitals(
        self,
        *,
        district: Optional[str] = None,
        is_free: Optional[bool] = None,
        is_emergency: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> list:
        m = self.model
        query = select(m)
        if district:
            query = query.where(func.lower(m.district) == district.lower())
        if is_free is not None:
            query = query.where(m.is_free.is_(is_free))
        if is_emergency is not None:
            query = query.where(m.is_emergency.is_(is_emergency))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(m.name).like(pattern),
                    func.lower(m.address).like(pattern),
                    func.lower(m.services).like(pattern),
                )
            )
        result = await self.session.execute(query.order_by(m.name).limit(limit))
        return list(result.scalars().all())

    async def within_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list:
        """Range query on the lat/lng index. Rows in the box corners are included."""
        m = self.model
        query = select(m).where(
            m.latitude.is_not(None),
            m.longitude.is_not(None),
            m.latitude.between(box.min_lat, box.max_lat),
        )
        if not box.spans_all_longitudes:
            query = query.where(m.longitude.between(box.min_lng, box.max_lng))
        if filters is not None:
            if filters.emergency_only:
                query = query.where(m.is_emergency.is_(True))
            if filters.free_only:
                query = query.where(m.is_free.is_(True))
            if filters.district:
                query = query.where(func.lower(m.district) == filters.district.lower())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(self.model)
        )
        return result.scalar() or 0


class BloodRequestRepository:
    def __init__(self, session: AsyncSession, model=BloodRequestModel):
        self.session = session
        self.model = model

    async def get_by_id(self, request_id: str):
        return await self.session.get(self.model, request_id)

    async def list_requests(
        self,
        *,
        blood_group: Optional[str] = None,
        urgency: Optional[str] = None,
        district: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list:
        m = self.model
        query = select(m)
        if blood_group:
            query = query.where(m.blood_group == blood_group)
        if urgency:
            query = query.where(m.urgency == urgency)
        if district:
            query = query.where(func.lower(m.district) == district.lower())
        if is_active is not None:
            query = query.where(m.is_active.is_(is_active))
        result = await self.session.execute(query.order_by(m.created_at.desc()))
        return list(result.scalars().all())


def hospital_to_candidate(row) -> Candidate:
    return Candidate(
        id=str(row.id),
        location=Coordinate(row.latitude, row.longitude),
        attributes={
            "name": row.name,
            "address": row.address,
            "district": row.district,
            "phone": row.phone,
            "services": row.services,
            "is_free": bool(row.is_free),
            "is_verified": bool(row.is_verified),
            "is_emergency": bool(row.is_emergency),
            "open_hours": row.open_hours,
        },
    )


class DatabaseCandidateSource:
    """Adapts ``HospitalRepository`` to the pipeline's candidate-source interface."""

    def __init__(self, repo: HospitalRepository):
        self.repo = repo

    async def candidates_in_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list[Candidate]:
        try:
            rows = await self.repo.within_box(box, filters)
        except SQLAlchemyError as exc:
            logger.error("Hospital range query failed: %s", exc)
            raise CandidateSourceError("Hospital database unavailable") from exc

        candidates = []
        for row in rows:
            try:
                candidates.append(hospital_to_candidate(row))
            except InvalidSearchQuery:
                logger.warning(
                    "Skipping hospital %s with bad coordinates (%s, %s)",
                    row.id, row.latitude, row.longitude,
                )
        # free-text search is not pushed down to SQL for the nearby path
        if filters is not None and filters.search:
            candidates = [c for c in candidates if filters.matches(c.attributes)]
        return candidates
