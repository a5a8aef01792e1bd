"""
Nearby Search Pipeline
======================

1. **Bounding box**      -- derive a lat/lng rectangle around the centre.
2. **Range query**       -- ask the candidate source for everything inside
   the box (plus attribute filters).  Sources may over-include.
3. **Exact radius**      -- Haversine distance per candidate; anything
   farther than ``radius_km`` is dropped (inclusive boundary).
4. **Sort**              -- ascending distance, ties broken by candidate id.
5. **Truncate**          -- keep the first ``limit`` results.
6. **Road enrichment**   -- the closest ``min(road_distance_top_k, limit)``
   results get a road distance, fetched concurrently inside a task group.
   Each task captures its own outcome, so one failing or timing-out call
   never touches its siblings.
7. Everything past the top-K is returned with ``road_distance_available``
   unset.

The pipeline holds no mutable state and never picks its own source; the
sparse-result fallback lives in ``FallbackCandidateSource`` around the
source instead.

Complexity
----------
Let B = candidates returned by the box query, K = enrichment count.

* Exact filter:  O(B)
* Sort:          O(B log B)
* Enrichment:    K concurrent HTTP calls, wall time ~ one timeout at most
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Optional, Protocol

from .distance import round_road_km, round_straight_line_km
from .entities import (
    Candidate,
    CandidateFilters,
    Coordinate,
    DistanceResult,
    SearchQuery,
)
from .geo import BoundingBox, bounding_box

logger = logging.getLogger(__name__)

# a candidate placed exactly on the radius must survive float round-off
_RADIUS_TOLERANCE_KM = 1e-9


class CandidateSourceError(Exception):
    """Raised when a candidate source cannot be queried at all."""


# ── Collaborator interfaces ───────────────────────────────────────────


class CandidateSource(Protocol):
    async def candidates_in_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list[Candidate]: ...


class RoadDistanceProvider(Protocol):
    async def road_distance_km(
        self, origin: Coordinate, destination: Coordinate
    ) -> Optional[float]: ...


# ── Pipeline ──────────────────────────────────────────────────────────


class NearbySearchPipeline:
    """Entry point used by the API layer."""

    def __init__(self, road_client: Optional[RoadDistanceProvider] = None):
        self.road_client = road_client

    async def search(
        self, query: SearchQuery, source: CandidateSource
    ) -> list[DistanceResult]:
        query.validate()

        # 1-2. Pre-filter through the source
        box = bounding_box(query.center, query.radius_km)
        candidates = await source.candidates_in_box(box, query.filters)
        logger.debug(
            "Bounding box %.4f..%.4f / %.4f..%.4f returned %d candidates",
            box.min_lat, box.max_lat, box.min_lng, box.max_lng, len(candidates),
        )

        # 3. Exact radius filter on the unrounded distance
        within: list[tuple[float, Candidate]] = []
        for candidate in candidates:
            distance = query.center.distance_to(candidate.location)
            if distance <= query.radius_km + _RADIUS_TOLERANCE_KM:
                within.append((distance, candidate))

        # 4-5. Deterministic order, then truncate
        within.sort(key=lambda pair: (pair[0], pair[1].id))
        results = [
            DistanceResult(
                candidate=candidate,
                straight_line_km=round_straight_line_km(distance),
            )
            for distance, candidate in within[: query.limit]
        ]

        # 6-7. Bounded road-distance enrichment
        top_k = min(query.enrichment_count, len(results))
        if self.road_client is not None and top_k > 0:
            await self._enrich(query.center, results[:top_k])

        logger.info(
            "Nearby search: %d candidates, %d within %.1f km, %d returned",
            len(candidates), len(within), query.radius_km, len(results),
        )
        return results

    async def _enrich(
        self, origin: Coordinate, results: list[DistanceResult]
    ) -> None:
        async with asyncio.TaskGroup() as group:
            for result in results:
                group.create_task(self._enrich_one(origin, result))

    async def _enrich_one(self, origin: Coordinate, result: DistanceResult) -> None:
        """Merge one road distance into *result*; never raises."""
        assert self.road_client is not None
        try:
            road_km = await self.road_client.road_distance_km(
                origin, result.candidate.location
            )
        except Exception:
            logger.warning(
                "Road distance lookup failed for %s", result.candidate.id,
                exc_info=True,
            )
            road_km = None

        if road_km is None or not math.isfinite(road_km) or road_km < 0:
            return
        result.road_km = round_road_km(road_km)
        result.road_distance_available = True


class FallbackCandidateSource:
    """
    Substitute a second source when the primary's answer is too sparse.

    Only a *successful* but sparse primary answer triggers the fallback;
    a ``CandidateSourceError`` from the primary propagates unchanged so an
    outage is never disguised as "few results".  ``min_results=0``
    disables the substitution.
    """

    def __init__(
        self,
        primary: CandidateSource,
        fallback: CandidateSource,
        min_results: int = 3,
    ):
        self.primary = primary
        self.fallback = fallback
        self.min_results = min_results

    async def candidates_in_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list[Candidate]:
        found = await self.primary.candidates_in_box(box, filters)
        if len(found) >= self.min_results:
            return found

        logger.info(
            "Primary source returned %d candidates (< %d) -- using fallback",
            len(found), self.min_results,
        )
        return await self.fallback.candidates_in_box(box, filters)
