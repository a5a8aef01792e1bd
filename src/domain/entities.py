"""
Domain entities and value objects for the nearby search.

Nothing here is persisted or mutated by the search: candidates come in from
a source, ``DistanceResult`` objects are built per request and discarded
after the response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .distance import haversine_km


class InvalidSearchQuery(Exception):
    """Raised when a search is rejected before any work begins."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidSearchQuery(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidSearchQuery(f"Longitude out of range: {self.longitude}")

    def distance_to(self, other: Coordinate) -> float:
        return haversine_km(
            self.latitude, self.longitude, other.latitude, other.longitude
        )


@dataclass(frozen=True)
class CandidateFilters:
    """Attribute predicates forwarded to the candidate source."""

    emergency_only: bool = False
    free_only: bool = False
    district: Optional[str] = None
    search: Optional[str] = None

    def matches(self, attributes: dict[str, Any]) -> bool:
        if self.emergency_only and not attributes.get("is_emergency"):
            return False
        if self.free_only and not attributes.get("is_free"):
            return False
        if self.district and (
            str(attributes.get("district", "")).lower() != self.district.lower()
        ):
            return False
        if self.search:
            term = self.search.lower()
            haystack = (
                attributes.get("name", ""),
                attributes.get("address", ""),
                attributes.get("services", ""),
            )
            if not any(term in str(value).lower() for value in haystack):
                return False
        return True


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Candidate:
    id: str
    location: Coordinate
    attributes: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class DistanceResult:
    candidate: Candidate
    straight_line_km: float
    road_km: Optional[float] = None
    road_distance_available: bool = False


@dataclass
class SearchQuery:
    center: Coordinate
    radius_km: float
    limit: int = 20
    road_distance_top_k: int = 10
    filters: Optional[CandidateFilters] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject the query if it cannot describe a meaningful search."""
        if not isinstance(self.center, Coordinate):
            raise InvalidSearchQuery("A centre coordinate is required")
        if not self.radius_km > 0:
            raise InvalidSearchQuery(
                f"Radius must be positive, got {self.radius_km}"
            )
        if self.limit <= 0:
            raise InvalidSearchQuery(f"Limit must be positive, got {self.limit}")
        if self.road_distance_top_k < 0:
            raise InvalidSearchQuery(
                f"road_distance_top_k cannot be negative, got {self.road_distance_top_k}"
            )

    @property
    def enrichment_count(self) -> int:
        return min(self.road_distance_top_k, self.limit)
