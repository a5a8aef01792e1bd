"""
Bounding-box pre-filter
=======================

Derives an axis-aligned lat/lng rectangle that contains every point within
``radius_km`` of a centre.  The box is a *necessary* condition only -- it
lets candidate sources answer with a cheap indexed range query, and the
exact Haversine test is applied afterwards.

    lat_delta = (radius_km / R) * (180 / pi)
    lng_delta = asin(sin(radius / R) / cos(center_lat))

The arcsine form is never narrower than the flat ``lat_delta / cos(lat)``
approximation, which under-includes points on the poleward side of the
circle at high latitudes.

Edge cases
----------
* Near the poles ``cos(center_lat) -> 0`` and ``lng_delta`` diverges.  When
  the circle reaches or encloses a pole, longitude is left unbounded.
* A box that would cross the antimeridian is widened to the full longitude
  range rather than split in two.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .distance import EARTH_RADIUS_KM
from .entities import Coordinate

# absorbs float error so boundary points are never excluded
_MARGIN_DEG = 1e-9


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, point: Coordinate) -> bool:
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lng <= point.longitude <= self.max_lng
        )

    @property
    def spans_all_longitudes(self) -> bool:
        return self.min_lng <= -180.0 and self.max_lng >= 180.0


def bounding_box(center: Coordinate, radius_km: float) -> BoundingBox:
    """Return a rectangle guaranteed to contain the circle around *center*."""
    angular = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular) + _MARGIN_DEG
    min_lat = max(-90.0, center.latitude - lat_delta)
    max_lat = min(90.0, center.latitude + lat_delta)

    cos_lat = math.cos(math.radians(center.latitude))
    if min_lat <= -90.0 or max_lat >= 90.0 or math.sin(angular) >= cos_lat:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    lng_delta = math.degrees(math.asin(math.sin(angular) / cos_lat)) + _MARGIN_DEG
    min_lng = center.longitude - lng_delta
    max_lng = center.longitude + lng_delta
    if min_lng < -180.0 or max_lng > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    return BoundingBox(min_lat, max_lat, min_lng, max_lng)
