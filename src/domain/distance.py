"""
Great-circle distance using the Haversine formula.

Straight-line distance is what the nearby search filters and sorts on;
road distance from the routing service is only ever an enrichment on top
of it (see ``src.infrastructure.routing``).

Complexity: O(1) per call.
"""

import math

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # float error can push a a hair outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def round_straight_line_km(distance_km: float) -> float:
    return round(distance_km, 1)


def round_road_km(distance_km: float) -> float:
    return round(distance_km, 2)
