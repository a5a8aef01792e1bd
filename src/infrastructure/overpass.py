"""
OpenStreetMap candidate source (Overpass API).

Queries hospitals and clinics inside the search bounding box and normalises
the raw OSM elements into ``Candidate`` objects carrying the same attribute
keys as the directory and the database (name, address, district, phone,
services, flags).

Unlike the directory sources, an upstream failure here is raised as
``CandidateSourceError``: an empty list always means "OSM has nothing in
this box", never "OSM could not be asked".
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from src.config import settings
from src.domain.entities import Candidate, CandidateFilters, Coordinate, InvalidSearchQuery
from src.domain.geo import BoundingBox
from src.domain.nearby import CandidateSourceError
from src.infrastructure.cache import ResponseCache

logger = logging.getLogger(__name__)

_QUERY_TEMPLATE = """
[out:json][timeout:{timeout}];
(
  node["amenity"="hospital"]({bbox});
  way["amenity"="hospital"]({bbox});
  relation["amenity"="hospital"]({bbox});
  node["amenity"="clinic"]({bbox});
  way["amenity"="clinic"]({bbox});
  node["healthcare"="hospital"]({bbox});
  way["healthcare"="hospital"]({bbox});
);
out center;
"""

# (name, lat range, lng range); first match wins
_DISTRICT_BOXES: list[tuple[str, tuple[float, float], Optional[tuple[float, float]]]] = [
    ("Kathmandu", (27.65, 27.75), (85.25, 85.40)),
    ("Lalitpur", (27.60, 27.70), (85.20, 85.35)),
    ("Bhaktapur", (27.65, 27.73), (85.35, 85.50)),
    ("Pokhara", (28.10, 28.30), (83.90, 84.20)),
    ("Biratnagar", (26.40, 26.60), (87.20, 87.40)),
    ("Gandaki", (28.00, 28.30), None),
    ("Bagmati", (27.00, 28.00), None),
    ("Janakpur", (26.00, 27.00), None),
]

_SERVICE_TAGS = [
    (("surgery",), "Surgery"),
    (("icu", "intensive_care"), "ICU"),
    (("pharmacy",), "Pharmacy"),
    (("laboratory",), "Laboratory"),
    (("radiology", "medical:radiology"), "Radiology"),
    (("cardiology",), "Cardiology"),
    (("maternity",), "Maternity"),
]


def build_query(box: BoundingBox, timeout: int = 25) -> str:
    bbox = f"{box.min_lat},{box.min_lng},{box.max_lat},{box.max_lng}"
    return _QUERY_TEMPLATE.format(timeout=timeout, bbox=bbox)


def infer_district(lat: float, lng: float) -> str:
    """Rough coordinate-based district lookup for Nepal."""
    for name, (lat_lo, lat_hi), lng_range in _DISTRICT_BOXES:
        if not lat_lo <= lat <= lat_hi:
            continue
        if lng_range is None or lng_range[0] <= lng <= lng_range[1]:
            return name
    return "Nepal"


def clean_phone(phone: str) -> str:
    if not phone:
        return ""
    phone = re.sub(r"^\+977[-\s]?", "", phone)
    phone = re.sub(r"[-\s()]", "", phone)
    return re.sub(r"^0", "", phone).strip()


def build_services(tags: dict[str, Any]) -> str:
    services: list[str] = []
    if tags.get("emergency") == "yes" or tags.get("amenity") == "hospital":
        services.append("Emergency")

    speciality = tags.get("healthcare:speciality")
    if speciality:
        services.extend(s.strip() for s in speciality.split(";") if s.strip())

    for keys, label in _SERVICE_TAGS:
        if any(tags.get(k) == "yes" for k in keys):
            services.append(label)

    if not services:
        if tags.get("healthcare") == "hospital" or tags.get("amenity") == "hospital":
            services = ["General Medicine", "Emergency"]
        elif tags.get("healthcare") == "clinic":
            services = ["General Medicine"]
        elif tags.get("amenity") == "clinic":
            services = ["Outpatient Care"]

    return ", ".join(services) if services else "Medical Services"


def normalize_element(element: dict[str, Any]) -> Optional[Candidate]:
    """Turn one Overpass element into a ``Candidate``, or ``None`` to skip it."""
    tags = element.get("tags") or {}
    center = element.get("center") or {}
    lat = center.get("lat", element.get("lat"))
    lng = center.get("lon", element.get("lon"))
    name = tags.get("name") or tags.get("name:en") or tags.get("name:ne")
    if lat is None or lng is None or not name:
        return None

    try:
        location = Coordinate(float(lat), float(lng))
    except (TypeError, ValueError, InvalidSearchQuery):
        logger.warning("Skipping OSM element %s with bad coordinates", element.get("id"))
        return None

    address_parts = [
        tags.get("addr:street"),
        tags.get("addr:city") or tags.get("addr:district"),
        tags.get("addr:state") or tags.get("addr:province"),
    ]
    address_parts = [p for p in address_parts if p]
    if address_parts:
        address = ", ".join(address_parts)
    else:
        address = tags.get("addr:full") or f"{location.latitude:.4f}, {location.longitude:.4f}"

    district = (
        tags.get("addr:city")
        or tags.get("addr:district")
        or tags.get("addr:state")
        or tags.get("addr:province")
        or infer_district(location.latitude, location.longitude)
    )

    lowered = name.lower()
    is_emergency = (
        tags.get("emergency") == "yes"
        or tags.get("healthcare") == "hospital"
        or tags.get("amenity") == "hospital"
        or "emergency" in lowered
    )
    operator = str(tags.get("operator", "")).lower()
    is_free = not ("private" in lowered or "pvt" in lowered or "private" in operator)

    return Candidate(
        id=f"osm_{element.get('type', 'node')}_{element.get('id')}",
        location=location,
        attributes={
            "name": name,
            "address": address,
            "district": district,
            "phone": clean_phone(tags.get("phone") or tags.get("contact:phone") or ""),
            "services": build_services(tags),
            "is_free": is_free,
            "is_verified": True,
            "is_emergency": is_emergency,
            "open_hours": tags.get("opening_hours") or ("24/7" if is_emergency else "Unknown"),
        },
    )


class OverpassCandidateSource:
    def __init__(
        self,
        url: str = settings.overpass_url,
        timeout_seconds: int = settings.overpass_timeout_seconds,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.cache = cache
        self._transport = transport

    async def candidates_in_box(
        self, box: BoundingBox, filters: Optional[CandidateFilters] = None
    ) -> list[Candidate]:
        query = build_query(box, self.timeout_seconds)
        payload = await self._cached_payload(query)

        elements = payload.get("elements")
        if not isinstance(elements, list):
            raise CandidateSourceError("Overpass response has no element list")

        candidates = [c for c in map(normalize_element, elements) if c is not None]
        if filters is not None:
            candidates = [c for c in candidates if filters.matches(c.attributes)]
        logger.info(
            "OSM returned %d elements, %d usable hospitals", len(elements), len(candidates)
        )
        return candidates

    async def _cached_payload(self, query: str) -> dict[str, Any]:
        if self.cache is not None:
            cached = await self.cache.get_json(query)
            if isinstance(cached, dict):
                return cached
            if cached is not None:
                logger.warning("Ignoring non-object Overpass cache entry")

        payload = await self._fetch(query)
        if self.cache is not None:
            await self.cache.set_json(query, payload)
        return payload

    async def _fetch(self, query: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout_seconds + 5
            ) as client:
                response = await client.post(self.url, data={"data": query})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("Overpass request failed: %s", exc)
            raise CandidateSourceError(f"Overpass API unavailable: {exc}") from exc
        except ValueError as exc:
            logger.error("Overpass returned invalid JSON: %s", exc)
            raise CandidateSourceError("Overpass API returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise CandidateSourceError("Overpass API returned an unexpected payload")
        return payload
