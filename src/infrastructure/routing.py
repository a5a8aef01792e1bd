"""
OSRM road-distance client.

Road distance is an enrichment, never a required field: every failure mode
(non-2xx status, malformed body, no route, timeout, network error) resolves
to ``None`` and is logged, the caller never sees an exception.

Each call opens its own short-lived ``httpx.AsyncClient`` so concurrent
calls share no state.  Tests inject an ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import math
import logging
from typing import Optional

import httpx

from src.config import settings
from src.domain.distance import round_road_km
from src.domain.entities import Coordinate

logger = logging.getLogger(__name__)


class RoadDistanceClient:
    def __init__(
        self,
        base_url: str = settings.osrm_base_url,
        timeout_ms: int = settings.road_distance_timeout_ms,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self._transport = transport

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        # OSRM wants lng,lat order
        return (
            f"{self.base_url}/route/v1/driving/"
            f"{origin.longitude},{origin.latitude};"
            f"{destination.longitude},{destination.latitude}"
        )

    async def road_distance_km(
        self, origin: Coordinate, destination: Coordinate
    ) -> Optional[float]:
        """Return the driving distance in km (2 dp), or ``None`` if unavailable."""
        timeout_s = self.timeout_ms / 1000
        try:
            return await asyncio.wait_for(
                self._fetch(origin, destination, timeout_s), timeout=timeout_s
            )
        except asyncio.TimeoutError:
            logger.warning(
                "OSRM timed out after %dms for %s -> %s",
                self.timeout_ms, origin, destination,
            )
        except httpx.HTTPError as exc:
            logger.warning("OSRM request failed: %s", exc)
        except (ValueError, KeyError, TypeError, IndexError, AttributeError) as exc:
            logger.warning("OSRM returned a malformed payload: %s", exc)
        return None

    async def _fetch(
        self, origin: Coordinate, destination: Coordinate, timeout_s: float
    ) -> Optional[float]:
        params = {"overview": "false", "alternatives": "false", "steps": "false"}
        async with httpx.AsyncClient(
            transport=self._transport, timeout=timeout_s
        ) as client:
            response = await client.get(
                self.route_url(origin, destination), params=params
            )
            response.raise_for_status()
            payload = response.json()

        if payload.get("code") != "Ok" or not payload.get("routes"):
            logger.info("OSRM found no route: code=%s", payload.get("code"))
            return None

        meters = float(payload["routes"][0]["distance"])
        if not math.isfinite(meters) or meters < 0:
            raise ValueError(f"invalid route distance {meters}")
        return round_road_km(meters / 1000)
