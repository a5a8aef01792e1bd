"""
Integration tests for the REST API endpoints.

Uses an in-memory SQLite database with test models that replace PostGIS
Geometry columns with plain String columns.  Repositories are pointed at
the test models, the routing client is stubbed and OSM is served from an
``httpx.MockTransport``.
"""

from __future__ import annotations

from functools import partial
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.domain.nearby import NearbySearchPipeline
from src.infrastructure.directory import BLOOD_REQUESTS, directory_hospitals
from src.infrastructure.overpass import OverpassCandidateSource
from src.infrastructure.repositories import BloodRequestRepository, HospitalRepository
from tests.conftest import (
    TestBase,
    TestBloodRequestModel,
    TestHospitalModel,
    TestSessionFactory,
    test_engine,
)

NEARBY = "/api/v1/hospitals/nearby"
KMC = {"lat": 27.7172, "lng": 85.3240}

POKHARA_CLINIC = {
    "id": "9",
    "name": "Pokhara Private Clinic",
    "address": "Lakeside, Pokhara",
    "district": "Kaski",
    "phone": "061-465000",
    "services": "Outpatient Care",
    "latitude": 28.2096,
    "longitude": 83.9856,
    "is_free": False,
    "is_verified": True,
    "is_emergency": False,
    "open_hours": "09:00-17:00",
}


class _StubRoadClient:
    def __init__(self):
        self.calls = 0

    async def road_distance_km(self, origin, destination):
        self.calls += 1
        return origin.distance_to(destination) + 1.0


def _osm_transport(elements=None, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"elements": elements or []})

    return httpx.MockTransport(handler)


def _osm_hospital(osm_id: int, lat: float, lon: float) -> dict:
    return {
        "type": "node",
        "id": osm_id,
        "lat": lat,
        "lon": lon,
        "tags": {"amenity": "hospital", "name": f"OSM Hospital {osm_id}"},
    }


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def road_client():
    return _StubRoadClient()


@pytest_asyncio.fixture
async def client(road_client):
    """AsyncClient backed by SQLite + test models."""
    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.create_all)

    # Seed
    async with TestSessionFactory() as session:
        for row in directory_hospitals() + [POKHARA_CLINIC]:
            session.add(TestHospitalModel(**row))
        await session.flush()
        for i, row in enumerate(BLOOD_REQUESTS, start=1):
            session.add(
                TestBloodRequestModel(id=f"br{i}", **row, is_active=(i != 3), is_verified=True)
            )
        await session.commit()

    with (
        patch(
            "src.api.routes.hospitals.HospitalRepository",
            partial(HospitalRepository, model=TestHospitalModel),
        ),
        patch(
            "src.api.routes.blood_requests.BloodRequestRepository",
            partial(BloodRequestRepository, model=TestBloodRequestModel),
        ),
    ):
        # DB session dependency
        async def _test_db():
            async with TestSessionFactory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        from src.api.app import create_app
        from src.api.dependencies import get_db, get_overpass_cache, get_pipeline
        from src.api.middleware import limiter

        limiter.reset()
        app = create_app()
        app.dependency_overrides[get_db] = _test_db
        app.dependency_overrides[get_pipeline] = lambda: NearbySearchPipeline(road_client)
        app.dependency_overrides[get_overpass_cache] = lambda: None

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async with test_engine.begin() as conn:
        await conn.run_sync(TestBase.metadata.drop_all)


# ── Health & disabled admin surface ───────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("POST", "/api/v1/hospitals"),
        ("PUT", "/api/v1/hospitals/1"),
        ("DELETE", "/api/v1/hospitals/1"),
        ("PUT", "/api/v1/hospitals/1/verify"),
        ("POST", "/api/v1/blood-requests"),
        ("PUT", "/api/v1/blood-requests/br1"),
        ("DELETE", "/api/v1/blood-requests/br1"),
        ("PUT", "/api/v1/blood-requests/br1/verify"),
        ("GET", "/api/v1/admin/pending"),
        ("GET", "/api/v1/admin/stats"),
    ],
)
async def test_admin_features_disabled(client: AsyncClient, method, path):
    resp = await client.request(method, path)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Admin features not available in public portal"


# ── Hospital directory ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_hospitals(client: AsyncClient):
    resp = await client.get("/api/v1/hospitals")
    assert resp.status_code == 200
    assert len(resp.json()) == 9


@pytest.mark.asyncio
async def test_list_hospitals_filters(client: AsyncClient):
    resp = await client.get("/api/v1/hospitals", params={"district": "lalitpur"})
    assert [h["id"] for h in resp.json()] == ["4"]

    resp = await client.get("/api/v1/hospitals", params={"is_free": "false"})
    assert [h["id"] for h in resp.json()] == ["9"]

    resp = await client.get("/api/v1/hospitals", params={"is_emergency": "true"})
    assert len(resp.json()) == 8

    resp = await client.get("/api/v1/hospitals", params={"search": "neurology"})
    assert {h["id"] for h in resp.json()} == {"3", "6"}


@pytest.mark.asyncio
async def test_get_hospital(client: AsyncClient):
    resp = await client.get("/api/v1/hospitals/2")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Bir Hospital"


@pytest.mark.asyncio
async def test_get_hospital_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/hospitals/9999")
    assert resp.status_code == 404


# ── Nearby search ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_nearby_closest_first(client: AsyncClient, road_client):
    resp = await client.get(NEARBY, params={**KMC, "radius": 2.5})
    assert resp.status_code == 200
    data = resp.json()
    assert [h["id"] for h in data] == ["1", "5", "2", "3", "7"]
    assert data[0]["distance_km"] == 0.0
    assert all(h["has_road_distance"] for h in data)
    assert data[2]["road_distance_km"] == pytest.approx(data[2]["distance_km"] + 1.0, abs=0.06)
    assert road_client.calls == 5


@pytest.mark.asyncio
async def test_nearby_limit(client: AsyncClient):
    resp = await client.get(NEARBY, params={**KMC, "radius": 2.5, "limit": 2})
    assert [h["id"] for h in resp.json()] == ["1", "5"]


@pytest.mark.asyncio
async def test_nearby_without_road_distance(client: AsyncClient, road_client):
    resp = await client.get(
        NEARBY, params={**KMC, "radius": 2.5, "include_road_distance": "false"}
    )
    data = resp.json()
    assert len(data) == 5
    assert not any(h["has_road_distance"] for h in data)
    assert all(h["road_distance_km"] is None for h in data)
    assert road_client.calls == 0


@pytest.mark.asyncio
async def test_nearby_district_filter(client: AsyncClient):
    resp = await client.get(NEARBY, params={**KMC, "radius": 10, "district": "Lalitpur"})
    assert [h["id"] for h in resp.json()] == ["4"]


@pytest.mark.asyncio
async def test_nearby_from_database(client: AsyncClient):
    resp = await client.get(NEARBY, params={**KMC, "radius": 2.5, "source": "database"})
    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()] == ["1", "5", "2", "3", "7"]


@pytest.mark.asyncio
async def test_nearby_database_respects_radius(client: AsyncClient):
    # Pokhara is roughly 140 km from Kathmandu
    resp = await client.get(NEARBY, params={**KMC, "radius": 100, "source": "database"})
    assert "9" not in [h["id"] for h in resp.json()]

    resp = await client.get(NEARBY, params={**KMC, "radius": 300, "source": "database"})
    ids = [h["id"] for h in resp.json()]
    assert ids[-1] == "9"
    assert len(ids) == 9


@pytest.mark.asyncio
async def test_nearby_database_skips_rows_with_bad_coordinates(client: AsyncClient):
    async with TestSessionFactory() as session:
        session.add(TestHospitalModel(**{**POKHARA_CLINIC, "id": "bad", "longitude": 185.32}))
        await session.commit()

    # a world-sized radius drops the longitude predicate, so the bad row is read
    resp = await client.get(
        NEARBY, params={**KMC, "radius": 20000, "limit": 50, "source": "database"}
    )
    assert resp.status_code == 200
    ids = [h["id"] for h in resp.json()]
    assert "bad" not in ids
    assert len(ids) == 9


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {**KMC, "radius": 0},
        {**KMC, "radius": -3},
        {**KMC, "limit": 0},
        {"lat": 95.0, "lng": 85.3},
        {"lat": 27.7, "lng": 190.0},
    ],
)
async def test_nearby_invalid_input(client: AsyncClient, params):
    resp = await client.get(NEARBY, params=params)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_nearby_requires_coordinates(client: AsyncClient):
    resp = await client.get(NEARBY, params={"lat": 27.7})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_nearby_osm(client: AsyncClient):
    elements = [
        _osm_hospital(1, 27.7180, 85.3245),
        _osm_hospital(2, 27.7200, 85.3250),
        _osm_hospital(3, 27.7300, 85.3300),
    ]
    with patch(
        "src.api.routes.hospitals.OverpassCandidateSource",
        partial(OverpassCandidateSource, transport=_osm_transport(elements)),
    ):
        resp = await client.get(NEARBY, params={**KMC, "radius": 5, "source": "osm"})
    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()] == ["osm_node_1", "osm_node_2", "osm_node_3"]


@pytest.mark.asyncio
async def test_nearby_osm_sparse_falls_back_to_directory(client: AsyncClient):
    with patch(
        "src.api.routes.hospitals.OverpassCandidateSource",
        partial(
            OverpassCandidateSource,
            transport=_osm_transport([_osm_hospital(1, 27.7180, 85.3245)]),
        ),
    ):
        resp = await client.get(NEARBY, params={**KMC, "radius": 2.5, "source": "osm"})
    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()] == ["1", "5", "2", "3", "7"]


@pytest.mark.asyncio
async def test_nearby_osm_outage_is_503(client: AsyncClient):
    with patch(
        "src.api.routes.hospitals.OverpassCandidateSource",
        partial(OverpassCandidateSource, transport=_osm_transport(status=502)),
    ):
        resp = await client.get(NEARBY, params={**KMC, "radius": 5, "source": "osm"})
    assert resp.status_code == 503


# ── Blood requests ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_blood_requests(client: AsyncClient):
    resp = await client.get("/api/v1/blood-requests")
    assert resp.status_code == 200
    assert {r["id"] for r in resp.json()} == {"br1", "br2", "br3"}


@pytest.mark.asyncio
async def test_blood_request_filters(client: AsyncClient):
    resp = await client.get("/api/v1/blood-requests", params={"blood_group": "O+"})
    assert [r["id"] for r in resp.json()] == ["br1"]

    resp = await client.get("/api/v1/blood-requests", params={"urgency": "urgent"})
    assert [r["id"] for r in resp.json()] == ["br2"]

    resp = await client.get("/api/v1/blood-requests", params={"district": "lalitpur"})
    assert [r["id"] for r in resp.json()] == ["br3"]

    resp = await client.get("/api/v1/blood-requests", params={"is_active": "true"})
    assert {r["id"] for r in resp.json()} == {"br1", "br2"}


@pytest.mark.asyncio
async def test_blood_request_unknown_group_rejected(client: AsyncClient):
    resp = await client.get("/api/v1/blood-requests", params={"blood_group": "Z+"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_blood_request(client: AsyncClient):
    resp = await client.get("/api/v1/blood-requests/br2")
    assert resp.status_code == 200
    assert resp.json()["hospital_name"] == "Bir Hospital"


@pytest.mark.asyncio
async def test_get_blood_request_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/blood-requests/nope")
    assert resp.status_code == 404
