"""FastAPI dependency injection helpers."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.nearby import NearbySearchPipeline
from src.infrastructure.cache import ResponseCache, get_redis
from src.infrastructure.database import async_session_factory
from src.infrastructure.routing import RoadDistanceClient


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_pipeline() -> NearbySearchPipeline:
    """A fresh pipeline per request; it holds nothing between calls."""
    return NearbySearchPipeline(
        RoadDistanceClient(
            settings.osrm_base_url, settings.road_distance_timeout_ms
        )
    )


async def get_overpass_cache() -> ResponseCache:
    return ResponseCache(
        await get_redis(), "overpass", settings.overpass_cache_ttl_seconds
    )
