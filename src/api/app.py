"""
FastAPI application factory.

* Registers routes for hospitals, blood requests and admin.
* Applies rate-limiting middleware.
* Disposes of the database engine on shutdown.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, blood_requests, hospitals
from src.infrastructure.database import engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Hospital finder API starting")
    yield
    await engine.dispose()
    logger.info("Hospital finder API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Hospital Finder API",
        description=(
            "Public directory of hospitals and blood-donation requests. "
            "Finds hospitals near a coordinate with straight-line distance "
            "and, for the closest results, best-effort road distance."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(hospitals.router, prefix="/api/v1")
    app.include_router(blood_requests.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
