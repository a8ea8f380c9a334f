"""
FastAPI Application Entry Point.

This is the main application file for the FleetDesk trip management backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fleetdesk.app.core.config import settings
from fleetdesk.app.api.v1.router import router as api_v1_router
from fleetdesk.app.db.session import engine, Base
from fleetdesk.app.core.observability import ObservabilityMiddleware, configure_logging
from fleetdesk.app.core.redis_client import ping_redis
from fleetdesk.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetdesk.app.models.user import User  # noqa: F401
from fleetdesk.app.models.profile import Profile  # noqa: F401
from fleetdesk.app.models.user_role import UserRoleAssignment  # noqa: F401
from fleetdesk.app.models.vehicle import Vehicle  # noqa: F401
from fleetdesk.app.models.trip_request import TripRequest  # noqa: F401
from fleetdesk.app.models.trip import Trip  # noqa: F401

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Vehicle requests, trip tracking and weekly fleet reports",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the FleetDesk API",
        "docs": "/docs",
        "health": "/health",
    }
