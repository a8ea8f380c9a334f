"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetdesk.app.api.v1.endpoints import (
    auth, admin, vehicles, trip_requests, trips, reports
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Admin: provisioning and user directory
router.include_router(admin.provisioning_router)
router.include_router(admin.router)

# Fleet
router.include_router(vehicles.router)

# Trip lifecycle
router.include_router(trip_requests.router)
router.include_router(trips.router)

# Weekly reports
router.include_router(reports.router)
