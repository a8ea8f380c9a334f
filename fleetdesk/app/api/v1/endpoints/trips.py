"""
Trip Execution API Endpoints.

Employees start and end the trip for an assigned request by submitting the
odometer reading, a photo of the meter and the device's GPS fix as a
multipart form. Managers watch the trips currently on the road.
"""

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.enums import AppRole
from fleetdesk.app.schemas.trip import (
    GeoPoint, MeterPhoto, TripEvidence, TripResponse,
    ActiveTripResponse, ActiveTripListResponse
)
from fleetdesk.app.core.exceptions import ResourceNotFoundError
from fleetdesk.app.core.guards import require_role, enforce_owner
from fleetdesk.app.core.dependencies import get_current_user
from fleetdesk.app.core.roles import MANAGER_ROLES
from fleetdesk.app.services.object_store import get_object_store
from fleetdesk.app.services.trip_lifecycle import TripLifecycleService

router = APIRouter(prefix="/trips", tags=["Trips"])


async def _evidence(reading: float, latitude: float, longitude: float, photo: UploadFile) -> TripEvidence:
    data = await photo.read()
    return TripEvidence(
        reading=reading,
        photo=MeterPhoto(
            filename=photo.filename or "meter.jpg",
            content_type=photo.content_type or "",
            data=data,
        ),
        location=GeoPoint(latitude=latitude, longitude=longitude),
    )


@router.post("/{request_id}/start", response_model=TripResponse)
async def start_trip(
    request_id: int = Path(..., description="Assigned trip request ID"),
    reading: float = Form(..., description="Odometer reading at departure"),
    latitude: float = Form(..., ge=-90, le=90),
    longitude: float = Form(..., ge=-180, le=180),
    photo: UploadFile = File(..., description="Photo of the odometer"),
    current_user: dict = Depends(require_role([AppRole.EMPLOYEE])),
    db: AsyncSession = Depends(get_db),
    store=Depends(get_object_store),
):
    """
    Start the trip for an assigned request (Employee only).

    Validates:
    - Request is assigned and belongs to the caller
    - No trip exists for it yet
    - Reading is not negative, photo is an image under the size limit
    """
    evidence = await _evidence(reading, latitude, longitude, photo)
    trip = await TripLifecycleService.start_trip(db, store, request_id, current_user["user_id"], evidence)
    return TripResponse.model_validate(trip)


@router.post("/{request_id}/end", response_model=TripResponse)
async def end_trip(
    request_id: int = Path(..., description="Trip request ID"),
    reading: float = Form(..., description="Odometer reading on return"),
    latitude: float = Form(..., ge=-90, le=90),
    longitude: float = Form(..., ge=-180, le=180),
    photo: UploadFile = File(..., description="Photo of the odometer"),
    current_user: dict = Depends(require_role([AppRole.EMPLOYEE])),
    db: AsyncSession = Depends(get_db),
    store=Depends(get_object_store),
):
    """
    End the active trip (Employee only).

    Computes the distance and returns the vehicle to the available pool.
    """
    evidence = await _evidence(reading, latitude, longitude, photo)
    trip = await TripLifecycleService.end_trip(db, store, request_id, current_user["user_id"], evidence)
    return TripResponse.model_validate(trip)


@router.get("/active", response_model=ActiveTripListResponse)
async def list_active_trips(
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Trips on the road, most recently started first.
    """
    trips = await TripLifecycleService.list_active_trips(db)
    return ActiveTripListResponse(
        trips=[ActiveTripResponse.model_validate(t) for t in trips],
        total=len(trips)
    )


@router.get("/request/{request_id}", response_model=TripResponse)
async def get_trip_for_request(
    request_id: int = Path(..., description="Trip request ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    The trip of a request. Employees may only read their own.
    """
    trip_request = await TripLifecycleService.get_request(db, request_id)
    if not set(current_user.get("roles") or []) & {role.value for role in MANAGER_ROLES}:
        enforce_owner(trip_request.employee_id, current_user, "trip")

    trip = await TripLifecycleService.get_trip_for_request(db, request_id)
    if not trip:
        raise ResourceNotFoundError("Trip for request", request_id)
    return TripResponse.model_validate(trip)
