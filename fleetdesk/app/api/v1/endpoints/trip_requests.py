"""
Trip Request API Endpoints.

Employees file requests; vehicle managers and admins approve, reject and
assign vehicles. State changes go through TripLifecycleService.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path, Body
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.enums import AppRole, ApprovalStatus
from fleetdesk.app.schemas.trip_request import (
    TripRequestCreate, TripRequestResponse, TripRequestListResponse,
    RejectRequest, AssignVehicleRequest
)
from fleetdesk.app.core.guards import require_role, enforce_owner
from fleetdesk.app.core.dependencies import get_current_user
from fleetdesk.app.core.roles import MANAGER_ROLES
from fleetdesk.app.services.trip_lifecycle import TripLifecycleService

router = APIRouter(prefix="/trip-requests", tags=["Trip Requests"])


def _as_list(requests) -> TripRequestListResponse:
    return TripRequestListResponse(
        requests=[TripRequestResponse.model_validate(r) for r in requests],
        total=len(requests)
    )


@router.post("", response_model=TripRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_request(
    request_data: TripRequestCreate,
    current_user: dict = Depends(require_role([AppRole.EMPLOYEE])),
    db: AsyncSession = Depends(get_db)
):
    """
    File a new trip request (Employee only).

    The request starts pending with no vehicle.
    """
    trip_request = await TripLifecycleService.create_request(db, current_user["user_id"], request_data)
    return TripRequestResponse.model_validate(trip_request)


@router.get("/mine", response_model=TripRequestListResponse)
async def list_my_requests(
    current_user: dict = Depends(require_role([AppRole.EMPLOYEE])),
    db: AsyncSession = Depends(get_db)
):
    """
    The caller's requests, newest first, with vehicle and trip summary.
    """
    requests = await TripLifecycleService.list_requests_for_employee(db, current_user["user_id"])
    return _as_list(requests)


@router.get("/pending", response_model=TripRequestListResponse)
async def list_pending_requests(
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Requests awaiting a decision, oldest first.
    """
    requests = await TripLifecycleService.list_requests_by_status(db, ApprovalStatus.PENDING)
    return _as_list(requests)


@router.get("/approved", response_model=TripRequestListResponse)
async def list_approved_requests(
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Approved requests waiting for a vehicle, oldest first.
    """
    requests = await TripLifecycleService.list_requests_by_status(db, ApprovalStatus.APPROVED)
    return _as_list(requests)


@router.get("/{request_id}", response_model=TripRequestResponse)
async def get_trip_request(
    request_id: int = Path(..., description="Trip request ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get one request. Employees see only their own; managers see all.
    """
    trip_request = await TripLifecycleService.get_request(db, request_id)

    held = set(current_user.get("roles") or [])
    if not held & {role.value for role in MANAGER_ROLES}:
        if not held:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No role assigned. Please contact admin."
            )
        enforce_owner(trip_request.employee_id, current_user, "trip request")

    return TripRequestResponse.model_validate(trip_request)


@router.post("/{request_id}/approve", response_model=TripRequestResponse)
async def approve_trip_request(
    request_id: int = Path(..., description="Trip request ID"),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    pending -> approved. The vehicle is assigned in a separate step.
    """
    trip_request = await TripLifecycleService.approve(db, request_id, current_user["user_id"])
    return TripRequestResponse.model_validate(trip_request)


@router.post("/{request_id}/reject", response_model=TripRequestResponse)
async def reject_trip_request(
    request_id: int = Path(..., description="Trip request ID"),
    body: RejectRequest = Body(...),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    pending -> rejected, with a reason shown to the employee.
    """
    trip_request = await TripLifecycleService.reject(db, request_id, current_user["user_id"], body.reason)
    return TripRequestResponse.model_validate(trip_request)


@router.post("/{request_id}/assign", response_model=TripRequestResponse)
async def assign_vehicle(
    request_id: int = Path(..., description="Trip request ID"),
    body: AssignVehicleRequest = Body(...),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    approved -> assigned, binding an available vehicle.

    Returns 409 if the vehicle was taken meanwhile; pick another one.
    """
    trip_request = await TripLifecycleService.assign_vehicle(
        db, request_id, current_user["user_id"], body.vehicle_id
    )
    return TripRequestResponse.model_validate(trip_request)
