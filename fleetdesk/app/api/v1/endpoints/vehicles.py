"""
Vehicle API Endpoints.

Managers and admins maintain the fleet. ``in_use`` is never set by hand; it
follows vehicle assignment and trip completion.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from fleetdesk.app.db.session import get_db
from fleetdesk.app.models.vehicle import Vehicle
from fleetdesk.app.models.enums import VehicleStatus
from fleetdesk.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
)
from fleetdesk.app.core.dependencies import get_current_user
from fleetdesk.app.core.guards import require_role
from fleetdesk.app.core.roles import MANAGER_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])

MANUAL_STATUSES = {VehicleStatus.AVAILABLE, VehicleStatus.MAINTENANCE}


def _check_manual_status(new_status: Optional[VehicleStatus]) -> None:
    if new_status is not None and new_status not in MANUAL_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vehicle status can only be set to available or maintenance"
        )


async def _plate_taken(db: AsyncSession, number_plate: str, exclude_id: int = None) -> bool:
    query = select(Vehicle.id).where(Vehicle.number_plate == number_plate)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def _get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.id == vehicle_id)
        .execution_options(populate_existing=True)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found"
        )
    return vehicle


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    vehicle_status: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List vehicles ordered by name.
    """
    query = select(Vehicle)
    if vehicle_status:
        query = query.where(Vehicle.status == vehicle_status)
    query = query.order_by(Vehicle.name.asc(), Vehicle.id.asc())

    result = await db.execute(query)
    vehicles = result.scalars().all()

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.get("/available", response_model=VehicleListResponse)
async def list_available_vehicles(
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Vehicles that can be assigned right now.
    """
    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.status == VehicleStatus.AVAILABLE)
        .order_by(Vehicle.name.asc(), Vehicle.id.asc())
    )
    vehicles = result.scalars().all()

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle.

    Validates:
    - Number plate is unique
    - Initial status is available or maintenance
    """
    _check_manual_status(vehicle_data.status)

    number_plate = vehicle_data.number_plate.strip()
    if await _plate_taken(db, number_plate):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Vehicle with number plate '{number_plate}' already exists"
        )

    vehicle = Vehicle(
        name=vehicle_data.name.strip(),
        number_plate=number_plate,
        description=vehicle_data.description,
        status=vehicle_data.status,
    )
    db.add(vehicle)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Vehicle with number plate '{number_plate}' already exists"
        )

    logger.info("Vehicle %s (%s) registered by %s", vehicle.id, number_plate, current_user["user_id"])
    return VehicleResponse.model_validate(await _get_vehicle(db, vehicle.id))


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Update vehicle details.

    A vehicle on a trip keeps its in_use status; only idle vehicles can be
    moved between available and maintenance.
    """
    vehicle = await _get_vehicle(db, vehicle_id)
    updates = vehicle_data.model_dump(exclude_unset=True)

    if "status" in updates:
        _check_manual_status(updates["status"])
        if vehicle.status == VehicleStatus.IN_USE and updates["status"] != VehicleStatus.IN_USE:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Vehicle is in use and cannot change status until the trip ends"
            )

    if updates.get("number_plate"):
        updates["number_plate"] = updates["number_plate"].strip()
        if await _plate_taken(db, updates["number_plate"], exclude_id=vehicle_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Vehicle with number plate '{updates['number_plate']}' already exists"
            )

    for field, value in updates.items():
        if value is not None:
            setattr(vehicle, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vehicle with this number plate already exists"
        )

    return VehicleResponse.model_validate(await _get_vehicle(db, vehicle_id))


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_role(MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a vehicle from the fleet. Vehicles on a trip cannot be removed.
    """
    vehicle = await _get_vehicle(db, vehicle_id)

    if vehicle.status == VehicleStatus.IN_USE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle is in use and cannot be deleted"
        )

    await db.delete(vehicle)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle has trip history and cannot be deleted"
        )

    logger.info("Vehicle %s deleted by %s", vehicle_id, current_user["user_id"])
