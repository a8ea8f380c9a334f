"""
Vehicle claim and release.

Vehicle.status is the one row several managers contend for. Claims are a
conditional UPDATE so two managers cannot both bind the same vehicle.
"""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.models.enums import VehicleStatus
from fleetdesk.app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


async def claim_vehicle(db: AsyncSession, vehicle_id: int) -> bool:
    """
    Flip a vehicle from available to in_use.

    Executes ``UPDATE vehicles SET status='in_use' WHERE id=:id AND
    status='available'`` inside the caller's transaction.

    Returns:
        True if exactly one row changed, False if the vehicle was not available
    """
    result = await db.execute(
        update(Vehicle)
        .where(Vehicle.id == vehicle_id, Vehicle.status == VehicleStatus.AVAILABLE)
        .values(status=VehicleStatus.IN_USE)
    )
    claimed = result.rowcount == 1
    if not claimed:
        logger.info("Vehicle %s could not be claimed (not available)", vehicle_id)
    return claimed


async def release_vehicle(db: AsyncSession, vehicle_id: int) -> bool:
    """
    Return an in_use vehicle to available.

    Vehicles moved to maintenance meanwhile are left alone.

    Returns:
        True if the vehicle was released
    """
    result = await db.execute(
        update(Vehicle)
        .where(Vehicle.id == vehicle_id, Vehicle.status == VehicleStatus.IN_USE)
        .values(status=VehicleStatus.AVAILABLE)
    )
    return result.rowcount == 1
