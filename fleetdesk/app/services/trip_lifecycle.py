"""
Trip lifecycle coordinator.

Owns every state change of a trip request and its trip:

    request:  pending -> approved -> assigned
              pending -> rejected
    trip:     (none) -> active -> completed

Each transition is a conditional UPDATE on the expected current state, so a
transition can never skip or reverse even when two callers race. Writes that
belong together (request + vehicle claim, trip completion + vehicle release)
share one commit. Photos are uploaded before the database write; if the
write fails the photo is deleted again.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.app.core.config import settings
from fleetdesk.app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidTransitionError,
    ResourceNotFoundError,
    StorageError,
    TripWriteError,
    ValidationFailedError,
    VehicleUnavailableError,
)
from fleetdesk.app.models.enums import ApprovalStatus
from fleetdesk.app.models.trip import Trip
from fleetdesk.app.models.trip_enums import TripStatus
from fleetdesk.app.models.trip_request import TripRequest
from fleetdesk.app.models.vehicle import Vehicle
from fleetdesk.app.schemas.trip import TripEvidence
from fleetdesk.app.schemas.trip_request import TripRequestCreate
from fleetdesk.app.services.photo_pipeline import StoredPhoto, upload_meter_photo
from fleetdesk.app.services.vehicle_assignment import claim_vehicle, release_vehicle

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TripLifecycleService:

    # Queries

    @staticmethod
    async def get_request(db: AsyncSession, request_id: int) -> TripRequest:
        result = await db.execute(
            select(TripRequest)
            .where(TripRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if not request:
            raise ResourceNotFoundError("Trip request", request_id)
        return request

    @staticmethod
    async def list_requests_for_employee(db: AsyncSession, employee_id: int) -> List[TripRequest]:
        """An employee's own requests, newest first."""
        result = await db.execute(
            select(TripRequest)
            .where(TripRequest.employee_id == employee_id)
            .order_by(TripRequest.created_at.desc(), TripRequest.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_requests_by_status(db: AsyncSession, status: ApprovalStatus) -> List[TripRequest]:
        """Manager queues: oldest first, no priorities."""
        result = await db.execute(
            select(TripRequest)
            .where(TripRequest.approval_status == status)
            .order_by(TripRequest.created_at.asc(), TripRequest.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_trip_for_request(db: AsyncSession, request_id: int) -> Optional[Trip]:
        result = await db.execute(
            select(Trip)
            .where(Trip.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_active_trips(db: AsyncSession) -> List[Trip]:
        """Trips on the road, most recently started first."""
        result = await db.execute(
            select(Trip)
            .where(Trip.status == TripStatus.ACTIVE)
            .order_by(Trip.start_time.desc(), Trip.id.desc())
        )
        return list(result.scalars().all())

    # Request layer

    @staticmethod
    async def create_request(db: AsyncSession, employee_id: int, data: TripRequestCreate) -> TripRequest:
        destination = data.destination.strip()
        purpose = data.purpose.strip()
        if not destination or not purpose:
            raise ValidationFailedError("Destination and purpose are required")

        request = TripRequest(
            employee_id=employee_id,
            vehicle_id=None,
            destination=destination,
            purpose=purpose,
            expected_time=data.expected_time,
            approval_status=ApprovalStatus.PENDING,
        )
        db.add(request)
        await db.commit()

        logger.info("Trip request %s created by employee %s", request.id, employee_id)
        return await TripLifecycleService.get_request(db, request.id)

    @staticmethod
    async def _transition_request(
        db: AsyncSession,
        request_id: int,
        expected: ApprovalStatus,
        action: str,
        **values,
    ) -> None:
        """UPDATE the request only if it is still in ``expected``; 409 otherwise."""
        result = await db.execute(
            update(TripRequest)
            .where(TripRequest.id == request_id, TripRequest.approval_status == expected)
            .values(**values)
        )
        if result.rowcount != 1:
            await db.rollback()
            current = await TripLifecycleService.get_request(db, request_id)
            raise InvalidTransitionError("trip request", current.approval_status.value, action)

    @staticmethod
    async def approve(db: AsyncSession, request_id: int, manager_id: int) -> TripRequest:
        """pending -> approved; records approver and time. No vehicle side effect."""
        request = await TripLifecycleService.get_request(db, request_id)
        if request.approval_status != ApprovalStatus.PENDING:
            raise InvalidTransitionError("trip request", request.approval_status.value, "approve")

        await TripLifecycleService._transition_request(
            db, request_id, ApprovalStatus.PENDING, "approve",
            approval_status=ApprovalStatus.APPROVED,
            approved_by=manager_id,
            approved_at=_now(),
        )
        await db.commit()

        logger.info("Trip request %s approved by %s", request_id, manager_id)
        return await TripLifecycleService.get_request(db, request_id)

    @staticmethod
    async def reject(db: AsyncSession, request_id: int, manager_id: int, reason: str) -> TripRequest:
        """pending -> rejected (terminal). The reason must not be blank."""
        if reason is None or not reason.strip():
            raise ValidationFailedError("Please provide a rejection reason")

        request = await TripLifecycleService.get_request(db, request_id)
        if request.approval_status != ApprovalStatus.PENDING:
            raise InvalidTransitionError("trip request", request.approval_status.value, "reject")

        await TripLifecycleService._transition_request(
            db, request_id, ApprovalStatus.PENDING, "reject",
            approval_status=ApprovalStatus.REJECTED,
            approved_by=manager_id,
            approved_at=_now(),
            rejection_reason=reason.strip(),
        )
        await db.commit()

        logger.info("Trip request %s rejected by %s", request_id, manager_id)
        return await TripLifecycleService.get_request(db, request_id)

    @staticmethod
    async def assign_vehicle(db: AsyncSession, request_id: int, manager_id: int, vehicle_id: int) -> TripRequest:
        """
        approved -> assigned, binding a vehicle that is available right now.

        The vehicle claim and the request update commit together. If another
        manager took the vehicle first, VehicleUnavailableError tells the
        caller to pick again; nothing is retried.
        """
        request = await TripLifecycleService.get_request(db, request_id)
        if request.approval_status != ApprovalStatus.APPROVED:
            raise InvalidTransitionError("trip request", request.approval_status.value, "assign a vehicle to")

        vehicle = await db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)

        if not await claim_vehicle(db, vehicle_id):
            await db.rollback()
            raise VehicleUnavailableError(vehicle_id)

        await TripLifecycleService._transition_request(
            db, request_id, ApprovalStatus.APPROVED, "assign a vehicle to",
            approval_status=ApprovalStatus.ASSIGNED,
            vehicle_id=vehicle_id,
        )
        await db.commit()

        logger.info("Vehicle %s assigned to trip request %s by %s", vehicle_id, request_id, manager_id)
        return await TripLifecycleService.get_request(db, request_id)

    # Trip layer

    @staticmethod
    async def _discard_photo(store, photo: StoredPhoto) -> None:
        """Compensate an upload whose database write did not land."""
        try:
            await store.delete(photo.bucket, photo.path)
            logger.info("Removed orphaned meter photo %s/%s", photo.bucket, photo.path)
        except StorageError:
            logger.error("Orphaned meter photo left in storage: %s/%s", photo.bucket, photo.path)

    @staticmethod
    def _check_reading(reading: float) -> None:
        if reading is None:
            raise ValidationFailedError("Please upload meter photo and enter reading")
        if not math.isfinite(reading):
            raise ValidationFailedError("Meter reading must be a number")
        if reading < 0:
            raise ValidationFailedError("Meter reading cannot be negative")

    @staticmethod
    async def start_trip(db: AsyncSession, store, request_id: int, employee_id: int, evidence: TripEvidence) -> Trip:
        """
        Create the active trip for an assigned request.

        Order: checks -> photo compression and upload -> trip insert. A failure
        at any step leaves no trip; an uploaded photo is removed again.
        """
        TripLifecycleService._check_reading(evidence.reading)

        request = await TripLifecycleService.get_request(db, request_id)
        if request.employee_id != employee_id:
            raise InsufficientPermissionsError("This trip request does not belong to you")
        if request.approval_status != ApprovalStatus.ASSIGNED:
            raise InvalidTransitionError("trip request", request.approval_status.value, "start a trip for")

        existing = await TripLifecycleService.get_trip_for_request(db, request_id)
        if existing:
            raise InvalidTransitionError("trip", existing.status.value, "start")

        photo = await upload_meter_photo(store, evidence.photo, employee_id, request_id, "start")

        trip = Trip(
            request_id=request_id,
            employee_id=employee_id,
            vehicle_id=request.vehicle_id,
            status=TripStatus.ACTIVE,
            start_time=_now(),
            start_reading=evidence.reading,
            start_meter_photo=photo.url,
            start_location_lat=evidence.location.latitude,
            start_location_lng=evidence.location.longitude,
        )
        db.add(trip)
        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            await TripLifecycleService._discard_photo(store, photo)
            # Only a trip that already exists for this request means "started twice"
            if isinstance(exc, IntegrityError):
                started = await db.execute(select(Trip.id).where(Trip.request_id == request_id))
                if started.scalar_one_or_none() is not None:
                    raise InvalidTransitionError("trip", TripStatus.ACTIVE.value, "start") from exc
            logger.error("Trip start for request %s not saved: %s", request_id, exc)
            raise TripWriteError() from exc

        logger.info("Trip %s started for request %s (reading %s)", trip.id, request_id, evidence.reading)
        return await TripLifecycleService.get_trip_for_request(db, request_id)

    @staticmethod
    async def end_trip(db: AsyncSession, store, request_id: int, employee_id: int, evidence: TripEvidence) -> Trip:
        """
        Complete the active trip and hand the vehicle back.

        distance = end reading - start reading. Trip completion and vehicle
        release commit together.
        """
        TripLifecycleService._check_reading(evidence.reading)

        request = await TripLifecycleService.get_request(db, request_id)
        if request.employee_id != employee_id:
            raise InsufficientPermissionsError("This trip request does not belong to you")

        trip = await TripLifecycleService.get_trip_for_request(db, request_id)
        if not trip:
            raise ResourceNotFoundError("Trip for request", request_id)
        if trip.status != TripStatus.ACTIVE:
            raise InvalidTransitionError("trip", trip.status.value, "end")

        distance = evidence.reading - trip.start_reading
        if distance < 0:
            if settings.reject_negative_distance:
                raise ValidationFailedError(
                    "End reading cannot be lower than start reading",
                    details={"start_reading": trip.start_reading, "end_reading": evidence.reading},
                )
            logger.warning(
                "Trip %s ends with negative distance %.2f (start %s, end %s)",
                trip.id, distance, trip.start_reading, evidence.reading,
            )

        photo = await upload_meter_photo(store, evidence.photo, employee_id, request_id, "end")

        try:
            result = await db.execute(
                update(Trip)
                .where(Trip.id == trip.id, Trip.status == TripStatus.ACTIVE)
                .values(
                    status=TripStatus.COMPLETED,
                    end_time=_now(),
                    end_reading=evidence.reading,
                    end_meter_photo=photo.url,
                    end_location_lat=evidence.location.latitude,
                    end_location_lng=evidence.location.longitude,
                    distance=distance,
                )
            )
            if result.rowcount != 1:
                await db.rollback()
                await TripLifecycleService._discard_photo(store, photo)
                raise InvalidTransitionError("trip", TripStatus.COMPLETED.value, "end")

            if not await release_vehicle(db, trip.vehicle_id):
                logger.warning("Vehicle %s was not in use when trip %s ended", trip.vehicle_id, trip.id)

            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            await TripLifecycleService._discard_photo(store, photo)
            logger.error("Trip end for request %s not saved: %s", request_id, exc)
            raise TripWriteError() from exc

        logger.info("Trip %s completed, distance %.2f km", trip.id, distance)
        return await TripLifecycleService.get_trip_for_request(db, request_id)
