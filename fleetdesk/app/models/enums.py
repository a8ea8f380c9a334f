"""
Role and fleet enumerations.

Defines the role labels and vehicle/request states used across FleetDesk.
"""

import enum


class AppRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Provisions accounts, sees everything a manager sees
        VEHICLE_MANAGER: Approves requests, assigns vehicles, runs reports
        EMPLOYEE: Requests vehicles and records trips (default role)
    """
    ADMIN = "admin"
    VEHICLE_MANAGER = "vehicle_manager"
    EMPLOYEE = "employee"


class VehicleStatus(str, enum.Enum):
    """Vehicle availability."""
    AVAILABLE = "available"
    IN_USE = "in_use"  # Bound to an assigned request or active trip
    MAINTENANCE = "maintenance"


class ApprovalStatus(str, enum.Enum):
    """Trip request approval status."""
    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"  # Vehicle bound, trip may start
    REJECTED = "rejected"
