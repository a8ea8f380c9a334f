"""
Custom exceptions and error handlers for consistent error responses.

Every error leaves the API as ``{"error_code", "error", "details"}`` so clients
can always show ``error`` in a notification.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TokenRevokedError(AppException):
    """Raised when token has been revoked by sign-out."""

    def __init__(self):
        super().__init__(
            message="Session has ended, please sign in again",
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ValidationFailedError(AppException):
    """Raised when input is rejected before any mutation happens."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InvalidTransitionError(AppException):
    """Raised when a request or trip is not in the state an operation needs."""

    def __init__(self, entity: str, current: str, action: str):
        super().__init__(
            message=f"Cannot {action} {entity} in status '{current}'",
            error_code="ERR_STATE_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"entity": entity, "current_status": current, "action": action}
        )


class VehicleUnavailableError(AppException):
    """Raised when the chosen vehicle was taken before the assignment landed."""

    def __init__(self, vehicle_id: int):
        super().__init__(
            message="Vehicle is no longer available, please select another vehicle",
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"vehicle_id": vehicle_id}
        )


class PhotoProcessingError(AppException):
    """Raised when an odometer photo is not an acceptable image."""

    def __init__(self, message: str = "Failed to compress image. Please try again."):
        super().__init__(
            message=message,
            error_code="ERR_PHOTO_001",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class StorageError(AppException):
    """Raised when the object store rejects an upload or delete."""

    def __init__(self, message: str = "Failed to upload photo"):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_502_BAD_GATEWAY
        )


class TripWriteError(AppException):
    """Raised when a trip start or end could not be saved."""

    def __init__(self, message: str = "Failed to save trip. Please try again."):
        super().__init__(
            message=message,
            error_code="ERR_TRIP_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class ProvisioningFailedError(AppException):
    """Raised when the store rejects the account writes."""

    def __init__(self, message: str = "Failed to create user"):
        super().__init__(
            message=message,
            error_code="ERR_PROVISION_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class SignOutFailedError(AppException):
    """Raised when the token blacklist cannot be written."""

    def __init__(self, message: str = "Could not sign out, please retry"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_003",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "error": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "error": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "error": "Validation error",
            "details": {
                "errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                    for err in exc.errors()
                ]
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "error": "An internal server error occurred",
            "details": {}
        }
    )
