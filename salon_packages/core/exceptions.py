"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Package not found", "PACKAGE_NOT_FOUND", 404)
        raise AppException("Staff busy", "STAFF_CONFLICT", 409, {"conflicting_time": "10:15"})

    Error Codes:
        Package definition:
            - INVALID_COMPOSITION (400)
            - SERVICE_NOT_FOUND (400)
            - PRICE_NOT_DISCOUNTED (400)
            - DISCOUNT_TOO_STEEP (400)

        Lookup:
            - PACKAGE_NOT_FOUND (404)
            - STAFF_NOT_FOUND (404)

        Availability:
            - PACKAGE_INACTIVE (400)
            - PACKAGE_NOT_YET_AVAILABLE (400)
            - PACKAGE_EXPIRED (400)
            - DAY_NOT_ALLOWED (400)
            - TIME_WINDOW_VIOLATION (400)
            - INSUFFICIENT_LEAD_TIME (400)
            - DAILY_CAPACITY_REACHED (400)

        Booking:
            - STAFF_INACTIVE (400)
            - STAFF_CONFLICT (409)
            - SALON_MISMATCH (400)

        General:
            - VALIDATION_ERROR (422)
            - STORAGE_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "PACKAGE_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Call this in main.py after creating the FastAPI instance.
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# PACKAGE DEFINITION ERRORS
# ============================================

def invalid_composition(minimum: int = 2, actual: Optional[int] = None) -> AppException:
    """Create too-few-services exception."""
    details = {"minimum_service_instances": minimum}
    if actual is not None:
        details["service_instances"] = actual
    return AppException(
        f"Package must contain at least {minimum} service instances",
        "INVALID_COMPOSITION",
        400,
        details
    )


def services_not_found(service_ids: Iterable[str]) -> AppException:
    """Create missing or inactive services exception."""
    missing = list(service_ids)
    return AppException(
        f"Some services not found or inactive: {', '.join(missing)}",
        "SERVICE_NOT_FOUND",
        400,
        {"service_ids": missing}
    )


def price_not_discounted(package_price: int, regular_price: int) -> AppException:
    """Create package-not-cheaper exception."""
    return AppException(
        "Package price must be less than sum of individual service prices",
        "PRICE_NOT_DISCOUNTED",
        400,
        {
            "package_price_in_paisa": package_price,
            "regular_price_in_paisa": regular_price,
        }
    )


def discount_too_steep(discount: int, ceiling: int = 50) -> AppException:
    """Create discount-over-ceiling exception."""
    return AppException(
        f"Discount cannot exceed {ceiling}%",
        "DISCOUNT_TOO_STEEP",
        400,
        {"discount_percentage": discount, "max_discount_percentage": ceiling}
    )


# ============================================
# LOOKUP ERRORS
# ============================================

def package_not_found(package_id: Optional[str] = None) -> AppException:
    """Create package not found exception."""
    details = {"package_id": package_id} if package_id else {}
    return AppException("Package not found", "PACKAGE_NOT_FOUND", 404, details)


def staff_not_found(staff_id: Optional[str] = None) -> AppException:
    """Create staff not found exception."""
    details = {"staff_id": staff_id} if staff_id else {}
    return AppException("Staff member not found", "STAFF_NOT_FOUND", 404, details)


# ============================================
# BOOKING ERRORS
# ============================================

def availability_rejected(
    code: str,
    reason: str,
    details: Optional[Dict[str, Any]] = None
) -> AppException:
    """
    Create an exception from a failed availability decision.

    The code is one of the availability codes (PACKAGE_INACTIVE,
    PACKAGE_EXPIRED, DAY_NOT_ALLOWED, ...).
    """
    return AppException(reason, code, 400, details)


def package_inactive(package_id: Optional[str] = None) -> AppException:
    """Create package no longer available exception."""
    details = {"package_id": package_id} if package_id else {}
    return AppException("Package is no longer available", "PACKAGE_INACTIVE", 400, details)


def staff_inactive(staff_id: Optional[str] = None) -> AppException:
    """Create inactive staff exception."""
    details = {"staff_id": staff_id} if staff_id else {}
    return AppException("Staff member is not active", "STAFF_INACTIVE", 400, details)


def staff_conflict(conflicting_time: str) -> AppException:
    """Create staff double-booking exception."""
    return AppException(
        f"Staff has another booking from {conflicting_time} that overlaps "
        "with this package duration",
        "STAFF_CONFLICT",
        409,
        {"conflicting_time": conflicting_time}
    )


def salon_mismatch(package_id: str, salon_id: str) -> AppException:
    """Create package-belongs-to-another-salon exception."""
    return AppException(
        "Package does not belong to this salon",
        "SALON_MISMATCH",
        400,
        {"package_id": package_id, "salon_id": salon_id}
    )


# ============================================
# GENERAL ERRORS
# ============================================

def storage_error(operation: str) -> AppException:
    """Create persistence failure exception."""
    return AppException(
        f"Failed to {operation}",
        "STORAGE_ERROR",
        500,
        {"operation": operation}
    )

def validation_error(message: str, details: Optional[Dict[str, Any]] = None) -> AppException:
    """Create request validation exception raised outside pydantic."""
    return AppException(message, "VALIDATION_ERROR", 422, details)
