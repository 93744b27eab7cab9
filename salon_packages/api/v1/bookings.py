"""
==============================================================================
Package Booking Endpoints
==============================================================================

Availability checks and package bookings.

==============================================================================
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from salon_packages.core.dependencies import get_operational_clock
from salon_packages.db.database import get_db
from salon_packages.services.booking_service import PackageBookingService
from salon_packages.services.package_service import PackageService
from salon_packages.schemas.booking import (
    AvailabilityResponse,
    PackageBookingDetail,
    PackageBookingRequest,
    PackageBookingResponse,
    validate_booking_date,
    validate_booking_time,
)
from salon_packages.core import exceptions
from salon_packages.utils.timekeeping import OperationalClock


router = APIRouter(prefix="/packages", tags=["Package Bookings"])


class BookingController:
    """Controller for availability and booking operations."""

    def __init__(self, db: Session, clock: OperationalClock):
        self._db = db
        self._clock = clock

    def availability(self, package_id: str, booking_date: str, booking_time: str) -> AvailabilityResponse:
        """Decide availability; a negative decision is not an error."""
        try:
            booking_date = validate_booking_date(booking_date)
            booking_time = validate_booking_time(booking_time)
        except ValueError as e:
            raise exceptions.validation_error(str(e))

        result = PackageService(self._db, clock=self._clock).check_availability(
            package_id, booking_date, booking_time
        )
        return AvailabilityResponse.from_result(package_id, booking_date, booking_time, result)

    def book(self, request: PackageBookingRequest) -> PackageBookingResponse:
        """Book package."""
        service = PackageBookingService(self._db, clock=self._clock)
        booking, package_booking = service.book_package(request)
        return PackageBookingResponse(
            booking=PackageBookingDetail.from_models(booking, package_booking)
        )


@router.get("/{package_id}/availability", response_model=AvailabilityResponse)
async def check_package_availability(
    package_id: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    time: str = Query(..., description="HH:MM (24-hour)"),
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """
    Check whether a package can be booked at a date and time.

    Returns `available: false` with a reason when a rule fails.
    """
    controller = BookingController(db, clock)
    return controller.availability(package_id, date, time)


@router.post(
    "/book",
    response_model=PackageBookingResponse,
    status_code=status.HTTP_201_CREATED
)
def book_package(
    request: PackageBookingRequest,
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """
    Book a package.

    Runs in the worker thread pool so concurrent bookings contend on the
    package/date and staff/date locks.
    """
    controller = BookingController(db, clock)
    return controller.book(request)
