"""
==============================================================================
Package Booking Schemas Module
==============================================================================

Request and response schemas for package availability checks and
package bookings.

==============================================================================
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from salon_packages.db.models import BookingStatus
from salon_packages.utils.currency import format_inr
from salon_packages.utils.validators import BookingDateValidator, TimeOfDayValidator


_date_validator = BookingDateValidator()
_time_validator = TimeOfDayValidator()


def validate_booking_date(value: str) -> str:
    is_valid, normalized, error = _date_validator.validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


def validate_booking_time(value: str) -> str:
    is_valid, normalized, error = _time_validator.validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class PackageBookingRequest(BaseModel):
    """Book a package for a customer at a date and time."""
    package_id: str = Field(..., min_length=1, max_length=36)
    salon_id: str = Field(..., min_length=1, max_length=36)
    staff_id: Optional[str] = Field(default=None, max_length=36)
    booking_date: str
    booking_time: str
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=5, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=1000)
    user_id: Optional[str] = Field(default=None, max_length=36)
    guest_session_id: Optional[str] = Field(default=None, max_length=100)

    @field_validator("booking_date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return validate_booking_date(v)

    @field_validator("booking_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_booking_time(v)

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v

    @field_validator("customer_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        if v:
            v = v.strip()
            return v if v else None
        return None


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class AvailabilityResponse(BaseModel):
    """
    Availability decision for a package at a date and time.

    A negative decision is still a successful response; `reason` says why.
    """
    success: bool = Field(default=True)
    package_id: str
    booking_date: str
    booking_time: str
    available: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    daily_bookings_remaining: Optional[int] = None

    @classmethod
    def from_result(cls, package_id: str, booking_date: str, booking_time: str, result):
        return cls(
            package_id=package_id,
            booking_date=booking_date,
            booking_time=booking_time,
            available=result.available,
            reason=result.reason,
            code=result.code,
            daily_bookings_remaining=result.daily_bookings_remaining
        )


class PackageBookingDetail(BaseModel):
    """Created package booking with its frozen price snapshot."""
    booking_id: str
    package_booking_id: str
    package_id: str
    salon_id: str
    staff_id: Optional[str]
    service_id: Optional[str]
    booking_date: str
    booking_time: str
    status: BookingStatus
    total_amount_paisa: int
    regular_price_at_booking: int
    savings_paisa: int
    savings_formatted: str
    total_amount_formatted: str
    currency: str

    @classmethod
    def from_models(cls, booking, package_booking):
        return cls(
            booking_id=booking.id,
            package_booking_id=package_booking.id,
            package_id=package_booking.package_id,
            salon_id=booking.salon_id,
            staff_id=booking.staff_id,
            service_id=booking.service_id,
            booking_date=booking.booking_date,
            booking_time=booking.booking_time,
            status=booking.status,
            total_amount_paisa=booking.total_amount_paisa,
            regular_price_at_booking=package_booking.regular_price_at_booking,
            savings_paisa=package_booking.savings_paisa,
            savings_formatted=format_inr(package_booking.savings_paisa),
            total_amount_formatted=format_inr(booking.total_amount_paisa),
            currency=booking.currency
        )


class PackageBookingResponse(BaseModel):
    """Package booking response."""
    success: bool = Field(default=True)
    message: str = "Package booked successfully"
    booking: PackageBookingDetail
