"""
==============================================================================
Staff Conflict Checker Module
==============================================================================

Detects overlap between a proposed package booking and the staff member's
existing active bookings on the same day.

Intervals are half-open, in minutes since midnight:

    proposed  [start, start + duration)
    existing  [b_start, b_start + b_duration)

    conflict  ⇔  start < b_end  and  end > b_start

Touching intervals (one ends exactly when the other starts) do not
conflict. Existing bookings count while pending or confirmed. Each lasts
its own linked service's duration, or the configured default when it has
no service.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from salon_packages.config import Settings, get_settings
from salon_packages.db.models import Booking, BookingStatus, Service, Staff
from salon_packages.utils.timekeeping import time_to_minutes


# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffAvailability:
    """Outcome of a staff conflict check."""
    available: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    conflicting_time: Optional[str] = None

    @classmethod
    def ok(cls) -> "StaffAvailability":
        return cls(True)


def intervals_overlap(start: int, end: int, other_start: int, other_end: int) -> bool:
    return start < other_end and end > other_start


class StaffConflictChecker:
    """
    Staff double-booking detector.

    Attributes:
        _db: Database session
        _default_duration: Minutes assumed when a booking's duration is unknown

    Example:
        >>> checker = StaffConflictChecker(db_session)
        >>> checker.check(staff_id, "2024-03-16", "10:15", 60).available
        False
    """

    ACTIVE_STATUSES = tuple(status for status in BookingStatus if status.occupies_staff)

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._db = db
        self._default_duration = settings.default_service_duration_minutes

    def check(
        self,
        staff_id: str,
        booking_date: str,
        booking_time: str,
        duration_minutes: int
    ) -> StaffAvailability:
        """
        Check whether the staff member is free for the whole duration.

        Returns a negative StaffAvailability with code STAFF_NOT_FOUND,
        STAFF_INACTIVE or STAFF_CONFLICT; the first conflicting booking found
        is reported.
        """
        staff = self._db.query(Staff).filter(Staff.id == staff_id).first()

        if staff is None:
            return StaffAvailability(False, "Staff member not found", "STAFF_NOT_FOUND")

        if staff.is_active != 1:
            return StaffAvailability(False, "Staff member is not active", "STAFF_INACTIVE")

        start = time_to_minutes(booking_time)
        end = start + duration_minutes

        for existing_time, existing_duration in self._active_bookings(staff_id, booking_date):
            existing_start = time_to_minutes(existing_time)
            existing_end = existing_start + existing_duration

            if intervals_overlap(start, end, existing_start, existing_end):
                logger.debug(
                    f"Staff {staff_id} conflict on {booking_date}: "
                    f"[{start},{end}) vs [{existing_start},{existing_end})"
                )
                return StaffAvailability(
                    False,
                    f"Staff has another booking from {existing_time} that overlaps "
                    "with this package duration",
                    "STAFF_CONFLICT",
                    existing_time
                )

        return StaffAvailability.ok()

    def _active_bookings(self, staff_id: str, booking_date: str) -> List[Tuple[str, int]]:
        """Load (booking_time, duration) for the staff's active bookings on a date."""
        rows = self._db.query(
            Booking.booking_time,
            Service.duration_minutes,
        ).outerjoin(
            Service, Booking.service_id == Service.id
        ).filter(
            Booking.staff_id == staff_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(self.ACTIVE_STATUSES)
        ).order_by(Booking.booking_time).all()

        return [
            (booking_time, service_duration or self._default_duration)
            for booking_time, service_duration in rows
        ]
