"""
==============================================================================
Package Booking Service Module
==============================================================================

Books a package for a customer after a single consistent availability
decision.

This module implements:
- BookingLockRegistry: process-wide locks keyed by (package, date) and
  (staff, date)
- PackageBookingService: the booking orchestrator

Booking Pipeline:
----------------

    ┌─────────────┐   ┌──────────────────┐   ┌───────────────────┐
    │ LoadPackage │──▶│ Active & Salon   │──▶│ CheckAvailability │
    │ FOR UPDATE  │   │ match            │   │ (rules 1-7)       │
    └─────────────┘   └──────────────────┘   └─────────┬─────────┘
                                                       │
                      ┌──────────────────┐   ┌─────────▼─────────┐
                      │ Persist Booking  │◀──│ CheckStaffConflict│
                      │ + PackageBooking │   │ (when staff given)│
                      └────────┬─────────┘   └───────────────────┘
                               │ commit
                               ▼
                      increment booking_count (failure logged only)

Consistency:
-----------
Everything from LoadPackage to commit runs in one transaction while holding
the keyed locks, acquired in sorted key order. Two requests for the same
package and date, or the same staff member and date, are therefore
serialized, so neither the daily cap nor a staff interval can be
oversubscribed by a concurrent booking. On backends that support it the
package row is also read FOR UPDATE, which extends the guarantee across
processes for the package key.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salon_packages.config import Settings, get_settings
from salon_packages.core import exceptions
from salon_packages.db.models import (
    Booking,
    BookingStatus,
    PackageBooking,
    Salon,
    ServicePackage,
)
from salon_packages.schemas.booking import PackageBookingRequest
from salon_packages.services.package_service import PackageService
from salon_packages.services.staff_conflict import StaffAvailability, StaffConflictChecker
from salon_packages.utils.timekeeping import OperationalClock, utc_now


# Module logger
logger = logging.getLogger(__name__)


PAYMENT_METHOD = "pay_now"

LockKey = Tuple[str, str, str]


class BookingLockRegistry:
    """
    Reference-counted locks keyed by (scope, id, date).

    Locks are created on first use and dropped once no holder or waiter
    remains.

    Example:
        >>> registry = BookingLockRegistry()
        >>> with registry.hold(("package", package_id, "2024-03-16")):
        ...     ...
    """

    _instance: Optional[BookingLockRegistry] = None

    def __new__(cls) -> BookingLockRegistry:
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, '_initialized', False):
            return

        self._guard = threading.Lock()
        self._locks: Dict[LockKey, threading.Lock] = {}
        self._users: Dict[LockKey, int] = {}
        self._initialized = True

    def _checkout(self, key: LockKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: LockKey) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        """Acquire every key's lock in sorted order; release in reverse."""
        ordered = sorted(set(keys))
        locks = [(key, self._checkout(key)) for key in ordered]
        acquired: List[threading.Lock] = []

        try:
            for _, lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key, _ in locks:
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class PackageBookingService:
    """
    Booking orchestrator for service packages.

    Attributes:
        _db: Database session
        _settings: Application settings
        _packages: PackageService used for the availability decision
        _staff_checker: Staff conflict checker
        _locks: Keyed lock registry

    Example:
        >>> service = PackageBookingService(db_session)
        >>> booking, package_booking = service.book_package(request)
        >>> package_booking.savings_paisa
        30000
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        clock: Optional[OperationalClock] = None,
        locks: Optional[BookingLockRegistry] = None
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._packages = PackageService(db, self._settings, clock)
        self._staff_checker = StaffConflictChecker(db, self._settings)
        self._locks = locks or BookingLockRegistry()

    # =========================================================================
    # BOOKING
    # =========================================================================

    def book_package(self, request: PackageBookingRequest) -> Tuple[Booking, PackageBooking]:
        """
        Book a package.

        Nothing is written when any check fails.

        Returns:
            Tuple of (Booking, PackageBooking)

        Raises:
            AppException: PACKAGE_NOT_FOUND, PACKAGE_INACTIVE, SALON_MISMATCH,
                any availability code, STAFF_NOT_FOUND, STAFF_INACTIVE,
                STAFF_CONFLICT, INVALID_COMPOSITION, STORAGE_ERROR
        """
        keys = [("package", request.package_id, request.booking_date)]
        if request.staff_id:
            keys.append(("staff", request.staff_id, request.booking_date))

        with self._locks.hold(*keys):
            try:
                booking, package_booking = self._book_locked(request)
            except exceptions.AppException as e:
                self._db.rollback()
                logger.warning(
                    f"⚠️ Package booking rejected: package={request.package_id} "
                    f"date={request.booking_date} time={request.booking_time} "
                    f"code={e.code} reason={e.message}"
                )
                raise
            except SQLAlchemyError:
                self._db.rollback()
                logger.exception(f"Failed to book package {request.package_id}")
                raise exceptions.storage_error("book package")

        self._increment_booking_count(request.package_id)

        logger.info(
            f"✅ Package booked: {booking.id} package={request.package_id} "
            f"{request.booking_date} {request.booking_time} "
            f"staff={request.staff_id or '-'} savings={package_booking.savings_paisa}"
        )
        return booking, package_booking

    def _book_locked(self, request: PackageBookingRequest) -> Tuple[Booking, PackageBooking]:
        package = self._db.query(ServicePackage).options(
            selectinload(ServicePackage.entries)
        ).filter(
            ServicePackage.id == request.package_id
        ).with_for_update().first()

        if package is None:
            raise exceptions.package_not_found(request.package_id)

        if package.is_active != 1:
            raise exceptions.package_inactive(package.id)

        if package.salon_id != request.salon_id:
            raise exceptions.salon_mismatch(package.id, request.salon_id)

        decision = self._packages.decide(package, request.booking_date, request.booking_time)
        if not decision.available:
            raise exceptions.availability_rejected(
                decision.code,
                decision.reason,
                {"package_id": package.id}
            )

        instances = package.total_service_instances
        if instances < self._settings.min_service_instances:
            raise exceptions.invalid_composition(self._settings.min_service_instances, instances)

        if request.staff_id:
            staff_result = self._staff_checker.check(
                request.staff_id,
                request.booking_date,
                request.booking_time,
                package.total_duration_minutes
            )
            if not staff_result.available:
                raise self._staff_rejection(request.staff_id, staff_result)

        salon = self._db.get(Salon, request.salon_id)

        booking = Booking(
            salon_id=request.salon_id,
            service_id=package.primary_service_id,
            staff_id=request.staff_id,
            user_id=request.user_id,
            package_id=package.id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            salon_name=salon.name if salon else None,
            booking_date=request.booking_date,
            booking_time=request.booking_time,
            status=BookingStatus.PENDING,
            total_amount_paisa=package.package_price_in_paisa,
            currency=package.currency,
            payment_method=PAYMENT_METHOD,
            notes=request.notes,
            guest_session_id=request.guest_session_id,
            is_package_booking=1,
        )

        package_booking = PackageBooking(
            booking=booking,
            package_id=package.id,
            salon_id=request.salon_id,
            package_price_at_booking=package.package_price_in_paisa,
            regular_price_at_booking=package.regular_price_in_paisa,
            savings_paisa=package.savings_paisa,
        )

        self._db.add_all([booking, package_booking])
        self._db.commit()

        return booking, package_booking

    @staticmethod
    def _staff_rejection(staff_id: str, result: StaffAvailability) -> exceptions.AppException:
        if result.code == "STAFF_NOT_FOUND":
            return exceptions.staff_not_found(staff_id)
        if result.code == "STAFF_INACTIVE":
            return exceptions.staff_inactive(staff_id)
        return exceptions.staff_conflict(result.conflicting_time)

    def _increment_booking_count(self, package_id: str) -> None:
        """Bump the package's lifetime counter. Failures are logged only."""
        try:
            self._db.execute(
                update(ServicePackage)
                .where(ServicePackage.id == package_id)
                .values(
                    booking_count=ServicePackage.booking_count + 1,
                    updated_at=utc_now()
                )
            )
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"Failed to increment booking count for package {package_id}: {e}")
