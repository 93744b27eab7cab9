"""
==============================================================================
Package Booking Tests
==============================================================================

Tests for the booking orchestrator and its keyed locks.

==============================================================================
"""

import threading
import time

import pytest
from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from salon_packages.config import Settings
from salon_packages.core.exceptions import AppException
from salon_packages.db.database import Base, build_engine
from salon_packages.db.models import (
    Booking,
    BookingStatus,
    PackageBooking,
    Salon,
    Service,
    ServicePackage,
    Staff,
)
from salon_packages.schemas.booking import PackageBookingRequest
from salon_packages.schemas.package import PackageCreate, PackageUpdate
from salon_packages.services.booking_service import BookingLockRegistry, PackageBookingService
from salon_packages.services.package_service import PackageService

from conftest import MONDAY, SATURDAY, booking_payload


@pytest.fixture
def booking_service(db, clock) -> PackageBookingService:
    return PackageBookingService(db, clock=clock)


def _request(package, **overrides) -> PackageBookingRequest:
    return PackageBookingRequest(**booking_payload(package, **overrides))


class TestBookPackage:
    """Tests for successful package bookings."""

    def test_booking_created(self, db, booking_service, package, services):
        """Test booking and snapshot rows are written."""
        booking, package_booking = booking_service.book_package(_request(package))

        assert booking.status == BookingStatus.PENDING
        assert booking.is_package_booking == 1
        assert booking.package_id == package.id
        assert booking.service_id == services[0].id
        assert booking.total_amount_paisa == 120000
        assert booking.payment_method == "pay_now"
        assert booking.salon_name == "Glow Studio"
        assert booking.customer_email == "priya@example.com"
        assert booking.booking_date == SATURDAY
        assert booking.booking_time == "10:15"

        assert package_booking.booking_id == booking.id
        assert package_booking.package_price_at_booking == 120000
        assert package_booking.regular_price_at_booking == 150000
        assert package_booking.savings_paisa == 30000

    def test_booking_count_incremented(self, db, booking_service, package):
        """Test the lifetime counter grows with each booking."""
        booking_service.book_package(_request(package))
        booking_service.book_package(_request(package, booking_time="15:00"))

        db.expire_all()
        assert db.get(ServicePackage, package.id).booking_count == 2

    def test_booking_with_staff(self, booking_service, package, staff):
        booking, _ = booking_service.book_package(_request(package, staff_id=staff.id))
        assert booking.staff_id == staff.id

    def test_snapshot_survives_price_change(
        self, db, booking_service, package, package_service
    ):
        """Test later package edits do not alter the booking snapshot."""
        _, package_booking = booking_service.book_package(_request(package))

        package_service.update_package(
            package.id,
            package.salon_id,
            PackageUpdate(package_price_in_paisa=100000)
        )

        db.expire_all()
        snapshot = db.get(PackageBooking, package_booking.id)
        assert snapshot.package_price_at_booking == 120000
        assert snapshot.savings_paisa == 30000


class TestBookingRejections:
    """Tests for bookings that must write nothing."""

    def _assert_nothing_written(self, db):
        assert db.query(Booking).count() == 0
        assert db.query(PackageBooking).count() == 0

    def test_unknown_package(self, db, booking_service, package):
        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package, package_id="missing"))
        assert exc_info.value.code == "PACKAGE_NOT_FOUND"
        assert exc_info.value.status_code == 404
        self._assert_nothing_written(db)

    def test_inactive_package(self, db, booking_service, package, package_service):
        package_service.deactivate_package(package.id, package.salon_id)

        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package))
        assert exc_info.value.code == "PACKAGE_INACTIVE"
        assert exc_info.value.message == "Package is no longer available"
        self._assert_nothing_written(db)

    def test_salon_mismatch(self, db, booking_service, package, other_salon):
        """Test a package cannot be booked through another salon."""
        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package, salon_id=other_salon.id))
        assert exc_info.value.code == "SALON_MISMATCH"
        self._assert_nothing_written(db)

    def test_availability_rule_rejection(self, db, booking_service, make_package):
        """Test availability failures surface with their own code."""
        package = make_package(available_days=["Sat", "Sun"])

        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package, booking_date=MONDAY))
        assert exc_info.value.code == "DAY_NOT_ALLOWED"
        assert exc_info.value.status_code == 400
        self._assert_nothing_written(db)

    def test_daily_capacity(self, db, booking_service, make_package):
        """Test the cap blocks the next booking on the same date."""
        package = make_package(max_bookings_per_day=1)
        booking_service.book_package(_request(package))

        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package, booking_time="16:00"))
        assert exc_info.value.code == "DAILY_CAPACITY_REACHED"
        assert db.query(Booking).count() == 1

    def test_unknown_staff(self, db, booking_service, package):
        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package, staff_id="missing"))
        assert exc_info.value.code == "STAFF_NOT_FOUND"
        assert exc_info.value.status_code == 404
        self._assert_nothing_written(db)

    def test_staff_conflict(self, db, booking_service, package, staff):
        """Test a second package starting inside the first booking's service conflicts."""
        booking_service.book_package(_request(package, staff_id=staff.id, booking_time="10:00"))

        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(
                _request(package, staff_id=staff.id, booking_time="10:30")
            )
        assert exc_info.value.code == "STAFF_CONFLICT"
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["conflicting_time"] == "10:00"
        assert db.query(Booking).count() == 1

    def test_staff_free_after_representative_service_ends(self, booking_service, package, staff):
        """Test an existing package booking occupies its linked service's 60 minutes."""
        booking_service.book_package(_request(package, staff_id=staff.id, booking_time="10:00"))
        booking, _ = booking_service.book_package(
            _request(package, staff_id=staff.id, booking_time="11:00")
        )
        assert booking.booking_time == "11:00"

    def test_storage_failure(self, db, booking_service, package, fail_table):
        """Test a failed insert is a storage error and rolls back the booking row."""
        fail_table("package_bookings")

        with pytest.raises(AppException) as exc_info:
            booking_service.book_package(_request(package))
        assert exc_info.value.code == "STORAGE_ERROR"
        assert exc_info.value.status_code == 500
        assert db.query(Booking).count() == 0


class TestBookingRequest:
    """Tests for booking request validation."""

    def test_email_lowercased(self, package):
        request = _request(package, customer_email="Priya.Sharma@Example.COM")
        assert request.customer_email == "priya.sharma@example.com"

    @pytest.mark.parametrize(
        "email", ["priya", "priya@", "priya sharma@example.com", "priya@@example.com"]
    )
    def test_invalid_email_rejected(self, package, email):
        with pytest.raises(ValidationError):
            _request(package, customer_email=email)


class TestBookingLockRegistry:
    """Tests for the keyed booking locks."""

    def test_singleton(self):
        assert BookingLockRegistry() is BookingLockRegistry()

    def test_locks_released(self):
        """Test locks are dropped once no holder remains."""
        registry = BookingLockRegistry()
        before = len(registry)

        with registry.hold(("package", "p1", SATURDAY), ("staff", "s1", SATURDAY)):
            assert len(registry) == before + 2

        assert len(registry) == before

    def test_released_on_error(self):
        registry = BookingLockRegistry()
        before = len(registry)

        with pytest.raises(RuntimeError):
            with registry.hold(("package", "p2", SATURDAY)):
                raise RuntimeError("boom")

        assert len(registry) == before

    def test_same_key_serialized(self):
        """Test two holders of the same key never interleave."""
        registry = BookingLockRegistry()
        counter = {"value": 0}

        def worker():
            with registry.hold(("package", "p3", SATURDAY)):
                current = counter["value"]
                time.sleep(0.02)
                counter["value"] = current + 1

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter["value"] == 4


# ============================================================================
# CONCURRENT BOOKINGS
# ============================================================================

@pytest.fixture
def session_factory(tmp_path):
    """Sessions over a file-backed SQLite database shared by worker threads."""
    engine = build_engine(Settings(database_url=f"sqlite:///{tmp_path / 'bookings.db'}"))
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

    engine.dispose()


def _seed(session_factory, clock, package_count=1, **package_fields):
    """Create a salon, two services, a stylist and packages. Returns (packages, staff)."""
    with session_factory() as session:
        salon = Salon(name="Glow Studio")
        session.add(salon)
        session.commit()

        haircut = Service(salon_id=salon.id, name="Haircut", duration_minutes=60,
                          price_in_paisa=100000)
        beard = Service(salon_id=salon.id, name="Beard Trim", duration_minutes=30,
                        price_in_paisa=50000)
        member = Staff(salon_id=salon.id, name="Asha", is_active=1)
        session.add_all([haircut, beard, member])
        session.commit()

        service = PackageService(session, clock=clock)
        packages = [
            service.create_package(salon.id, PackageCreate(
                name=f"Groom Combo {i}",
                category="Grooming",
                service_ids=[haircut.id, beard.id],
                package_price_in_paisa=120000,
                **package_fields
            ))
            for i in range(package_count)
        ]
        return packages, member


def _book_concurrently(session_factory, clock, requests):
    """Book every request from its own thread and session. Returns the outcomes."""
    barrier = threading.Barrier(len(requests))
    outcomes = []

    def worker(request):
        session = session_factory()
        try:
            barrier.wait()
            PackageBookingService(session, clock=clock).book_package(request)
            outcomes.append("BOOKED")
        except AppException as e:
            outcomes.append(e.code)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(request,)) for request in requests]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    return outcomes


class TestConcurrentBookings:
    """Tests for simultaneous bookings competing for one slot."""

    def test_daily_cap_not_oversubscribed(self, session_factory, clock):
        """Test only one of several simultaneous bookings fits a cap of one."""
        (package,), _ = _seed(session_factory, clock, max_bookings_per_day=1)
        requests = [
            _request(package, booking_time=f"{hour}:00") for hour in (10, 12, 14, 16)
        ]

        outcomes = _book_concurrently(session_factory, clock, requests)

        assert sorted(outcomes) == ["BOOKED"] + ["DAILY_CAPACITY_REACHED"] * 3
        with session_factory() as session:
            assert session.query(PackageBooking).count() == 1
            assert session.get(ServicePackage, package.id).booking_count == 1

    def test_staff_not_double_booked(self, session_factory, clock):
        """Test simultaneous bookings of different packages for one stylist."""
        packages, member = _seed(session_factory, clock, package_count=3)
        requests = [
            _request(package, staff_id=member.id, booking_time="10:15")
            for package in packages
        ]

        outcomes = _book_concurrently(session_factory, clock, requests)

        assert sorted(outcomes) == ["BOOKED"] + ["STAFF_CONFLICT"] * 2
        with session_factory() as session:
            assert session.query(Booking).filter(Booking.staff_id == member.id).count() == 1
