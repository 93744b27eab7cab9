"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, clock and salon catalog fixtures.

==============================================================================
"""

import os
import re
import sqlite3

# Keep the application lifespan away from the on-disk database and the
# background sweeper during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EXPIRY_SWEEP_ENABLED", "false")

import pytest
from datetime import datetime, timezone
from typing import Callable, Generator, List
from zoneinfo import ZoneInfo
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from salon_packages.main import app
from salon_packages.db.database import Base, enable_sqlite_foreign_keys
from salon_packages.db.models import (
    Booking,
    BookingStatus,
    Salon,
    Service,
    ServicePackage,
    Staff,
)
from salon_packages.schemas.package import PackageCreate
from salon_packages.services.package_service import PackageService
from salon_packages.utils.timekeeping import OperationalClock
# Import the dependencies exactly as the API endpoints use them
from salon_packages.db.database import get_db
from salon_packages.core.dependencies import get_operational_clock


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    # Create all tables
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fail_table(db: Session) -> Generator[Callable[[str], None], None, None]:
    """
    Make every statement touching the named table fail as if the table
    were unreachable.
    """
    listeners = []

    def _fail(table_name: str) -> None:
        pattern = re.compile(rf"\b{table_name}\b")

        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if pattern.search(statement):
                raise OperationalError(
                    statement,
                    parameters,
                    sqlite3.OperationalError(f"no such table: {table_name}")
                )

        event.listen(engine, "before_cursor_execute", before_cursor_execute)
        listeners.append(before_cursor_execute)

    yield _fail

    for listener in listeners:
        event.remove(engine, "before_cursor_execute", listener)


# ============================================================================
# CLOCK FIXTURES
# ============================================================================

# Thursday 2024-03-14 10:00 in Asia/Kolkata
FIXED_NOW = datetime(2024, 3, 14, 4, 30, tzinfo=timezone.utc)

# A Saturday, two days after FIXED_NOW
SATURDAY = "2024-03-16"
SUNDAY = "2024-03-17"
MONDAY = "2024-03-18"


@pytest.fixture
def clock() -> OperationalClock:
    """Operational clock frozen at FIXED_NOW."""
    return OperationalClock(ZoneInfo("Asia/Kolkata"), now=lambda: FIXED_NOW)


@pytest.fixture(scope="function")
def client(db: Session, clock: OperationalClock) -> Generator[TestClient, None, None]:
    """Create test client with database and clock overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_operational_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# SALON FIXTURES
# ============================================================================

@pytest.fixture
def salon(db: Session) -> Salon:
    """Create a salon in the test database."""
    salon = Salon(name="Glow Studio")
    db.add(salon)
    db.commit()
    return salon


@pytest.fixture
def other_salon(db: Session) -> Salon:
    """Create a second, unrelated salon."""
    salon = Salon(name="Other Salon")
    db.add(salon)
    db.commit()
    return salon


@pytest.fixture
def services(db: Session, salon: Salon) -> List[Service]:
    """Haircut (60 min, ₹1,000) and beard trim (30 min, ₹500)."""
    haircut = Service(
        salon_id=salon.id,
        name="Haircut",
        duration_minutes=60,
        price_in_paisa=100000,
        category="Hair"
    )
    beard = Service(
        salon_id=salon.id,
        name="Beard Trim",
        duration_minutes=30,
        price_in_paisa=50000,
        category="Grooming"
    )
    db.add_all([haircut, beard])
    db.commit()
    return [haircut, beard]


@pytest.fixture
def staff(db: Session, salon: Salon) -> Staff:
    """Create an active staff member."""
    member = Staff(salon_id=salon.id, name="Asha", role="Stylist", is_active=1)
    db.add(member)
    db.commit()
    return member


# ============================================================================
# PACKAGE FIXTURES
# ============================================================================

@pytest.fixture
def package_service(db: Session, clock: OperationalClock) -> PackageService:
    return PackageService(db, clock=clock)


@pytest.fixture
def make_package(
    salon: Salon,
    services: List[Service],
    package_service: PackageService
) -> Callable[..., ServicePackage]:
    """
    Factory creating a haircut + beard trim package (₹1,500 regular) priced
    at ₹1,200 unless overridden.
    """
    def _make(**overrides) -> ServicePackage:
        payload = {
            "name": "Groom Combo",
            "category": "Grooming",
            "service_ids": [services[0].id, services[1].id],
            "package_price_in_paisa": 120000,
        }
        payload.update(overrides)
        return package_service.create_package(salon.id, PackageCreate(**payload))

    return _make


@pytest.fixture
def package(make_package) -> ServicePackage:
    """A plain active package with no availability restrictions."""
    return make_package()


@pytest.fixture
def add_booking(db: Session, salon: Salon) -> Callable[..., Booking]:
    """Factory inserting an existing booking directly."""
    def _add(
        booking_date: str = SATURDAY,
        booking_time: str = "10:00",
        status: BookingStatus = BookingStatus.CONFIRMED,
        **fields
    ) -> Booking:
        booking = Booking(
            salon_id=salon.id,
            customer_name="Existing Customer",
            customer_email="existing@example.com",
            customer_phone="9800000000",
            booking_date=booking_date,
            booking_time=booking_time,
            status=status,
            total_amount_paisa=fields.pop("total_amount_paisa", 100000),
            **fields
        )
        db.add(booking)
        db.commit()
        return booking

    return _add


def booking_payload(package: ServicePackage, **overrides) -> dict:
    """Valid booking request body for a package."""
    payload = {
        "package_id": package.id,
        "salon_id": package.salon_id,
        "booking_date": SATURDAY,
        "booking_time": "10:15",
        "customer_name": "Priya Sharma",
        "customer_email": "Priya@Example.com",
        "customer_phone": "9876543210",
    }
    payload.update(overrides)
    return payload
