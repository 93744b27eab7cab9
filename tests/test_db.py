"""
==============================================================================
Database Model and Initializer Tests
==============================================================================

Tests for model constraints and the development seed helpers.

==============================================================================
"""

import pytest
from sqlalchemy.exc import IntegrityError

from salon_packages.db.init_db import DEMO_SERVICES, DatabaseInitializer
from salon_packages.db.models import (
    BookingStatus,
    PackageServiceEntry,
    Salon,
    Service,
    Staff,
)


class TestBookingStatus:
    """Tests for BookingStatus helpers."""

    def test_occupies_staff(self):
        assert BookingStatus.PENDING.occupies_staff
        assert BookingStatus.CONFIRMED.occupies_staff
        assert not BookingStatus.COMPLETED.occupies_staff
        assert not BookingStatus.CANCELLED.occupies_staff

    def test_counts_toward_quota(self):
        """Test every status except cancelled consumes daily capacity."""
        assert BookingStatus.COMPLETED.counts_toward_quota
        assert not BookingStatus.CANCELLED.counts_toward_quota


class TestPackageModel:
    """Tests for ServicePackage and its entries."""

    def test_entries_ordered(self, package, services):
        assert [e.sequence_order for e in package.entries] == [1, 2]
        assert package.total_service_instances == 2
        assert package.primary_service_id == services[0].id

    def test_entry_requires_same_salon_service(self, db, package, other_salon):
        """Test an entry cannot reference another salon's service."""
        foreign = Service(
            salon_id=other_salon.id,
            name="Foreign Cut",
            duration_minutes=30,
            price_in_paisa=10000
        )
        db.add(foreign)
        db.commit()

        db.add(PackageServiceEntry(
            package_id=package.id,
            service_id=foreign.id,
            salon_id=package.salon_id,
            sequence_order=3
        ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_duplicate_service_entry_rejected(self, db, package, services):
        db.add(PackageServiceEntry(
            package_id=package.id,
            service_id=services[0].id,
            salon_id=package.salon_id,
            sequence_order=3
        ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestDatabaseInitializer:
    """Tests for the development helpers."""

    def test_verify_tables(self, db):
        assert DatabaseInitializer(session=db).verify_tables() is True

    def test_seed_demo_salon(self, db):
        """Test the demo salon gets its services and a stylist."""
        initializer = DatabaseInitializer(session=db)
        salon = initializer.seed_demo_salon()

        assert db.query(Service).filter(Service.salon_id == salon.id).count() == len(DEMO_SERVICES)
        assert db.query(Staff).filter(Staff.salon_id == salon.id).count() == 1

    def test_seed_is_idempotent(self, db):
        initializer = DatabaseInitializer(session=db)
        first = initializer.seed_demo_salon()
        second = initializer.seed_demo_salon()

        assert first.id == second.id
        assert db.query(Salon).count() == 1

    def test_stats(self, db, package):
        stats = DatabaseInitializer(session=db).get_stats()

        assert stats["packages"]["total"] == 1
        assert stats["packages"]["active"] == 1
        assert stats["packages"]["featured"] == 0
        assert stats["package_bookings"]["total"] == 0
        assert stats["salons"]["total"] == 1
