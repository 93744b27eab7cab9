"""
==============================================================================
Expiry Sweep Tests
==============================================================================

Tests for deactivating packages past their validity window.

==============================================================================
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from salon_packages.services.expiry_service import ExpirySweeper, ExpirySweepTaskManager
from salon_packages.utils.timekeeping import OperationalClock


class TestExpirySweeper:
    """Tests for ExpirySweeper."""

    def test_expired_packages_deactivated(self, db, clock, make_package, package_service):
        expired = make_package(name="Expired", valid_until="2024-03-01T00:00:00Z")
        current = make_package(name="Current", valid_until="2024-04-01T00:00:00Z")
        open_ended = make_package(name="Open Ended")

        sweeper = ExpirySweeper(db, clock=clock)
        assert sweeper.count_pending_expiry() == 1
        assert sweeper.deactivate_expired() == 1

        db.expire_all()
        assert package_service.get_package(expired.id).is_active == 0
        assert package_service.get_package(current.id).is_active == 1
        assert package_service.get_package(open_ended.id).is_active == 1

    def test_sweep_is_idempotent(self, db, clock, make_package):
        """Test already inactive packages are not counted again."""
        make_package(valid_until="2024-03-01T00:00:00Z")

        sweeper = ExpirySweeper(db, clock=clock)
        assert sweeper.deactivate_expired() == 1
        assert sweeper.deactivate_expired() == 0

    def test_clock_drives_expiry(self, db, make_package):
        """Test a package expires once the clock passes valid_until."""
        make_package(valid_until="2024-04-01T00:00:00Z")
        tz = ZoneInfo("Asia/Kolkata")

        before = OperationalClock(tz, now=lambda: datetime(2024, 3, 31, tzinfo=timezone.utc))
        after = OperationalClock(tz, now=lambda: datetime(2024, 4, 2, tzinfo=timezone.utc))

        assert ExpirySweeper(db, clock=before).deactivate_expired() == 0
        assert ExpirySweeper(db, clock=after).deactivate_expired() == 1


class TestExpirySweepTaskManager:
    """Tests for the background task manager."""

    def test_singleton(self):
        assert ExpirySweepTaskManager() is ExpirySweepTaskManager()

    def test_not_running_without_loop(self):
        """Test the sweeper is idle until started."""
        assert ExpirySweepTaskManager().is_running is False
