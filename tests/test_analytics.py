"""
==============================================================================
Package Analytics Tests
==============================================================================

Tests for completed-booking revenue and savings rollups.

==============================================================================
"""

from salon_packages.db.models import BookingStatus
from salon_packages.schemas.booking import PackageBookingRequest
from salon_packages.schemas.package import PackageUpdate
from salon_packages.services.analytics_service import PackageAnalyticsService, round_half_up_div
from salon_packages.services.booking_service import PackageBookingService
from salon_packages.utils.currency import format_inr

from conftest import booking_payload


def _book(db, clock, package, booking_time, status=BookingStatus.COMPLETED):
    service = PackageBookingService(db, clock=clock)
    booking, _ = service.book_package(
        PackageBookingRequest(**booking_payload(package, booking_time=booking_time))
    )
    booking.status = status
    db.commit()
    return booking


class TestCurrencyHelpers:
    """Tests for the rounding and display helpers analytics relies on."""

    def test_round_half_up_div(self):
        assert round_half_up_div(370000, 3) == 123333
        assert round_half_up_div(5, 2) == 3
        assert round_half_up_div(10, 0) == 0

    def test_format_inr(self):
        """Test Indian digit grouping of whole rupees."""
        assert format_inr(15000000) == "₹1,50,000"
        assert format_inr(240000) == "₹2,400"
        assert format_inr(0) == "₹0"
        assert format_inr(5050) == "₹51"


class TestPackageAnalytics:
    """Tests for PackageAnalyticsService."""

    def test_empty_salon(self, db, salon):
        """Test a salon without packages reports zeros and no top package."""
        report = PackageAnalyticsService(db).get_analytics(salon.id)

        assert report.summary.total_package_bookings == 0
        assert report.summary.average_package_value == 0
        assert report.summary.top_package is None
        assert report.by_package == []
        assert "Bridal" in report.categories

    def test_only_completed_bookings_count(self, db, clock, salon, make_package):
        """Test pending and cancelled bookings add nothing to revenue."""
        combo = make_package(name="Combo", sort_order=1)
        trim = make_package(name="Trim Deal", sort_order=2, package_price_in_paisa=130000)

        _book(db, clock, combo, "10:00")
        _book(db, clock, combo, "11:00")
        _book(db, clock, combo, "12:00", status=BookingStatus.PENDING)
        _book(db, clock, combo, "13:00", status=BookingStatus.CANCELLED)
        _book(db, clock, trim, "14:00")

        report = PackageAnalyticsService(db).get_analytics(salon.id)
        summary = report.summary

        assert summary.total_package_bookings == 3
        assert summary.total_package_revenue == 370000
        assert summary.total_package_revenue_formatted == "₹3,700"
        assert summary.average_package_value == 123333
        assert summary.savings_provided == 80000
        assert summary.top_package.name == "Combo"
        assert summary.top_package.bookings == 2

        by_id = {item.id: item for item in report.by_package}
        assert by_id[combo.id].bookings == 2
        assert by_id[combo.id].revenue == 240000
        assert by_id[combo.id].savings_provided == 60000
        assert by_id[combo.id].total_booking_count == 4
        assert by_id[trim.id].revenue == 130000

    def test_sorted_by_completed_bookings(self, db, clock, salon, make_package):
        first = make_package(name="Listed First", sort_order=1)
        busy = make_package(name="Busy", sort_order=2)
        _book(db, clock, busy, "10:00")

        report = PackageAnalyticsService(db).get_analytics(salon.id)
        assert [item.id for item in report.by_package] == [busy.id, first.id]

    def test_tie_goes_to_first_listed(self, db, clock, salon, make_package):
        """Test the first package in listing order wins a tie for top package."""
        first = make_package(name="First", sort_order=1)
        second = make_package(name="Second", sort_order=2)
        _book(db, clock, second, "10:00")
        _book(db, clock, first, "11:00")

        report = PackageAnalyticsService(db).get_analytics(salon.id)
        assert report.summary.top_package.name == "First"

    def test_no_completed_bookings_no_top(self, db, clock, salon, make_package):
        package = make_package()
        _book(db, clock, package, "10:00", status=BookingStatus.CONFIRMED)

        report = PackageAnalyticsService(db).get_analytics(salon.id)
        assert report.summary.top_package is None
        assert report.by_package[0].total_booking_count == 1

    def test_snapshot_prices_used(self, db, clock, salon, make_package, package_service):
        """Test revenue uses the price at booking time, not the current price."""
        package = make_package()
        _book(db, clock, package, "10:00")
        package_service.update_package(
            package.id, salon.id, PackageUpdate(package_price_in_paisa=100000)
        )

        report = PackageAnalyticsService(db).get_analytics(salon.id)
        assert report.summary.total_package_revenue == 120000
        assert report.summary.savings_provided == 30000
