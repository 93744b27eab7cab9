"""
==============================================================================
Package Analytics Service Module
==============================================================================

Rolls completed package bookings up into per-package and salon-wide
revenue, savings and usage figures.

Only bookings whose status is `completed` count toward revenue, savings
and the per-package booking count. The lifetime `booking_count` of each
package is reported alongside, unfiltered.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_packages.catalog import CategoryCatalog, get_catalog
from salon_packages.core import exceptions
from salon_packages.db.models import Booking, BookingStatus, PackageBooking, ServicePackage
from salon_packages.schemas.analytics import (
    AnalyticsSummary,
    PackageAnalyticsItem,
    PackageAnalyticsReport,
    TopPackage,
)
from salon_packages.utils.currency import format_inr


# Module logger
logger = logging.getLogger(__name__)


def round_half_up_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


class PackageAnalyticsService:
    """
    Analytics rollup for a salon's packages.

    Example:
        >>> analytics = PackageAnalyticsService(db_session)
        >>> report = analytics.get_analytics(salon_id)
        >>> report.summary.total_package_bookings
        12
    """

    def __init__(self, db: Session, catalog: Optional[CategoryCatalog] = None) -> None:
        self._db = db
        self._catalog = catalog or get_catalog()

    def get_analytics(self, salon_id: str) -> PackageAnalyticsReport:
        """
        Build the analytics report for a salon.

        The top package is the one with strictly the most completed
        bookings; on a tie the first package in listing order wins, and no
        top package is reported while every package has zero.

        Raises:
            AppException: STORAGE_ERROR on database failure
        """
        try:
            packages = self._db.query(ServicePackage).filter(
                ServicePackage.salon_id == salon_id
            ).order_by(
                ServicePackage.sort_order.asc(),
                ServicePackage.created_at.desc()
            ).all()
            completed = self._completed_totals(salon_id)
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to build package analytics for salon {salon_id}")
            raise exceptions.storage_error("load package analytics")

        items = []
        total_revenue = 0
        total_bookings = 0
        total_savings = 0
        top: Optional[PackageAnalyticsItem] = None

        for package in packages:
            bookings, revenue, savings = completed.get(package.id, (0, 0, 0))

            item = PackageAnalyticsItem(
                id=package.id,
                name=package.name,
                category=package.category,
                bookings=bookings,
                revenue=revenue,
                revenue_formatted=format_inr(revenue),
                savings_provided=savings,
                total_booking_count=package.booking_count,
                is_featured=package.is_featured == 1,
                is_active=package.is_active == 1
            )
            items.append(item)

            total_revenue += revenue
            total_bookings += bookings
            total_savings += savings

            if item.bookings > (top.bookings if top else 0):
                top = item

        summary = AnalyticsSummary(
            total_package_revenue=total_revenue,
            total_package_revenue_formatted=format_inr(total_revenue),
            total_package_bookings=total_bookings,
            average_package_value=round_half_up_div(total_revenue, total_bookings),
            top_package=TopPackage(name=top.name, bookings=top.bookings) if top else None,
            savings_provided=total_savings,
            savings_provided_formatted=format_inr(total_savings)
        )

        logger.debug(
            f"Analytics for salon {salon_id}: {len(items)} packages, "
            f"{total_bookings} completed bookings"
        )

        return PackageAnalyticsReport(
            summary=summary,
            by_package=sorted(items, key=lambda i: i.bookings, reverse=True),
            categories=self._catalog.categories
        )

    def _completed_totals(self, salon_id: str) -> Dict[str, Tuple[int, int, int]]:
        """Per package: (completed count, revenue, savings)."""
        rows = self._db.query(
            PackageBooking.package_id,
            func.count(PackageBooking.id),
            func.coalesce(func.sum(PackageBooking.package_price_at_booking), 0),
            func.coalesce(func.sum(PackageBooking.savings_paisa), 0),
        ).join(
            Booking, PackageBooking.booking_id == Booking.id
        ).filter(
            PackageBooking.salon_id == salon_id,
            Booking.status == BookingStatus.COMPLETED
        ).group_by(PackageBooking.package_id).all()

        return {
            package_id: (int(count), int(revenue), int(savings))
            for package_id, count, revenue, savings in rows
        }
