"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes implementing the package engine.

This package provides:
- PricingValidator: Package composition and price invariants
- AvailabilityDecider: Ordered availability rules for a package slot
- StaffConflictChecker: Staff interval overlap detection
- PackageService: Package create/update/deactivate/read/list
- PackageBookingService: Booking orchestrator
- PackageAnalyticsService: Completed-booking rollups
- ExpirySweeper / ExpirySweepTaskManager: Expired package deactivation

Architecture Pattern: Service Layer
----------------------------------
Services encapsulate business logic and provide a clean interface
between API endpoints and the database layer.

    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Business Logic
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │   Repository    │  ← Data Access (via ORM)
    └─────────────────┘

Design Principles:
-----------------
- Dependency Injection: Services receive session, settings and clock
  via constructor
- Transaction Management: Services manage database transactions
- Exception Handling: Business exceptions for invalid operations,
  STORAGE_ERROR for database failures

Usage:
------
    from salon_packages.services import PackageService

    # In a FastAPI route
    service = PackageService(db_session)
    package = service.create_package(salon_id, create_data)

==============================================================================
"""

from .pricing import PricingQuote, PricingValidator, ServiceEntry, normalize_service_entries
from .availability import AvailabilityDecider, AvailabilityResult
from .staff_conflict import StaffAvailability, StaffConflictChecker
from .package_service import PackageFilters, PackageService
from .booking_service import BookingLockRegistry, PackageBookingService
from .analytics_service import PackageAnalyticsService
from .expiry_service import ExpirySweeper, ExpirySweepTaskManager

__all__ = [
    "PricingQuote",
    "PricingValidator",
    "ServiceEntry",
    "normalize_service_entries",
    "AvailabilityDecider",
    "AvailabilityResult",
    "StaffAvailability",
    "StaffConflictChecker",
    "PackageFilters",
    "PackageService",
    "BookingLockRegistry",
    "PackageBookingService",
    "PackageAnalyticsService",
    "ExpirySweeper",
    "ExpirySweepTaskManager",
]
