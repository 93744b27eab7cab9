"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Package: Package create/update/detail schemas
- Booking: Availability and package booking schemas
- Analytics: Package analytics rollup schemas

==============================================================================
"""

from .common import MessageResponse
from .package import (
    PackageServiceEntryIn,
    PackageCreate,
    PackageUpdate,
    PackageServiceItem,
    PackageDetail,
    PackageResponse,
    PackageListResponse,
    CategoryListResponse,
    RetirementResponse,
)
from .booking import (
    PackageBookingRequest,
    AvailabilityResponse,
    PackageBookingDetail,
    PackageBookingResponse,
)
from .analytics import (
    TopPackage,
    PackageAnalyticsItem,
    AnalyticsSummary,
    PackageAnalyticsReport,
    PackageAnalyticsResponse,
)

__all__ = [
    # Common
    "MessageResponse",
    # Package
    "PackageServiceEntryIn",
    "PackageCreate",
    "PackageUpdate",
    "PackageServiceItem",
    "PackageDetail",
    "PackageResponse",
    "PackageListResponse",
    "CategoryListResponse",
    "RetirementResponse",
    # Booking
    "PackageBookingRequest",
    "AvailabilityResponse",
    "PackageBookingDetail",
    "PackageBookingResponse",
    # Analytics
    "TopPackage",
    "PackageAnalyticsItem",
    "AnalyticsSummary",
    "PackageAnalyticsReport",
    "PackageAnalyticsResponse",
]
