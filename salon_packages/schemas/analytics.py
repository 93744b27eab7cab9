"""
==============================================================================
Package Analytics Schemas Module
==============================================================================

Response schemas for the salon package analytics rollup.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class TopPackage(BaseModel):
    name: str
    bookings: int


class PackageAnalyticsItem(BaseModel):
    """Per-package rollup over completed bookings."""
    id: str
    name: str
    category: Optional[str] = None
    bookings: int
    revenue: int
    revenue_formatted: str
    savings_provided: int
    total_booking_count: int
    is_featured: bool
    is_active: bool


class AnalyticsSummary(BaseModel):
    """Salon-wide rollup."""
    total_package_revenue: int = 0
    total_package_revenue_formatted: str
    total_package_bookings: int = 0
    average_package_value: int = 0
    top_package: Optional[TopPackage] = None
    savings_provided: int = 0
    savings_provided_formatted: str


class PackageAnalyticsReport(BaseModel):
    summary: AnalyticsSummary
    by_package: List[PackageAnalyticsItem]
    categories: List[str]


class PackageAnalyticsResponse(BaseModel):
    success: bool = Field(default=True)
    analytics: PackageAnalyticsReport
