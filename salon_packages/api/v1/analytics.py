"""
==============================================================================
Package Analytics Endpoints
==============================================================================

Revenue, savings and usage rollups for a salon's packages.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from salon_packages.db.database import get_db
from salon_packages.services.analytics_service import PackageAnalyticsService
from salon_packages.schemas.analytics import PackageAnalyticsResponse


router = APIRouter(prefix="/salons", tags=["Package Analytics"])


@router.get("/{salon_id}/packages/analytics", response_model=PackageAnalyticsResponse)
async def get_package_analytics(
    salon_id: str,
    db: Session = Depends(get_db)
):
    """
    Get package analytics for a salon.

    Only completed bookings count toward revenue and savings.
    """
    report = PackageAnalyticsService(db).get_analytics(salon_id)
    return PackageAnalyticsResponse(analytics=report)
