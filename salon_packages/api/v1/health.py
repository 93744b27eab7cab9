"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

Besides connectivity, the health report shows how many packages are live
and how many expired packages are still marked active, which is non-zero
only while the expiry sweeper is stopped or behind.

==============================================================================
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from salon_packages.core.dependencies import get_operational_clock
from salon_packages.core.exceptions import AppException
from salon_packages.db.database import get_db
from salon_packages.db.models import ServicePackage
from salon_packages.catalog import get_catalog
from salon_packages.services.expiry_service import ExpirySweeper, ExpirySweepTaskManager
from salon_packages.utils.timekeeping import OperationalClock


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, db: Session, clock: OperationalClock):
        self._db = db
        self._clock = clock

    def check_packages(self) -> dict:
        """Count live packages and expired packages awaiting the sweeper."""
        try:
            active = self._db.query(ServicePackage).filter(
                ServicePackage.is_active == 1
            ).count()
            pending = ExpirySweeper(self._db, clock=self._clock).count_pending_expiry()
        except (SQLAlchemyError, AppException):
            self._db.rollback()
            return {"status": "unhealthy", "active_packages": None, "pending_expiry": None}
        return {"status": "healthy", "active_packages": active, "pending_expiry": pending}

    def check_catalog(self) -> dict:
        catalog = get_catalog()
        return {
            "status": "healthy" if len(catalog) else "empty",
            "categories": len(catalog),
            "source": catalog.source
        }

    def get_health(self) -> dict:
        """Get full health status."""
        packages = self.check_packages()
        catalog_info = self.check_catalog()
        sweeper_running = ExpirySweepTaskManager().is_running

        overall = "healthy" if packages["status"] == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": packages["status"],
                "catalog": catalog_info["status"],
                "expiry_sweeper": "running" if sweeper_running else "stopped"
            },
            "details": {
                "active_packages": packages["active_packages"],
                "expired_still_active": packages["pending_expiry"],
                "categories_loaded": catalog_info["categories"],
                "categories_source": catalog_info["source"]
            }
        }


@router.get("")
async def health_check(
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """
    Health check endpoint.

    Returns database, catalog and expiry sweeper status with package counts.
    """
    controller = HealthController(db, clock)
    return controller.get_health()


@router.get("/ready")
async def readiness_check(
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Readiness probe: 503 until the package tables can be queried."""
    packages = HealthController(db, clock).check_packages()
    if packages["status"] != "healthy":
        return JSONResponse(status_code=503, content={"ready": False})
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
