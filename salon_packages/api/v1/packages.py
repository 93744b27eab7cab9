"""
==============================================================================
Service Package Endpoints
==============================================================================

Package definition, lookup and lifecycle endpoints.

==============================================================================
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from salon_packages.catalog import get_catalog
from salon_packages.core.dependencies import get_operational_clock
from salon_packages.core import exceptions
from salon_packages.db.database import get_db
from salon_packages.db.models import PackageGender
from salon_packages.services.package_service import PackageFilters, PackageService
from salon_packages.schemas.package import (
    CategoryListResponse,
    PackageCreate,
    PackageDetail,
    PackageListResponse,
    PackageResponse,
    PackageUpdate,
    RetirementResponse,
)
from salon_packages.schemas.common import MessageResponse
from salon_packages.utils.timekeeping import OperationalClock


router = APIRouter(tags=["Packages"])


class PackageController:
    """Controller for package operations."""

    def __init__(self, db: Session, clock: OperationalClock):
        self._service = PackageService(db, clock=clock)

    def categories(self) -> CategoryListResponse:
        """Published category list."""
        return CategoryListResponse(categories=get_catalog().categories)

    def list_public(
        self,
        salon_id: str,
        category: Optional[str],
        gender: Optional[PackageGender],
        featured: bool
    ) -> PackageListResponse:
        """Active, currently valid packages with the categories they use."""
        packages = self._service.list_packages(salon_id, PackageFilters(
            category=category,
            gender=gender,
            featured_only=featured
        ))
        return PackageListResponse(
            packages=[PackageDetail.from_model(p) for p in packages],
            categories=self._service.categories_present(packages),
            total_count=len(packages)
        )

    def list_manage(self, salon_id: str) -> PackageListResponse:
        """Every package of the salon, inactive and expired included."""
        packages = self._service.list_packages(salon_id, PackageFilters(
            active_only=False,
            include_expired=True
        ))
        return PackageListResponse(
            packages=[PackageDetail.from_model(p) for p in packages],
            categories=get_catalog().categories,
            total_count=len(packages)
        )

    def create(self, salon_id: str, data: PackageCreate) -> PackageResponse:
        """Create package."""
        package = self._service.create_package(salon_id, data)
        return PackageResponse(package=PackageDetail.from_model(package))

    def get(self, package_id: str) -> PackageResponse:
        """Get package by id."""
        package = self._service.get_package(package_id)
        if package is None:
            raise exceptions.package_not_found(package_id)
        return PackageResponse(package=PackageDetail.from_model(package))

    def update(self, package_id: str, salon_id: str, data: PackageUpdate) -> PackageResponse:
        """Update package."""
        package = self._service.update_package(package_id, salon_id, data)
        return PackageResponse(package=PackageDetail.from_model(package))

    def delete(self, package_id: str, salon_id: str) -> MessageResponse:
        """Deactivate package."""
        self._service.deactivate_package(package_id, salon_id)
        return MessageResponse(message="Package deactivated")

    def retire_service(self, salon_id: str, service_id: str) -> RetirementResponse:
        """Deactivate every package containing a service."""
        count = self._service.deactivate_packages_with_service(service_id, salon_id)
        return RetirementResponse(service_id=service_id, deactivated_packages=count)


# ==== CATEGORIES ====

@router.get("/packages/categories", response_model=CategoryListResponse)
async def list_categories(
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Get the published package categories."""
    controller = PackageController(db, clock)
    return controller.categories()


# ==== SALON SCOPED ====

@router.get("/salons/{salon_id}/packages", response_model=PackageListResponse)
async def list_salon_packages(
    salon_id: str,
    category: Optional[str] = Query(None),
    gender: Optional[PackageGender] = Query(None),
    featured: bool = Query(False),
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """
    List a salon's bookable packages.

    Only active packages inside their validity window are returned, sorted
    by sort order then newest first. Packages without a gender match any
    gender filter.
    """
    controller = PackageController(db, clock)
    return controller.list_public(salon_id, category, gender, featured)


@router.get("/salons/{salon_id}/packages/manage", response_model=PackageListResponse)
async def list_salon_packages_for_management(
    salon_id: str,
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """List all of a salon's packages, including inactive and expired ones."""
    controller = PackageController(db, clock)
    return controller.list_manage(salon_id)


@router.post(
    "/salons/{salon_id}/packages",
    response_model=PackageResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_package(
    salon_id: str,
    data: PackageCreate,
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Create a package for a salon."""
    controller = PackageController(db, clock)
    return controller.create(salon_id, data)


@router.post(
    "/salons/{salon_id}/services/{service_id}/retire-packages",
    response_model=RetirementResponse
)
async def retire_service_from_packages(
    salon_id: str,
    service_id: str,
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Deactivate every package of the salon that includes the service."""
    controller = PackageController(db, clock)
    return controller.retire_service(salon_id, service_id)


# ==== PACKAGE CRUD ====

@router.get("/packages/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: str,
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Get a package with its services in sequence order."""
    controller = PackageController(db, clock)
    return controller.get(package_id)


@router.put("/packages/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: str,
    data: PackageUpdate,
    salon_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """
    Partially update a package.

    Omitted fields are left unchanged; null clears an optional field.
    """
    controller = PackageController(db, clock)
    return controller.update(package_id, salon_id, data)


@router.delete("/packages/{package_id}", response_model=MessageResponse)
async def delete_package(
    package_id: str,
    salon_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    clock: OperationalClock = Depends(get_operational_clock)
):
    """Deactivate a package. Booking history is kept."""
    controller = PackageController(db, clock)
    return controller.delete(package_id, salon_id)
