"""
==============================================================================
Service Package Management Module
==============================================================================

Service for salon package definition, lookup and lifecycle.

This module implements:
- PackageService: Class handling the package lifecycle
- Create with pricing validation and ordered entries
- Partial update (re-validating on price or composition change)
- Soft delete (deactivate) and the service retirement cascade
- Single and filtered listing reads
- Availability checks for a package slot

Package Lifecycle:
-----------------
                   create()
                      │
                      ▼
              ┌──────────────┐   update(is_active=true)   ┌──────────────┐
              │   ACTIVE (1) │ ◀──────────────────────────│ INACTIVE (0) │
              └──────────────┘                            └──────────────┘
                      │                                          ▲
                      │ deactivate() / expiry sweep /            │
                      │ service retirement                       │
                      └──────────────────────────────────────────┘

Packages are never hard-deleted, so historical package bookings always
resolve their package.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from salon_packages.catalog import CategoryCatalog, get_catalog
from salon_packages.config import Settings, get_settings
from salon_packages.core import exceptions
from salon_packages.db.models import (
    Booking,
    BookingStatus,
    PackageBooking,
    PackageGender,
    PackageServiceEntry,
    ServicePackage,
)
from salon_packages.schemas.package import PackageCreate, PackageUpdate
from salon_packages.services.availability import AvailabilityDecider, AvailabilityResult
from salon_packages.services.pricing import (
    PricingQuote,
    PricingValidator,
    ServiceEntry,
    normalize_service_entries,
)
from salon_packages.utils.patch import patches_from_model
from salon_packages.utils.timekeeping import OperationalClock, utc_now


# Module logger
logger = logging.getLogger(__name__)


# Update fields stored as 1/0 integers
FLAG_FIELDS = ("is_active", "is_featured")

# Update fields handled by pricing rather than plain assignment
PRICING_FIELDS = ("services", "service_ids", "package_price_in_paisa")

# Booking statuses that consume a package's daily capacity
QUOTA_STATUSES = tuple(status for status in BookingStatus if status.counts_toward_quota)


@dataclass
class PackageFilters:
    """Listing filters for a salon's packages."""
    active_only: bool = True
    category: Optional[str] = None
    gender: Optional[PackageGender] = None
    featured_only: bool = False
    include_expired: bool = False


class PackageService:
    """
    Service for package definition and lookup.

    Attributes:
        _db: Database session
        _settings: Application settings
        _clock: Operational clock (injectable for tests)
        _pricing: Pricing validator
        _decider: Availability decider
        _catalog: Category catalog

    Example:
        >>> service = PackageService(db_session)
        >>>
        >>> # Create package
        >>> package = service.create_package(salon_id, create_data)
        >>>
        >>> # Check a slot
        >>> result = service.check_availability(package.id, "2024-03-16", "10:15")
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        clock: Optional[OperationalClock] = None,
        catalog: Optional[CategoryCatalog] = None
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self._clock = clock or OperationalClock(self._settings.timezone)
        self._pricing = PricingValidator(db, self._settings)
        self._decider = AvailabilityDecider(self._clock)
        self._catalog = catalog or get_catalog()

    # =========================================================================
    # CREATE / UPDATE / DELETE OPERATIONS
    # =========================================================================

    def create_package(self, salon_id: str, data: PackageCreate) -> ServicePackage:
        """
        Create a package with its ordered service entries.

        Args:
            salon_id: Owning salon
            data: Package creation data

        Returns:
            Created ServicePackage with entries and salon loaded

        Raises:
            AppException: INVALID_COMPOSITION, SERVICE_NOT_FOUND,
                PRICE_NOT_DISCOUNTED, DISCOUNT_TOO_STEEP, STORAGE_ERROR
        """
        entries = normalize_service_entries(data.services, data.service_ids)

        try:
            quote = self._pricing.validate(salon_id, entries, data.package_price_in_paisa)

            package = ServicePackage(
                salon_id=salon_id,
                name=data.name,
                description=data.description,
                category=self._canonical_category(data.category),
                image_url=data.image_url,
                gender=data.gender,
                currency=self._settings.currency,
                valid_from=data.valid_from,
                valid_until=data.valid_until,
                available_days=data.available_days,
                available_time_start=data.available_time_start,
                available_time_end=data.available_time_end,
                min_advance_booking_hours=data.min_advance_booking_hours,
                max_bookings_per_day=data.max_bookings_per_day,
                is_active=1,
                is_featured=int(data.is_featured),
                sort_order=data.sort_order,
                booking_count=0,
            )
            self._apply_quote(package, quote)
            self._attach_entries(package, salon_id, entries)

            self._db.add(package)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to create package '{data.name}' for salon {salon_id}")
            raise exceptions.storage_error("create package")

        logger.info(
            f"✅ Package created: {package.name} ({package.id}) for salon {salon_id}, "
            f"{quote.package_price_in_paisa}/{quote.regular_price_in_paisa} paisa, "
            f"{quote.discount_percentage}% off"
        )
        return self.get_package(package.id)

    def update_package(
        self,
        package_id: str,
        salon_id: str,
        data: PackageUpdate
    ) -> ServicePackage:
        """
        Apply a partial update to a package.

        A new composition is re-validated and replaces all entries in the
        same transaction. A new price alone is validated against the stored
        regular price. Other fields follow the omitted / null / value rule.

        Raises:
            AppException: PACKAGE_NOT_FOUND, any pricing code, VALIDATION_ERROR
                when the resulting date or time window is inverted,
                STORAGE_ERROR
        """
        quote: Optional[PricingQuote] = None
        entries: Optional[List[ServiceEntry]] = None

        try:
            package = self._load_scoped(package_id, salon_id)
            if package is None:
                raise exceptions.package_not_found(package_id)

            package_price = (
                data.package_price_in_paisa
                if data.changes_price else package.package_price_in_paisa
            )

            if data.changes_composition:
                entries = normalize_service_entries(data.services, data.service_ids)
                quote = self._pricing.validate(salon_id, entries, package_price)
            elif data.changes_price:
                quote = self._pricing.quote_price(
                    package.regular_price_in_paisa,
                    package.total_duration_minutes,
                    package_price
                )

            self._check_windows(package, data)

            if entries is not None:
                package.entries.clear()
                self._db.flush()
                self._attach_entries(package, salon_id, entries)

            if quote is not None:
                self._apply_quote(package, quote)

            changed = self._apply_patches(package, data)

            package.updated_at = utc_now()
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to update package {package_id}")
            raise exceptions.storage_error("update package")

        logger.info(
            f"✅ Package updated: {package.name} ({package_id}) "
            f"fields={sorted(changed)}{' +composition' if entries is not None else ''}"
        )
        self._db.expire(package)
        return self.get_package(package_id)

    def deactivate_package(self, package_id: str, salon_id: str) -> bool:
        """
        Soft delete a package.

        Historical package bookings are untouched.

        Raises:
            AppException: PACKAGE_NOT_FOUND, STORAGE_ERROR
        """
        try:
            package = self._load_scoped(package_id, salon_id)
            if package is None:
                raise exceptions.package_not_found(package_id)

            package.is_active = 0
            package.updated_at = utc_now()
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to deactivate package {package_id}")
            raise exceptions.storage_error("deactivate package")

        logger.info(f"🗑️ Package deactivated: {package.name} ({package_id})")
        return True

    def deactivate_packages_with_service(self, service_id: str, salon_id: str) -> int:
        """
        Deactivate every package in the salon that includes a service.

        Returns:
            Number of distinct packages referencing the service
        """
        try:
            package_ids = [
                row[0] for row in self._db.query(PackageServiceEntry.package_id).filter(
                    PackageServiceEntry.service_id == service_id,
                    PackageServiceEntry.salon_id == salon_id
                ).distinct().all()
            ]

            if not package_ids:
                return 0

            self._db.execute(
                update(ServicePackage)
                .where(ServicePackage.id.in_(package_ids))
                .values(is_active=0, updated_at=utc_now())
            )
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to retire service {service_id} from packages")
            raise exceptions.storage_error("deactivate packages with service")

        logger.info(
            f"🗑️ Service {service_id} retired: {len(package_ids)} package(s) deactivated"
        )
        return len(package_ids)

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_package(self, package_id: str) -> Optional[ServicePackage]:
        """
        Get a package with its ordered entries, their services and its salon.

        Returns:
            ServicePackage or None if unknown
        """
        try:
            return self._query_with_relations().filter(
                ServicePackage.id == package_id
            ).first()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to load package {package_id}")
            raise exceptions.storage_error("load package")

    def list_packages(
        self,
        salon_id: str,
        filters: Optional[PackageFilters] = None
    ) -> List[ServicePackage]:
        """
        List a salon's packages.

        Sorted by sort_order ascending, then newest first.
        """
        filters = filters or PackageFilters()
        query = self._query_with_relations().filter(ServicePackage.salon_id == salon_id)

        if filters.active_only:
            query = query.filter(ServicePackage.is_active == 1)

        if filters.category:
            query = query.filter(ServicePackage.category == filters.category)

        if filters.gender is not None:
            query = query.filter(or_(
                ServicePackage.gender.is_(None),
                ServicePackage.gender == filters.gender
            ))

        if filters.featured_only:
            query = query.filter(ServicePackage.is_featured == 1)

        if not filters.include_expired:
            now = self._clock.now_naive_utc()
            query = query.filter(
                or_(ServicePackage.valid_from.is_(None), ServicePackage.valid_from <= now),
                or_(ServicePackage.valid_until.is_(None), ServicePackage.valid_until >= now)
            )

        try:
            return query.order_by(
                ServicePackage.sort_order.asc(),
                ServicePackage.created_at.desc()
            ).all()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to list packages for salon {salon_id}")
            raise exceptions.storage_error("list packages")

    @staticmethod
    def categories_present(packages: List[ServicePackage]) -> List[str]:
        """Distinct categories of the given packages, in first-seen order."""
        return list(dict.fromkeys(p.category for p in packages if p.category))

    # =========================================================================
    # AVAILABILITY
    # =========================================================================

    def check_availability(
        self,
        package_id: str,
        booking_date: str,
        booking_time: str
    ) -> AvailabilityResult:
        """
        Decide whether a package can be booked at a date and time.

        Raises:
            AppException: PACKAGE_NOT_FOUND if not found, STORAGE_ERROR
        """
        try:
            package = self._db.query(ServicePackage).filter(
                ServicePackage.id == package_id
            ).first()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to load package {package_id} for availability")
            raise exceptions.storage_error("check package availability")

        if package is None:
            raise exceptions.package_not_found(package_id)

        return self.decide(package, booking_date, booking_time)

    def decide(
        self,
        package: ServicePackage,
        booking_date: str,
        booking_time: str
    ) -> AvailabilityResult:
        """Run the availability rules against an already loaded package."""
        try:
            return self._decider.decide(
                package,
                booking_date,
                booking_time,
                lambda: self.count_daily_bookings(package.id, booking_date)
            )
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(f"Failed to check availability of package {package.id}")
            raise exceptions.storage_error("check package availability")

    def count_daily_bookings(self, package_id: str, booking_date: str) -> int:
        """Count non-cancelled bookings of a package on a date."""
        return self._db.query(func.count(PackageBooking.id)).join(
            Booking, PackageBooking.booking_id == Booking.id
        ).filter(
            PackageBooking.package_id == package_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(QUOTA_STATUSES)
        ).scalar() or 0

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _query_with_relations(self):
        return self._db.query(ServicePackage).options(
            selectinload(ServicePackage.entries).joinedload(PackageServiceEntry.service),
            joinedload(ServicePackage.salon)
        )

    def _load_scoped(self, package_id: str, salon_id: str) -> Optional[ServicePackage]:
        return self._db.query(ServicePackage).filter(
            ServicePackage.id == package_id,
            ServicePackage.salon_id == salon_id
        ).first()

    def _canonical_category(self, category: Optional[str]) -> Optional[str]:
        if not category:
            return None
        return self._catalog.canonical(category) or category.strip()

    @staticmethod
    def _apply_quote(package: ServicePackage, quote: PricingQuote) -> None:
        package.total_duration_minutes = quote.total_duration_minutes
        package.regular_price_in_paisa = quote.regular_price_in_paisa
        package.package_price_in_paisa = quote.package_price_in_paisa
        package.discount_percentage = quote.discount_percentage

    @staticmethod
    def _attach_entries(
        package: ServicePackage,
        salon_id: str,
        entries: List[ServiceEntry]
    ) -> None:
        for order, entry in enumerate(entries, start=1):
            package.entries.append(PackageServiceEntry(
                service_id=entry.service_id,
                salon_id=salon_id,
                sequence_order=order,
                quantity=entry.quantity
            ))

    @staticmethod
    def _check_windows(package: ServicePackage, data: PackageUpdate) -> None:
        """Reject an update whose merged validity or time window is inverted."""
        patches = patches_from_model(data, exclude=PRICING_FIELDS)

        valid_from = patches["valid_from"].apply(package.valid_from)
        valid_until = patches["valid_until"].apply(package.valid_until)
        if valid_from and valid_until and valid_from > valid_until:
            raise exceptions.validation_error(
                "valid_from must not be after valid_until",
                {"valid_from": valid_from.isoformat(), "valid_until": valid_until.isoformat()}
            )

        start = patches["available_time_start"].apply(package.available_time_start)
        end = patches["available_time_end"].apply(package.available_time_end)
        if start and end and start > end:
            raise exceptions.validation_error(
                "available_time_start must not be after available_time_end",
                {"available_time_start": start, "available_time_end": end}
            )

    def _apply_patches(self, package: ServicePackage, data: PackageUpdate) -> List[str]:
        """Apply the non-pricing fields of an update. Returns the changed names."""
        changed = []
        for name, patch in patches_from_model(data, exclude=PRICING_FIELDS).items():
            if patch.is_unset:
                continue

            value = patch.apply(getattr(package, name))
            if name in FLAG_FIELDS:
                value = int(bool(value))
            elif name == "category":
                value = self._canonical_category(value)

            setattr(package, name, value)
            changed.append(name)
        return changed
