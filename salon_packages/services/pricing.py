"""
==============================================================================
Package Pricing Validator Module
==============================================================================

Derives package pricing from its composition and enforces the pricing
invariants.

This module implements:
- ServiceEntry: normalized (service_id, quantity) line
- normalize_service_entries(): accepts entry lists or legacy bare id lists
- PricingQuote: derived duration, regular price and discount
- PricingValidator: resolves services and validates a candidate price

Validation Order:
----------------
1. Total service instances >= min_service_instances (2)
2. Every referenced service exists in the salon and is active
3. duration = Σ(duration × qty), regular = Σ(price × qty)
4. package price < regular price
5. discount = round(100 × (regular − package) / regular) <= ceiling (50)

The first failing step raises; nothing is persisted by this module.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from salon_packages.config import Settings, get_settings
from salon_packages.core import exceptions
from salon_packages.db.models import Service


# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceEntry:
    service_id: str
    quantity: int = 1


@dataclass(frozen=True)
class PricingQuote:
    """Derived pricing for a validated package."""
    total_duration_minutes: int
    regular_price_in_paisa: int
    package_price_in_paisa: int
    discount_percentage: int

    @property
    def savings_paisa(self) -> int:
        return self.regular_price_in_paisa - self.package_price_in_paisa


def normalize_service_entries(
    services: Optional[Sequence] = None,
    service_ids: Optional[Iterable[str]] = None
) -> List[ServiceEntry]:
    """
    Normalize a package composition to ServiceEntry lines.

    `services` (objects with service_id and quantity) wins over the legacy
    `service_ids` list when both are given. Repeated service ids are merged
    into one line at the position of their first occurrence with the
    quantities summed.

    Example:
        >>> normalize_service_entries(service_ids=["a", "b", "a"])
        [ServiceEntry(service_id='a', quantity=2), ServiceEntry(service_id='b', quantity=1)]
    """
    if services:
        raw = [(entry.service_id, entry.quantity) for entry in services]
    elif service_ids:
        raw = [(service_id, 1) for service_id in service_ids]
    else:
        raw = []

    merged: Dict[str, int] = {}
    for service_id, quantity in raw:
        merged[service_id] = merged.get(service_id, 0) + quantity

    return [ServiceEntry(service_id, quantity) for service_id, quantity in merged.items()]


def compute_discount_percentage(regular_price: int, package_price: int) -> int:
    """
    Whole-number discount, rounded half up.

    Example:
        >>> compute_discount_percentage(150000, 120000)
        20
    """
    if regular_price <= 0:
        return 0
    return (200 * (regular_price - package_price) + regular_price) // (2 * regular_price)


class PricingValidator:
    """
    Validates package compositions and prices.

    Attributes:
        _db: Database session used to resolve services
        _max_discount: Discount ceiling in percent
        _min_instances: Minimum total service instances

    Example:
        >>> validator = PricingValidator(db_session)
        >>> quote = validator.validate(salon_id, entries, 120000)
        >>> quote.discount_percentage
        20
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._db = db
        self._max_discount = settings.max_discount_percentage
        self._min_instances = settings.min_service_instances

    def validate(
        self,
        salon_id: str,
        entries: Sequence[ServiceEntry],
        package_price_in_paisa: int
    ) -> PricingQuote:
        """
        Validate a full composition and price.

        Raises:
            AppException: INVALID_COMPOSITION, SERVICE_NOT_FOUND,
                PRICE_NOT_DISCOUNTED or DISCOUNT_TOO_STEEP
        """
        instances = sum(entry.quantity for entry in entries)
        if instances < self._min_instances:
            raise exceptions.invalid_composition(self._min_instances, instances)

        services = self.resolve_services(salon_id, [e.service_id for e in entries])

        total_duration = 0
        regular_price = 0
        for entry in entries:
            service = services[entry.service_id]
            total_duration += service.duration_minutes * entry.quantity
            regular_price += service.price_in_paisa * entry.quantity

        return self.quote_price(regular_price, total_duration, package_price_in_paisa)

    def quote_price(
        self,
        regular_price_in_paisa: int,
        total_duration_minutes: int,
        package_price_in_paisa: int
    ) -> PricingQuote:
        """
        Validate a price against an already derived regular price.

        Used directly for price-only updates.
        """
        if package_price_in_paisa >= regular_price_in_paisa:
            raise exceptions.price_not_discounted(
                package_price_in_paisa, regular_price_in_paisa
            )

        discount = compute_discount_percentage(
            regular_price_in_paisa, package_price_in_paisa
        )
        if discount > self._max_discount:
            raise exceptions.discount_too_steep(discount, self._max_discount)

        return PricingQuote(
            total_duration_minutes=total_duration_minutes,
            regular_price_in_paisa=regular_price_in_paisa,
            package_price_in_paisa=package_price_in_paisa,
            discount_percentage=discount
        )

    def resolve_services(self, salon_id: str, service_ids: Sequence[str]) -> Dict[str, Service]:
        """
        Load the salon's active services by id.

        Raises:
            AppException: SERVICE_NOT_FOUND naming every missing or inactive id
        """
        distinct_ids = list(dict.fromkeys(service_ids))

        found = self._db.query(Service).filter(
            Service.id.in_(distinct_ids),
            Service.salon_id == salon_id,
            Service.is_active == 1
        ).all()
        by_id = {service.id: service for service in found}

        missing = [service_id for service_id in distinct_ids if service_id not in by_id]
        if missing:
            logger.debug(f"Unresolved services for salon {salon_id}: {missing}")
            raise exceptions.services_not_found(missing)

        return by_id
