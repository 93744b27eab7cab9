"""
==============================================================================
Pricing Validator Tests
==============================================================================

Tests for composition normalization and package price validation.

==============================================================================
"""

import pytest

from salon_packages.core.exceptions import AppException
from salon_packages.schemas.package import PackageServiceEntryIn
from salon_packages.services.pricing import (
    PricingValidator,
    ServiceEntry,
    compute_discount_percentage,
    normalize_service_entries,
)


class TestNormalizeServiceEntries:
    """Tests for composition normalization."""

    def test_bare_ids_default_to_quantity_one(self):
        """Test legacy id lists become quantity-1 entries in order."""
        entries = normalize_service_entries(service_ids=["a", "b"])
        assert entries == [ServiceEntry("a", 1), ServiceEntry("b", 1)]

    def test_entries_win_over_bare_ids(self):
        """Test services list takes precedence over service_ids."""
        entries = normalize_service_entries(
            services=[PackageServiceEntryIn(service_id="x", quantity=3)],
            service_ids=["a", "b"]
        )
        assert entries == [ServiceEntry("x", 3)]

    def test_repeated_ids_are_merged(self):
        """Test duplicates merge at the first position with summed quantity."""
        entries = normalize_service_entries(service_ids=["a", "b", "a"])
        assert entries == [ServiceEntry("a", 2), ServiceEntry("b", 1)]

    def test_empty_composition(self):
        """Test nothing given yields no entries."""
        assert normalize_service_entries() == []


class TestDiscountPercentage:
    """Tests for whole-number discount rounding."""

    def test_exact_discount(self):
        assert compute_discount_percentage(150000, 120000) == 20

    def test_rounds_half_up(self):
        """Test 12.5% rounds to 13%."""
        assert compute_discount_percentage(80000, 70000) == 13

    def test_rounds_down_below_half(self):
        """Test 50.0007% rounds to 50%."""
        assert compute_discount_percentage(150000, 74999) == 50


class TestPricingValidator:
    """Tests for PricingValidator against the salon catalog."""

    def test_valid_package_quote(self, db, salon, services):
        """Test duration, regular price and discount are derived."""
        validator = PricingValidator(db)
        quote = validator.validate(
            salon.id,
            [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
            120000
        )
        assert quote.total_duration_minutes == 90
        assert quote.regular_price_in_paisa == 150000
        assert quote.discount_percentage == 20
        assert quote.savings_paisa == 30000

    def test_quantities_multiply(self, db, salon, services):
        """Test a single service with quantity two is a valid package."""
        validator = PricingValidator(db)
        quote = validator.validate(salon.id, [ServiceEntry(services[0].id, 2)], 150000)
        assert quote.total_duration_minutes == 120
        assert quote.regular_price_in_paisa == 200000
        assert quote.discount_percentage == 25

    def test_single_instance_rejected(self, db, salon, services):
        """Test fewer than two service instances is rejected."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(salon.id, [ServiceEntry(services[0].id)], 90000)
        assert exc_info.value.code == "INVALID_COMPOSITION"
        assert exc_info.value.details["service_instances"] == 1

    def test_unknown_service_rejected(self, db, salon, services):
        """Test unknown ids are reported."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(
                salon.id,
                [ServiceEntry(services[0].id), ServiceEntry("missing")],
                100000
            )
        assert exc_info.value.code == "SERVICE_NOT_FOUND"
        assert exc_info.value.details["service_ids"] == ["missing"]

    def test_inactive_service_rejected(self, db, salon, services):
        """Test an inactive service counts as not found."""
        services[1].is_active = 0
        db.commit()

        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(
                salon.id,
                [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
                120000
            )
        assert exc_info.value.code == "SERVICE_NOT_FOUND"

    def test_other_salon_service_rejected(self, db, other_salon, services):
        """Test services must belong to the package's salon."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(
                other_salon.id,
                [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
                120000
            )
        assert exc_info.value.code == "SERVICE_NOT_FOUND"

    def test_price_equal_to_regular_rejected(self, db, salon, services):
        """Test a package must be cheaper than its parts."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(
                salon.id,
                [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
                150000
            )
        assert exc_info.value.code == "PRICE_NOT_DISCOUNTED"

    def test_half_price_allowed(self, db, salon, services):
        """Test exactly 50% off is at the ceiling and allowed."""
        validator = PricingValidator(db)
        quote = validator.validate(
            salon.id,
            [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
            75000
        )
        assert quote.discount_percentage == 50

    def test_discount_over_ceiling_rejected(self, db, salon, services):
        """Test 51% off is rejected."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(
                salon.id,
                [ServiceEntry(services[0].id), ServiceEntry(services[1].id)],
                74000
            )
        assert exc_info.value.code == "DISCOUNT_TOO_STEEP"
        assert exc_info.value.details["discount_percentage"] == 51

    def test_composition_checked_before_services(self, db, salon):
        """Test composition size is validated before service lookup."""
        validator = PricingValidator(db)
        with pytest.raises(AppException) as exc_info:
            validator.validate(salon.id, [ServiceEntry("missing")], 100)
        assert exc_info.value.code == "INVALID_COMPOSITION"
