"""
==============================================================================
Service Package Schemas Module
==============================================================================

Request and response schemas for service package operations.

Includes:
- Composition as (service_id, quantity) entries, or the legacy bare
  service_ids list (each implicitly quantity 1)
- Availability policy fields (validity window, weekdays, time window,
  lead time, daily cap)
- Partial updates where an omitted key leaves a field untouched and an
  explicit null clears it

==============================================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from salon_packages.db.models import PackageGender
from salon_packages.utils.currency import format_inr
from salon_packages.utils.timekeeping import to_naive_utc
from salon_packages.utils.validators import TimeOfDayValidator, WeekdayListValidator


_time_validator = TimeOfDayValidator()
_weekday_validator = WeekdayListValidator()


def _normalize_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    is_valid, normalized, error = _time_validator.validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


def _normalize_days(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    is_valid, normalized, error = _weekday_validator.validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


# =============================================================================
# CREATE SCHEMAS
# =============================================================================

class PackageServiceEntryIn(BaseModel):
    """One service line in a package composition."""
    service_id: str = Field(..., min_length=1, max_length=36)
    quantity: int = Field(default=1, ge=1, le=20)

    @field_validator("service_id")
    @classmethod
    def strip_service_id(cls, v: str) -> str:
        return v.strip()


class PackageCreate(BaseModel):
    """Package creation payload."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=2048)
    gender: Optional[PackageGender] = None

    services: Optional[List[PackageServiceEntryIn]] = None
    service_ids: Optional[List[str]] = None

    package_price_in_paisa: int = Field(..., gt=0)

    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    available_days: Optional[List[str]] = None
    available_time_start: Optional[str] = None
    available_time_end: Optional[str] = None
    min_advance_booking_hours: Optional[int] = Field(default=None, ge=0, le=8760)
    max_bookings_per_day: Optional[int] = Field(default=None, ge=1)

    is_featured: bool = False
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("available_time_start", "available_time_end")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_time(v)

    @field_validator("available_days")
    @classmethod
    def validate_days(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_days(v)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_instant(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_composition_present(self):
        if not self.services and not self.service_ids:
            raise ValueError("Either services or service_ids must be provided")
        return self

    @model_validator(mode="after")
    def validate_windows(self):
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValueError("valid_from must not be after valid_until")
        if (
            self.available_time_start
            and self.available_time_end
            and self.available_time_start > self.available_time_end
        ):
            raise ValueError("available_time_start must not be after available_time_end")
        return self


# =============================================================================
# UPDATE SCHEMAS
# =============================================================================

NON_CLEARABLE_FIELDS = (
    "name",
    "is_featured",
    "sort_order",
    "is_active",
    "package_price_in_paisa",
    "services",
    "service_ids",
)


class PackageUpdate(BaseModel):
    """
    Partial package update.

    Omitted keys are left untouched. An explicit null clears an optional
    field; the fields in NON_CLEARABLE_FIELDS reject null.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=2048)
    gender: Optional[PackageGender] = None

    services: Optional[List[PackageServiceEntryIn]] = None
    service_ids: Optional[List[str]] = None

    package_price_in_paisa: Optional[int] = Field(default=None, gt=0)

    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    available_days: Optional[List[str]] = None
    available_time_start: Optional[str] = None
    available_time_end: Optional[str] = None
    min_advance_booking_hours: Optional[int] = Field(default=None, ge=0, le=8760)
    max_bookings_per_day: Optional[int] = Field(default=None, ge=1)

    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator(*NON_CLEARABLE_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("available_time_start", "available_time_end")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_time(v)

    @field_validator("available_days")
    @classmethod
    def validate_days(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_days(v)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_instant(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None

    @property
    def changes_composition(self) -> bool:
        return bool({"services", "service_ids"} & self.model_fields_set)

    @property
    def changes_price(self) -> bool:
        return "package_price_in_paisa" in self.model_fields_set


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PackageServiceItem(BaseModel):
    """Service resolved inside a package, in sequence order."""
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_in_paisa: int
    category: Optional[str] = None
    sequence_order: int
    quantity: int

    @classmethod
    def from_model(cls, entry):
        service = entry.service
        return cls(
            id=entry.service_id,
            name=service.name if service else "unknown",
            description=service.description if service else None,
            duration_minutes=service.duration_minutes if service else 0,
            price_in_paisa=service.price_in_paisa if service else 0,
            category=service.category if service else None,
            sequence_order=entry.sequence_order,
            quantity=entry.quantity
        )


class SalonBrief(BaseModel):
    id: str
    name: str


class PackageDetail(BaseModel):
    """Package with its ordered services and derived savings."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    salon_id: str
    name: str
    description: Optional[str]
    category: Optional[str]
    image_url: Optional[str]
    gender: Optional[PackageGender]
    total_duration_minutes: int
    package_price_in_paisa: int
    regular_price_in_paisa: int
    discount_percentage: Optional[int]
    currency: str
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]
    available_days: Optional[List[str]]
    available_time_start: Optional[str]
    available_time_end: Optional[str]
    min_advance_booking_hours: Optional[int]
    max_bookings_per_day: Optional[int]
    is_active: bool
    is_featured: bool
    sort_order: int
    booking_count: int
    created_at: datetime
    updated_at: datetime
    services: List[PackageServiceItem]
    salon: Optional[SalonBrief]
    savings_paisa: int
    savings_formatted: str
    package_price_formatted: str
    regular_price_formatted: str

    @classmethod
    def from_model(cls, package):
        return cls(
            id=package.id,
            salon_id=package.salon_id,
            name=package.name,
            description=package.description,
            category=package.category,
            image_url=package.image_url,
            gender=package.gender,
            total_duration_minutes=package.total_duration_minutes,
            package_price_in_paisa=package.package_price_in_paisa,
            regular_price_in_paisa=package.regular_price_in_paisa,
            discount_percentage=package.discount_percentage,
            currency=package.currency,
            valid_from=package.valid_from,
            valid_until=package.valid_until,
            available_days=package.available_days,
            available_time_start=package.available_time_start,
            available_time_end=package.available_time_end,
            min_advance_booking_hours=package.min_advance_booking_hours,
            max_bookings_per_day=package.max_bookings_per_day,
            is_active=package.is_active == 1,
            is_featured=package.is_featured == 1,
            sort_order=package.sort_order,
            booking_count=package.booking_count,
            created_at=package.created_at,
            updated_at=package.updated_at,
            services=[PackageServiceItem.from_model(e) for e in package.entries],
            salon=SalonBrief(id=package.salon.id, name=package.salon.name) if package.salon else None,
            savings_paisa=package.savings_paisa,
            savings_formatted=format_inr(package.savings_paisa),
            package_price_formatted=format_inr(package.package_price_in_paisa),
            regular_price_formatted=format_inr(package.regular_price_in_paisa)
        )


class PackageResponse(BaseModel):
    """Single package response."""
    success: bool = Field(default=True)
    package: PackageDetail


class PackageListResponse(BaseModel):
    """
    Package list response.

    `categories` holds the distinct categories present in the public
    listing, or the full category catalog for the management listing.
    """
    success: bool = Field(default=True)
    packages: List[PackageDetail]
    categories: List[str]
    total_count: int


class CategoryListResponse(BaseModel):
    success: bool = Field(default=True)
    categories: List[str]


class RetirementResponse(BaseModel):
    """Result of retiring a service from all packages that contain it."""
    success: bool = Field(default=True)
    service_id: str
    deactivated_packages: int
