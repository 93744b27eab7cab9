"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the salon service package engine.

This module defines:
- BookingStatus: Enum for booking states
- PackageGender: Enum for package gender targeting
- Salon, Service, Staff: catalog shapes the engine reads
- ServicePackage: the salon-owned bundle
- PackageServiceEntry: ordered (service, quantity) line items of a package
- Booking: the generic booking record the engine writes into
- PackageBooking: frozen price/savings snapshot of a package booking

Database Schema:
---------------

    ┌──────────────┐        ┌──────────────────────────────────────────┐
    │    salons    │ 1:N    │             service_packages              │
    ├──────────────┤───────▶├──────────────────────────────────────────┤
    │ id (PK)      │        │ id (PK), salon_id (FK)                    │
    │ name         │        │ name, description, category, gender       │
    └──────────────┘        │ total_duration_minutes                    │
           │                │ package_price_in_paisa                    │
           │ 1:N            │ regular_price_in_paisa                    │
           ▼                │ discount_percentage                       │
    ┌──────────────┐        │ valid_from, valid_until, available_days   │
    │   services   │        │ available_time_start/end                  │
    ├──────────────┤        │ min_advance_booking_hours                 │
    │ id, salon_id │        │ max_bookings_per_day                      │
    │ duration     │        │ is_active, is_featured, sort_order        │
    │ price        │        │ booking_count                             │
    └──────────────┘        └──────────────────────────────────────────┘
           │                       │ 1:N (CASCADE)          │ 1:N
           │                       ▼                        ▼
           │        ┌──────────────────────────┐  ┌────────────────────────┐
           └───────▶│     package_services     │  │    package_bookings    │
                    ├──────────────────────────┤  ├────────────────────────┤
                    │ package_id, service_id   │  │ booking_id (UNIQUE)    │
                    │ salon_id (same-salon FK) │  │ package_price_at_bkg   │
                    │ sequence_order, quantity │  │ regular_price_at_bkg   │
                    └──────────────────────────┘  │ savings_paisa          │
                                                  └────────────────────────┘
                                                             │ 1:1
                                                             ▼
                                                  ┌────────────────────────┐
                                                  │        bookings        │
                                                  ├────────────────────────┤
                                                  │ staff_id, service_id   │
                                                  │ booking_date/time      │
                                                  │ status, package_id     │
                                                  │ is_package_booking     │
                                                  └────────────────────────┘

Flags are stored as 1/0 integers, matching the rest of the marketplace schema.
Monetary amounts are integers in paisa.

=============================================================================
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, relationship

from salon_packages.db.database import Base
from salon_packages.utils.timekeeping import utc_now


def _uuid() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# ENUMS
# =============================================================================

class BookingStatus(str, enum.Enum):
    """
    Booking status enumeration.

    Valid transitions (owned by the booking lifecycle, not this engine):
    - PENDING → CONFIRMED | CANCELLED
    - CONFIRMED → COMPLETED | CANCELLED
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value

    @property
    def occupies_staff(self) -> bool:
        """Check if a booking in this status blocks the staff member's time."""
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    @property
    def counts_toward_quota(self) -> bool:
        """Check if a booking in this status consumes daily package capacity."""
        return self != BookingStatus.CANCELLED


class PackageGender(str, enum.Enum):
    """Gender targeting for a package."""

    MALE = "male"
    FEMALE = "female"
    UNISEX = "unisex"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# CATALOG MODELS (read by the engine)
# =============================================================================

class Salon(Base):
    """Salon identity as seen by the package engine."""

    __tablename__ = "salons"

    id: str = Column(String(36), primary_key=True, default=_uuid)

    name: str = Column(String(200), nullable=False)

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    packages: Mapped[List["ServicePackage"]] = relationship(
        "ServicePackage",
        back_populates="salon",
    )

    def __repr__(self) -> str:
        return f"Salon(id={self.id!r}, name={self.name!r})"


class Service(Base):
    """
    A bookable salon service.

    Attributes:
        duration_minutes: How long one instance of the service takes
        price_in_paisa: Regular price of one instance
        is_active: 1 while the service is offered, 0 once withdrawn
    """

    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("id", "salon_id", name="services_id_salon_id_unique"),
    )

    id: str = Column(String(36), primary_key=True, default=_uuid)

    salon_id: str = Column(
        String(36),
        ForeignKey("salons.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: str = Column(String(200), nullable=False)

    description: Optional[str] = Column(Text, nullable=True)

    duration_minutes: int = Column(Integer, nullable=False)

    price_in_paisa: int = Column(Integer, nullable=False)

    currency: str = Column(String(3), default="INR", nullable=False)

    is_active: int = Column(Integer, default=1, nullable=False)

    category: Optional[str] = Column(String(50), nullable=True)

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return (
            f"Service(id={self.id!r}, name={self.name!r}, "
            f"duration={self.duration_minutes}, price={self.price_in_paisa})"
        )


class Staff(Base):
    """Salon staff member who can be assigned to bookings."""

    __tablename__ = "staff"
    __table_args__ = (
        UniqueConstraint("id", "salon_id", name="staff_id_salon_id_unique"),
    )

    id: str = Column(String(36), primary_key=True, default=_uuid)

    salon_id: str = Column(
        String(36),
        ForeignKey("salons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: str = Column(String(200), nullable=False)

    email: Optional[str] = Column(String(255), nullable=True)

    phone: Optional[str] = Column(String(50), nullable=True)

    role: Optional[str] = Column(String(100), nullable=True)

    is_active: int = Column(Integer, default=1, nullable=False)

    def __repr__(self) -> str:
        return f"Staff(id={self.id!r}, name={self.name!r}, is_active={self.is_active})"


# =============================================================================
# SERVICE PACKAGE MODEL
# =============================================================================

class ServicePackage(Base):
    """
    Salon-defined bundle of two or more service instances sold at a
    combined discounted price.

    The pricing columns total_duration_minutes, regular_price_in_paisa and
    discount_percentage are derived by the pricing validator and are never
    set directly by callers.

    Invariants (enforced by PricingValidator on create and update):
    - package_price_in_paisa < regular_price_in_paisa
    - discount_percentage <= the configured ceiling (50)
    - sum of entry quantities >= 2

    Relationships:
        salon: Owning salon
        entries: Ordered package line items
        package_bookings: Frozen booking snapshots
    """

    __tablename__ = "service_packages"
    __table_args__ = (
        UniqueConstraint("id", "salon_id", name="service_packages_id_salon_id_unique"),
    )

    # =========================================================================
    # IDENTITY & DESCRIPTIVE COLUMNS
    # =========================================================================

    id: str = Column(String(36), primary_key=True, default=_uuid)

    salon_id: str = Column(
        String(36),
        ForeignKey("salons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: str = Column(String(100), nullable=False)

    description: Optional[str] = Column(Text, nullable=True)

    category: Optional[str] = Column(String(50), nullable=True, index=True)

    image_url: Optional[str] = Column(Text, nullable=True)

    gender: Optional[PackageGender] = Column(
        Enum(PackageGender, values_callable=_enum_values, name="package_gender"),
        nullable=True,
    )

    # =========================================================================
    # PRICING COLUMNS
    # =========================================================================

    total_duration_minutes: int = Column(
        Integer,
        nullable=False,
        doc="Sum of service durations times quantities"
    )

    package_price_in_paisa: int = Column(
        Integer,
        nullable=False,
        doc="Discounted package price"
    )

    regular_price_in_paisa: int = Column(
        Integer,
        nullable=False,
        doc="Total price if the services were booked separately"
    )

    discount_percentage: Optional[int] = Column(Integer, nullable=True)

    currency: str = Column(String(3), default="INR", nullable=False)

    # =========================================================================
    # AVAILABILITY POLICY COLUMNS
    # =========================================================================

    valid_from: Optional[datetime] = Column(
        DateTime,
        nullable=True,
        doc="Start of the validity window (naive UTC)"
    )

    valid_until: Optional[datetime] = Column(
        DateTime,
        nullable=True,
        index=True,
        doc="End of the validity window (naive UTC)"
    )

    available_days: Optional[List[str]] = Column(
        JSON,
        nullable=True,
        doc="Allowed weekday abbreviations, e.g. ['Sat', 'Sun']"
    )

    available_time_start: Optional[str] = Column(String(5), nullable=True)

    available_time_end: Optional[str] = Column(String(5), nullable=True)

    min_advance_booking_hours: Optional[int] = Column(Integer, nullable=True)

    max_bookings_per_day: Optional[int] = Column(Integer, nullable=True)

    # =========================================================================
    # LIFECYCLE COLUMNS
    # =========================================================================

    is_active: int = Column(Integer, default=1, nullable=False, index=True)

    is_featured: int = Column(Integer, default=0, nullable=False)

    sort_order: int = Column(Integer, default=0, nullable=False)

    booking_count: int = Column(
        Integer,
        default=0,
        nullable=False,
        doc="Lifetime number of bookings (advisory, not a capacity gate)"
    )

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    updated_at: datetime = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    # =========================================================================
    # RELATIONSHIPS
    # =========================================================================

    salon: Mapped["Salon"] = relationship("Salon", back_populates="packages")

    entries: Mapped[List["PackageServiceEntry"]] = relationship(
        "PackageServiceEntry",
        back_populates="package",
        primaryjoin="ServicePackage.id == PackageServiceEntry.package_id",
        foreign_keys="PackageServiceEntry.package_id",
        cascade="all, delete-orphan",
        order_by="PackageServiceEntry.sequence_order",
    )

    package_bookings: Mapped[List["PackageBooking"]] = relationship(
        "PackageBooking",
        back_populates="package",
    )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def savings_paisa(self) -> int:
        """Amount saved compared to booking the services separately."""
        return self.regular_price_in_paisa - self.package_price_in_paisa

    @property
    def total_service_instances(self) -> int:
        return sum(entry.quantity for entry in self.entries)

    @property
    def primary_service_id(self) -> Optional[str]:
        """First listed service, used as the booking's representative service."""
        if not self.entries:
            return None
        return self.entries[0].service_id

    def __repr__(self) -> str:
        return (
            f"ServicePackage(id={self.id!r}, name={self.name!r}, "
            f"price={self.package_price_in_paisa}/{self.regular_price_in_paisa}, "
            f"is_active={self.is_active})"
        )


class PackageServiceEntry(Base):
    """
    One (service, quantity, order) line item belonging to a package.

    The salon_id column is denormalized so the composite foreign keys can
    guarantee the package and the service belong to the same salon.
    """

    __tablename__ = "package_services"
    __table_args__ = (
        UniqueConstraint(
            "package_id", "service_id", name="package_services_package_service_unique"
        ),
        ForeignKeyConstraint(
            ["package_id", "salon_id"],
            ["service_packages.id", "service_packages.salon_id"],
            name="package_services_package_salon_fk",
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["service_id", "salon_id"],
            ["services.id", "services.salon_id"],
            name="package_services_service_salon_fk",
            ondelete="CASCADE",
        ),
    )

    id: str = Column(String(36), primary_key=True, default=_uuid)

    package_id: str = Column(String(36), nullable=False, index=True)

    service_id: str = Column(String(36), nullable=False, index=True)

    salon_id: str = Column(String(36), nullable=False)

    sequence_order: int = Column(Integer, default=1, nullable=False)

    quantity: int = Column(Integer, default=1, nullable=False)

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    package: Mapped["ServicePackage"] = relationship(
        "ServicePackage",
        back_populates="entries",
        primaryjoin="ServicePackage.id == PackageServiceEntry.package_id",
        foreign_keys=[package_id],
    )

    service: Mapped["Service"] = relationship(
        "Service",
        primaryjoin="Service.id == PackageServiceEntry.service_id",
        foreign_keys=[service_id],
        viewonly=True,
    )

    def __repr__(self) -> str:
        return (
            f"PackageServiceEntry(package={self.package_id!r}, "
            f"service={self.service_id!r}, order={self.sequence_order}, "
            f"qty={self.quantity})"
        )


# =============================================================================
# BOOKING MODELS
# =============================================================================

class Booking(Base):
    """
    Generic booking record.

    The engine writes package bookings into this table (tagged with
    package_id and is_package_booking=1) and reads staff bookings from it
    for conflict detection. Its wider lifecycle belongs to the booking
    subsystem.
    """

    __tablename__ = "bookings"

    id: str = Column(String(36), primary_key=True, default=_uuid)

    salon_id: str = Column(
        String(36),
        ForeignKey("salons.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    service_id: Optional[str] = Column(
        String(36),
        ForeignKey("services.id", ondelete="SET NULL"),
        nullable=True,
    )

    staff_id: Optional[str] = Column(
        String(36),
        ForeignKey("staff.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    package_id: Optional[str] = Column(
        String(36),
        ForeignKey("service_packages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    user_id: Optional[str] = Column(String(36), nullable=True)

    guest_session_id: Optional[str] = Column(String(100), nullable=True)

    customer_name: str = Column(String(200), nullable=False)

    customer_email: str = Column(String(255), nullable=False)

    customer_phone: str = Column(String(50), nullable=False)

    salon_name: Optional[str] = Column(String(200), nullable=True)

    booking_date: str = Column(
        String(10),
        nullable=False,
        index=True,
        doc="YYYY-MM-DD in the operational timezone"
    )

    booking_time: str = Column(
        String(5),
        nullable=False,
        doc="HH:MM 24-hour in the operational timezone"
    )

    status: BookingStatus = Column(
        Enum(BookingStatus, values_callable=_enum_values, name="booking_status"),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )

    total_amount_paisa: int = Column(Integer, nullable=False)

    currency: str = Column(String(3), default="INR", nullable=False)

    payment_method: Optional[str] = Column(String(20), nullable=True)

    notes: Optional[str] = Column(Text, nullable=True)

    is_package_booking: int = Column(Integer, default=0, nullable=False)

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    updated_at: datetime = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    service: Mapped[Optional["Service"]] = relationship("Service")

    staff: Mapped[Optional["Staff"]] = relationship("Staff")

    package_booking: Mapped[Optional["PackageBooking"]] = relationship(
        "PackageBooking",
        back_populates="booking",
        uselist=False,
    )

    def __repr__(self) -> str:
        return (
            f"Booking(id={self.id!r}, date={self.booking_date}, "
            f"time={self.booking_time}, status={self.status.value!r})"
        )


class PackageBooking(Base):
    """
    Point-in-time snapshot linking a Booking to the package that produced it.

    Prices are copied from the package at booking time, so later edits to
    the package never alter historical revenue or savings. Rows are
    immutable once written.
    """

    __tablename__ = "package_bookings"

    id: str = Column(String(36), primary_key=True, default=_uuid)

    booking_id: str = Column(
        String(36),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    package_id: str = Column(
        String(36),
        ForeignKey("service_packages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    salon_id: str = Column(
        String(36),
        ForeignKey("salons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    package_price_at_booking: int = Column(Integer, nullable=False)

    regular_price_at_booking: int = Column(Integer, nullable=False)

    savings_paisa: int = Column(Integer, nullable=False)

    created_at: datetime = Column(DateTime, default=utc_now, nullable=False)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="package_booking")

    package: Mapped["ServicePackage"] = relationship(
        "ServicePackage",
        back_populates="package_bookings",
    )

    def __repr__(self) -> str:
        return (
            f"PackageBooking(booking={self.booking_id!r}, "
            f"package={self.package_id!r}, savings={self.savings_paisa})"
        )
