"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

This package provides:
- DatabaseManager: Singleton class for database connections
- ORM models: ServicePackage, PackageServiceEntry, PackageBooking and the
  Salon/Service/Staff/Booking shapes the engine reads and writes
- Enums: BookingStatus, PackageGender
- Database initialization utilities

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SQLAlchemy ORM model classes
└── init_db.py    - DatabaseInitializer for setup

Usage:
------
    from salon_packages.db import DatabaseManager, ServicePackage, init_db

    db_manager = DatabaseManager()
    with db_manager.session_scope() as session:
        packages = session.query(ServicePackage).all()

==============================================================================
"""

from .database import Base, DatabaseManager, build_engine, get_db
from .models import (
    Booking,
    BookingStatus,
    PackageBooking,
    PackageGender,
    PackageServiceEntry,
    Salon,
    Service,
    ServicePackage,
    Staff,
)
from .init_db import DatabaseInitializer, init_db

__all__ = [
    # Database management
    "Base",
    "DatabaseManager",
    "build_engine",
    "get_db",
    # Models
    "Salon",
    "Service",
    "Staff",
    "Booking",
    "ServicePackage",
    "PackageServiceEntry",
    "PackageBooking",
    # Enums
    "BookingStatus",
    "PackageGender",
    # Initialization
    "DatabaseInitializer",
    "init_db",
]
