"""
==============================================================================
Database Initialization Module
==============================================================================

Database initialization and setup utilities for the package engine.

This module implements:
- DatabaseInitializer: Class for database setup operations
- Table creation and verification
- Development utilities (demo salon seed, stats)

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Verify the connection
3. Log initialization status

Usage:
------
    from salon_packages.db import init_db, DatabaseInitializer

    # Quick initialization
    init_db()

    # Or with more control
    initializer = DatabaseInitializer()
    initializer.create_tables()
    initializer.seed_demo_salon()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_packages.config import get_settings
from salon_packages.db.database import DatabaseManager
from salon_packages.db.models import (
    Booking,
    PackageBooking,
    Salon,
    Service,
    ServicePackage,
    Staff,
)


# Module logger
logger = logging.getLogger(__name__)


# Demo catalog for local development: (name, duration minutes, price paisa, category)
DEMO_SERVICES = (
    ("Haircut", 45, 60000, "Hair"),
    ("Beard Trim", 20, 25000, "Grooming"),
    ("Head Massage", 30, 40000, "Spa"),
    ("Facial", 60, 150000, "Skin"),
)


class DatabaseInitializer:
    """
    Database initialization manager.

    Handles table creation for deployment and the seed and stats helpers used
    during development.

    Attributes:
        _db_manager: DatabaseManager instance
        _settings: Application settings
        _session: Optional externally owned session

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        self._db_manager = db_manager or DatabaseManager()
        self._settings = get_settings()
        self._session = session

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def _get_session(self) -> Session:
        if self._session is not None:
            return self._session
        return self._db_manager.get_session()

    def _release(self, session: Session) -> None:
        if self._session is None:
            session.close()

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """
        Create all database tables from ORM models.

        Idempotent: only creates tables that don't already exist.
        """
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def verify_tables(self) -> bool:
        """
        Verify that the package tables exist and are queryable.

        Returns:
            True if all tables exist, False otherwise
        """
        session = self._get_session()
        try:
            session.query(ServicePackage).first()
            session.query(PackageBooking).first()
            session.query(Booking).first()
            logger.debug("Database tables verified successfully")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Table verification failed: {e}")
            return False
        finally:
            self._release(session)

    # =========================================================================
    # INITIALIZATION METHODS
    # =========================================================================

    def initialize(self) -> None:
        """
        Perform full database initialization.

        Recommended for application startup.
        """
        logger.info("=" * 60)
        logger.info("Initializing database...")
        logger.info("=" * 60)

        self.create_tables()

        if self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")

        logger.info("=" * 60)
        logger.info("Database initialization complete")
        logger.info("=" * 60)

    # =========================================================================
    # DEVELOPMENT UTILITIES
    # =========================================================================

    def seed_demo_salon(self, salon_name: str = "Demo Salon") -> Salon:
        """
        Seed a salon with a handful of services and one stylist.

        Only works outside production. Returns the existing salon when one
        with the same name is already present.
        """
        if self._settings.is_production:
            logger.error("Cannot seed demo data in production!")
            raise RuntimeError("Demo data seeding not allowed in production")

        session = self._get_session()

        try:
            existing = session.query(Salon).filter(Salon.name == salon_name).first()
            if existing:
                logger.info(f"Demo salon already exists: {existing.id}")
                return existing

            salon = Salon(name=salon_name)
            session.add(salon)
            session.flush()

            for name, duration, price, category in DEMO_SERVICES:
                session.add(Service(
                    salon_id=salon.id,
                    name=name,
                    duration_minutes=duration,
                    price_in_paisa=price,
                    currency=self._settings.currency,
                    category=category,
                ))

            session.add(Staff(salon_id=salon.id, name="Demo Stylist", role="stylist"))

            session.commit()
            logger.info(f"✅ Demo salon seeded: {salon.id}")
            return salon

        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to seed demo salon: {e}")
            raise
        finally:
            self._release(session)

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """
        Get database statistics.

        Returns:
            Dictionary with table counts
        """
        session = self._get_session()

        try:
            return {
                "packages": {
                    "total": session.query(ServicePackage).count(),
                    "active": session.query(ServicePackage).filter(
                        ServicePackage.is_active == 1
                    ).count(),
                    "featured": session.query(ServicePackage).filter(
                        ServicePackage.is_featured == 1
                    ).count(),
                },
                "package_bookings": {
                    "total": session.query(PackageBooking).count(),
                },
                "salons": {
                    "total": session.query(Salon).count(),
                },
            }
        finally:
            self._release(session)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> None:
    """
    Initialize the database (convenience function).

    Usage:
        from salon_packages.db import init_db
        init_db()
    """
    initializer = DatabaseInitializer()
    initializer.initialize()
