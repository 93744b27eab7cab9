"""
==============================================================================
Package Expiry Service Module
==============================================================================

Background maintenance that retires packages whose validity window lapsed.

This module implements:
- ExpirySweeper: Deactivates expired packages in one batch update
- ExpirySweepTaskManager: Background asyncio task running the sweeper

Background Task:
---------------
The ExpirySweepTaskManager runs a background asyncio task that, every
`expiry_sweep_interval_minutes`, sets is_active = 0 on every active package
with valid_until <= now. The sweep is idempotent: a second run over the
same state touches nothing. Bookings already written are never cancelled.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_packages.config import Settings, get_settings
from salon_packages.core import exceptions
from salon_packages.db.database import DatabaseManager
from salon_packages.db.models import ServicePackage
from salon_packages.utils.timekeeping import OperationalClock


# Module logger
logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Deactivates packages past their valid_until.

    Attributes:
        _db: Database session
        _clock: Operational clock (injectable for tests)

    Example:
        >>> sweeper = ExpirySweeper(db_session)
        >>> count = sweeper.deactivate_expired()
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        clock: Optional[OperationalClock] = None
    ) -> None:
        settings = settings or get_settings()
        self._db = db
        self._clock = clock or OperationalClock(settings.timezone)

    def deactivate_expired(self) -> int:
        """
        Deactivate every active package whose validity window has ended.

        Returns:
            Number of packages deactivated
        """
        now = self._clock.now_naive_utc()

        try:
            result = self._db.execute(
                update(ServicePackage)
                .where(
                    ServicePackage.is_active == 1,
                    ServicePackage.valid_until.is_not(None),
                    ServicePackage.valid_until <= now
                )
                .values(is_active=0, updated_at=now)
            )
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Expiry sweep failed")
            raise exceptions.storage_error("deactivate expired packages")

        count = result.rowcount or 0
        if count > 0:
            logger.info(f"🗑️ Deactivated {count} expired packages")
        else:
            logger.debug("Expiry sweep found no expired packages")

        return count

    def count_pending_expiry(self) -> int:
        """Count active packages the next sweep would deactivate."""
        try:
            return self._db.query(ServicePackage).filter(
                ServicePackage.is_active == 1,
                ServicePackage.valid_until.is_not(None),
                ServicePackage.valid_until <= self._clock.now_naive_utc()
            ).count()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Failed to count packages pending expiry")
            raise exceptions.storage_error("count packages pending expiry")


class ExpirySweepTaskManager:
    """
    Manager for the background expiry sweep task.

    Example:
        >>> manager = ExpirySweepTaskManager()
        >>> manager.start()  # Start background task
        >>> # ... application runs ...
        >>> manager.stop()   # Stop on shutdown
    """

    _instance: Optional[ExpirySweepTaskManager] = None

    def __new__(cls) -> ExpirySweepTaskManager:
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, '_initialized', False):
            return

        self._settings = get_settings()
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._initialized = True

    def run_once(self) -> int:
        """Run a single sweep in a fresh session."""
        with DatabaseManager().session_scope() as session:
            return ExpirySweeper(session, self._settings).deactivate_expired()

    async def _sweep_loop(self) -> None:
        """Background sweep loop."""
        logger.info("🔄 Expiry sweep background task started")

        while self._running:
            try:
                await asyncio.sleep(self._settings.expiry_sweep_interval_minutes * 60)

                if not self._settings.expiry_sweep_enabled:
                    continue

                logger.debug("Running scheduled expiry sweep...")
                count = await asyncio.to_thread(self.run_once)

                if count:
                    logger.info(f"✅ Expiry sweep: deactivated {count} packages")

            except asyncio.CancelledError:
                logger.info("🛑 Expiry sweep task cancelled")
                break
            except Exception as e:
                logger.error(f"Expiry sweep task error: {e}")

    def start(self) -> asyncio.Task:
        """
        Start the background sweep task.

        Returns:
            The asyncio Task object
        """
        if self._task is None or self._task.done():
            self._running = True
            self._task = asyncio.create_task(self._sweep_loop())
            logger.info("✅ Expiry sweep task started")
        return self._task

    def stop(self) -> None:
        """Stop the background sweep task."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("🛑 Expiry sweep task stopped")

    @property
    def is_running(self) -> bool:
        """Check if task is running."""
        return self._running and self._task is not None and not self._task.done()
