"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for request-scoped resources.

This module implements:
- get_db(): request-scoped database session
- get_app_settings(): application settings
- get_operational_clock(): clock bound to the operational timezone

Design Pattern: Dependency Injection
-----------------------------------
Routes receive their session and clock from FastAPI, so tests can swap
either through app.dependency_overrides (an in-memory database, a frozen
"now") without touching the services.

Dependency Hierarchy:
--------------------
                    ┌────────────────────┐
                    │ get_app_settings() │
                    └─────────┬──────────┘
                              │
        ┌─────────────────────┴─────────────────────┐
        │                                           │
┌───────▼────────┐                       ┌──────────▼────────────┐
│    get_db()    │                       │ get_operational_clock │
└────────────────┘                       └───────────────────────┘

Usage Examples:
--------------
    @router.get("/packages/{package_id}/availability")
    async def check(
        package_id: str,
        db: Session = Depends(get_db),
        clock: OperationalClock = Depends(get_operational_clock),
    ):
        ...

==============================================================================
"""

from __future__ import annotations

import logging

from fastapi import Depends

from salon_packages.config import Settings, get_settings
from salon_packages.db.database import get_db
from salon_packages.utils.timekeeping import OperationalClock


# Module logger
logger = logging.getLogger(__name__)


def get_app_settings() -> Settings:
    """FastAPI dependency returning the global settings."""
    return get_settings()


def get_operational_clock(
    settings: Settings = Depends(get_app_settings)
) -> OperationalClock:
    """
    FastAPI dependency returning the operational clock.

    Override in tests to pin "now".
    """
    return OperationalClock(settings.timezone)


__all__ = [
    "get_db",
    "get_app_settings",
    "get_operational_clock",
]
