"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- packages: Package definition and lookup
- bookings: Availability checks and package bookings
- analytics: Package analytics

==============================================================================
"""

from . import health, packages, bookings, analytics

__all__ = ["health", "packages", "bookings", "analytics"]
