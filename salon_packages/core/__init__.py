"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- Exception factory functions for every package engine error code
- FastAPI dependencies for sessions, settings and the operational clock

Modules:
--------
- exceptions: AppException class and error factory functions
- dependencies: FastAPI dependency injection functions

Usage:
------
    from salon_packages.core import AppException, get_operational_clock

    # Or use exception factory functions via module
    from salon_packages.core import exceptions
    raise exceptions.package_not_found(package_id)

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)
from .dependencies import (
    get_app_settings,
    get_db,
    get_operational_clock,
)

__all__ = [
    # Exceptions
    "AppException",
    "register_exception_handlers",
    # Dependencies
    "get_app_settings",
    "get_db",
    "get_operational_clock",
]
