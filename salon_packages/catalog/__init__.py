"""
==============================================================================
Catalog Package - Package Categories
==============================================================================

Published list of service package categories.

Classes:
--------
- CategoryCatalog: Category list with case-insensitive lookup

==============================================================================
"""

from .catalog import (
    DEFAULT_PACKAGE_CATEGORIES,
    CategoryCatalog,
    get_catalog,
    init_catalog,
)

__all__ = [
    "DEFAULT_PACKAGE_CATEGORIES",
    "CategoryCatalog",
    "get_catalog",
    "init_catalog",
]
