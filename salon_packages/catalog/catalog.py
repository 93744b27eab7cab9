"""
==============================================================================
Package Category Catalog Module
==============================================================================

The published list of service package categories.

Features:
---------
- Built-in default category list shared with the salon dashboard
- Optional JSON override file (settings.categories_file)
- Case-insensitive lookup returning the canonical spelling

JSON Structure:
--------------
[
  "Bridal",
  "Party",
  ...
]

==============================================================================
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional


# Module logger
logger = logging.getLogger(__name__)


DEFAULT_PACKAGE_CATEGORIES = (
    "Bridal",
    "Party",
    "Grooming",
    "Spa Day",
    "Weekend Special",
    "Festival",
    "Seasonal",
    "First Time",
    "Couples",
    "Men's Essential",
    "Women's Essential",
    "Quick Refresh",
    "Full Makeover",
)


class CategoryCatalog:
    """
    Read-only package category list.

    Attributes:
        categories: Categories in published order

    Example:
        >>> catalog = CategoryCatalog()
        >>> catalog.canonical("spa day")
        'Spa Day'
    """

    def __init__(self, categories_file: Optional[Path] = None) -> None:
        self._categories_file = categories_file
        self._categories: List[str] = []
        self._by_key: Dict[str, str] = {}

        self._load()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def categories(self) -> List[str]:
        """Get all categories."""
        return self._categories.copy()

    @property
    def source(self) -> str:
        return str(self._categories_file) if self._categories_file else "built-in"

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self) -> None:
        """Load categories from the configured file, or the built-in list."""
        if self._categories_file is None:
            names = list(DEFAULT_PACKAGE_CATEGORIES)
        else:
            try:
                with self._categories_file.open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                logger.error(f"Categories file not found: {self._categories_file}")
                raise
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON: {e}")
                raise

            if not isinstance(data, list):
                raise ValueError(
                    f"Categories file must contain a JSON array: {self._categories_file}"
                )
            names = data

        self._categories.clear()
        self._by_key.clear()

        for raw in names:
            name = str(raw).strip()
            if not name:
                continue
            if name.lower() in self._by_key:
                logger.warning(f"Skipping duplicate category: {name}")
                continue
            self._categories.append(name)
            self._by_key[name.lower()] = name

        logger.info(f"✅ Loaded {len(self._categories)} package categories ({self.source})")

    def reload(self) -> None:
        """Reload catalog from file."""
        logger.info("Reloading category catalog...")
        self._load()

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def canonical(self, name: str) -> Optional[str]:
        """Get the published spelling of a category, or None if unknown."""
        return self._by_key.get(name.strip().lower())

    def __len__(self) -> int:
        return len(self._categories)


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

_catalog_instance: Optional[CategoryCatalog] = None


def get_catalog() -> CategoryCatalog:
    """
    Get the global catalog instance.

    Falls back to the built-in list when init_catalog() has not run yet.
    """
    global _catalog_instance
    if _catalog_instance is None:
        _catalog_instance = CategoryCatalog()
    return _catalog_instance


def init_catalog(categories_file: Optional[Path] = None) -> CategoryCatalog:
    """
    Initialize the global catalog instance.

    Args:
        categories_file: Optional path to a JSON array of category names

    Returns:
        CategoryCatalog instance
    """
    global _catalog_instance
    _catalog_instance = CategoryCatalog(categories_file)
    return _catalog_instance
