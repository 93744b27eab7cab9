"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for booking calendar input.

This module implements:
- TimeOfDayValidator: Validates "HH:MM" 24-hour times
- BookingDateValidator: Validates "YYYY-MM-DD" calendar dates
- WeekdayListValidator: Validates weekday allow-lists ("Mon".."Sun")

Each validator returns a (is_valid, normalized, error_message) tuple so the
pydantic schemas can surface the message as a field error.

==============================================================================
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, List, Optional, Tuple

from salon_packages.utils.timekeeping import WEEKDAY_ABBREVIATIONS


class TimeOfDayValidator:
    """
    Validator for "HH:MM" times.

    Times are compared lexically elsewhere, so single-digit hours are
    zero-padded during normalization.

    Example:
        >>> TimeOfDayValidator().validate("9:30")
        (True, '09:30', None)
    """

    PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

    def validate(self, value: str) -> Tuple[bool, Optional[str], Optional[str]]:
        if not value:
            return False, None, "Time is required"

        match = self.PATTERN.match(value.strip())
        if not match:
            return False, None, "Time must be in HH:MM format"

        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            return False, None, "Time must be between 00:00 and 23:59"

        return True, f"{hours:02d}:{minutes:02d}", None

    def is_valid(self, value: str) -> bool:
        """Quick validation check."""
        is_valid, _, _ = self.validate(value)
        return is_valid


class BookingDateValidator:
    """Validator for "YYYY-MM-DD" dates."""

    PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

    def validate(self, value: str) -> Tuple[bool, Optional[str], Optional[str]]:
        if not value:
            return False, None, "Date is required"

        value = value.strip()
        if not self.PATTERN.match(value):
            return False, None, "Date must be in YYYY-MM-DD format"

        try:
            date.fromisoformat(value)
        except ValueError:
            return False, None, f"Invalid calendar date: {value}"

        return True, value, None

    def is_valid(self, value: str) -> bool:
        is_valid, _, _ = self.validate(value)
        return is_valid


class WeekdayListValidator:
    """
    Validator for weekday allow-lists.

    Accepts any capitalization ("sat", "SAT"), removes duplicates and
    returns the days in calendar order.
    """

    def validate(
        self,
        days: Iterable[str]
    ) -> Tuple[bool, Optional[List[str]], Optional[str]]:
        lookup = {day.lower(): day for day in WEEKDAY_ABBREVIATIONS}
        selected = set()

        for raw in days:
            day = lookup.get(str(raw).strip().lower())
            if day is None:
                allowed = ", ".join(WEEKDAY_ABBREVIATIONS)
                return False, None, f"Unknown weekday '{raw}', expected one of {allowed}"
            selected.add(day)

        ordered = [day for day in WEEKDAY_ABBREVIATIONS if day in selected]
        return True, ordered, None
