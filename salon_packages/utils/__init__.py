"""
==============================================================================
Utilities Package
==============================================================================

Utility classes and functions for the application.

Modules:
--------
- timekeeping: Operational clock, weekday table, HH:MM arithmetic
- validators: Booking date, time and weekday validation
- currency: INR display formatting
- patch: Tagged partial-update values

==============================================================================
"""

from .timekeeping import OperationalClock, utc_now, weekday_abbreviation
from .validators import BookingDateValidator, TimeOfDayValidator, WeekdayListValidator
from .currency import format_inr
from .patch import FieldPatch, PatchOp

__all__ = [
    "OperationalClock",
    "utc_now",
    "weekday_abbreviation",
    "BookingDateValidator",
    "TimeOfDayValidator",
    "WeekdayListValidator",
    "format_inr",
    "FieldPatch",
    "PatchOp",
]
