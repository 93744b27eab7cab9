"""
==============================================================================
Package Availability Decider Module
==============================================================================

Decides whether a package can be booked at a given date and time.

The decision is a pure function of the package row, the requested slot,
the clock and a lazily evaluated count of that day's bookings. Rules are
evaluated in order and the first violated rule is reported:

    ┌───┬───────────────────────────┬──────────────────────────────────────┐
    │ # │ Code                      │ Violated when                        │
    ├───┼───────────────────────────┼──────────────────────────────────────┤
    │ 1 │ PACKAGE_INACTIVE          │ is_active != 1                       │
    │ 2 │ PACKAGE_NOT_YET_AVAILABLE │ valid_from > now                     │
    │ 3 │ PACKAGE_EXPIRED           │ valid_until < now                    │
    │ 4 │ DAY_NOT_ALLOWED           │ weekday not in available_days        │
    │ 5 │ TIME_WINDOW_VIOLATION     │ time outside [start, end]            │
    │ 6 │ INSUFFICIENT_LEAD_TIME    │ hours until slot < minimum           │
    │ 7 │ DAILY_CAPACITY_REACHED    │ non-cancelled bookings today >= cap  │
    └───┴───────────────────────────┴──────────────────────────────────────┘

The daily count is only queried when rules 1-6 pass and the package has a
cap.

==============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Optional, Sequence

from salon_packages.db.models import ServicePackage
from salon_packages.utils.timekeeping import OperationalClock, weekday_abbreviation


@dataclass(frozen=True)
class AvailabilityResult:
    """Outcome of an availability decision."""
    available: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    daily_bookings_remaining: Optional[int] = None

    @classmethod
    def ok(cls, daily_bookings_remaining: Optional[int] = None) -> "AvailabilityResult":
        return cls(True, daily_bookings_remaining=daily_bookings_remaining)

    @classmethod
    def reject(cls, code: str, reason: str) -> "AvailabilityResult":
        return cls(False, reason=reason, code=code)


@dataclass
class BookingSlot:
    """A requested (package, date, time) with the context rules read."""
    package: ServicePackage
    booking_date: str
    booking_time: str
    clock: OperationalClock
    count_daily_bookings: Callable[[], int] = field(repr=False)

    @cached_property
    def now(self):
        return self.clock.now_naive_utc()

    @cached_property
    def daily_bookings(self) -> int:
        return self.count_daily_bookings()


@dataclass(frozen=True)
class AvailabilityRule:
    code: str
    violated: Callable[[BookingSlot], bool]
    reason: Callable[[ServicePackage], str]


def _outside_time_window(slot: BookingSlot) -> bool:
    start = slot.package.available_time_start
    end = slot.package.available_time_end
    if not (start and end):
        return False
    return slot.booking_time < start or slot.booking_time > end


def _short_lead_time(slot: BookingSlot) -> bool:
    required = slot.package.min_advance_booking_hours
    if not required:
        return False
    return slot.clock.hours_until(slot.booking_date, slot.booking_time) < required


def _at_daily_capacity(slot: BookingSlot) -> bool:
    cap = slot.package.max_bookings_per_day
    if not cap:
        return False
    return slot.daily_bookings >= cap


AVAILABILITY_RULES: Sequence[AvailabilityRule] = (
    AvailabilityRule(
        "PACKAGE_INACTIVE",
        lambda slot: slot.package.is_active != 1,
        lambda package: "Package is no longer available",
    ),
    AvailabilityRule(
        "PACKAGE_NOT_YET_AVAILABLE",
        lambda slot: slot.package.valid_from is not None and slot.package.valid_from > slot.now,
        lambda package: "Package is not yet available",
    ),
    AvailabilityRule(
        "PACKAGE_EXPIRED",
        lambda slot: slot.package.valid_until is not None and slot.package.valid_until < slot.now,
        lambda package: "Package has expired",
    ),
    AvailabilityRule(
        "DAY_NOT_ALLOWED",
        lambda slot: bool(slot.package.available_days)
        and weekday_abbreviation(slot.booking_date) not in slot.package.available_days,
        lambda package: f"Package is only available on {', '.join(package.available_days)}",
    ),
    AvailabilityRule(
        "TIME_WINDOW_VIOLATION",
        _outside_time_window,
        lambda package: (
            f"Package is only available between {package.available_time_start} "
            f"and {package.available_time_end}"
        ),
    ),
    AvailabilityRule(
        "INSUFFICIENT_LEAD_TIME",
        _short_lead_time,
        lambda package: f"Package requires {package.min_advance_booking_hours} hours advance booking",
    ),
    AvailabilityRule(
        "DAILY_CAPACITY_REACHED",
        _at_daily_capacity,
        lambda package: "Maximum daily bookings for this package reached",
    ),
)


class AvailabilityDecider:
    """
    Evaluates the ordered availability rules for a package slot.

    Example:
        >>> decider = AvailabilityDecider(clock)
        >>> result = decider.decide(package, "2024-03-16", "10:15", lambda: 0)
        >>> result.available
        True
    """

    def __init__(
        self,
        clock: OperationalClock,
        rules: Sequence[AvailabilityRule] = AVAILABILITY_RULES
    ) -> None:
        self._clock = clock
        self._rules = rules

    def decide(
        self,
        package: ServicePackage,
        booking_date: str,
        booking_time: str,
        count_daily_bookings: Callable[[], int]
    ) -> AvailabilityResult:
        slot = BookingSlot(
            package=package,
            booking_date=booking_date,
            booking_time=booking_time,
            clock=self._clock,
            count_daily_bookings=count_daily_bookings,
        )

        for rule in self._rules:
            if rule.violated(slot):
                return AvailabilityResult.reject(rule.code, rule.reason(package))

        if package.max_bookings_per_day:
            return AvailabilityResult.ok(package.max_bookings_per_day - slot.daily_bookings)

        return AvailabilityResult.ok()
