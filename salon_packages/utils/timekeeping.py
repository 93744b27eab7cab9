"""
==============================================================================
Booking Calendar Time Utilities
==============================================================================

Helpers for the date/time conventions used across the package engine.

Conventions:
-----------
- Booking dates are "YYYY-MM-DD" strings, booking times "HH:MM" (24-hour),
  both expressed in the salon's operational timezone.
- Package validity instants (valid_from / valid_until) are stored as naive
  UTC datetimes.
- Weekdays are bucketed with a fixed three-letter table ("Mon".."Sun")
  indexed by the calendar weekday, independent of process locale.

This module implements:
- utc_now(): naive UTC "now" used for column defaults
- OperationalClock: injectable clock bound to the operational timezone
- time_to_minutes: HH:MM arithmetic

==============================================================================
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


WEEKDAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to naive UTC.

    Aware values are converted to UTC; naive values are assumed to already
    be UTC and returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_booking_date(value: str) -> date:
    return date.fromisoformat(value)


def weekday_abbreviation(booking_date: str) -> str:
    """
    Get the three-letter weekday of a YYYY-MM-DD date.

    Example:
        >>> weekday_abbreviation("2024-03-16")
        'Sat'
    """
    return WEEKDAY_ABBREVIATIONS[parse_booking_date(booking_date).weekday()]


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class OperationalClock:
    """
    Clock bound to the salon's operational timezone.

    The `now` callable must return an aware datetime; it defaults to the
    system clock and is replaced with a fixed instant in tests.

    Example:
        >>> clock = OperationalClock(ZoneInfo("Asia/Kolkata"))
        >>> clock.hours_until("2024-03-16", "10:15")
    """

    def __init__(
        self,
        tz: ZoneInfo,
        now: Optional[Callable[[], datetime]] = None
    ) -> None:
        self._tz = tz
        self._now = now or (lambda: datetime.now(timezone.utc))

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        """Current instant as an aware UTC datetime."""
        current = self._now()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def now_naive_utc(self) -> datetime:
        """Current instant as naive UTC, comparable with stored validity bounds."""
        return self.now().replace(tzinfo=None)

    def booking_instant(self, booking_date: str, booking_time: str) -> datetime:
        """
        Resolve a local booking date and time to an aware UTC instant.
        """
        local = datetime.combine(
            parse_booking_date(booking_date),
            time.fromisoformat(booking_time),
            tzinfo=self._tz,
        )
        return local.astimezone(timezone.utc)

    def hours_until(self, booking_date: str, booking_time: str) -> float:
        """Hours from now until the booking starts (negative when in the past)."""
        delta = self.booking_instant(booking_date, booking_time) - self.now()
        return delta.total_seconds() / 3600

    def __repr__(self) -> str:
        return f"OperationalClock(tz={self._tz.key!r})"
