"""Time-interval helpers for chef calendars.

A booking occupies the half-open interval ``[start, start + duration)`` in
the chef's local time, where ``start`` combines ``booking_date`` and
``start_time``. Intervals may cross midnight.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

# Advertised availability slots are one hour long
SLOT_LENGTH = timedelta(hours=1)


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    def overlaps(self, other: "Interval") -> bool:
        # Half-open: touching endpoints do not overlap
        return self.start < other.end and other.start < self.end


def booking_interval(booking_date: date, start_time: time, duration_hours: Decimal | float | int) -> Interval:
    start = datetime.combine(booking_date, start_time.replace(tzinfo=None))
    return Interval(start, start + timedelta(hours=float(duration_hours)))


def interval_of(booking) -> Interval:  # noqa: ANN001
    return booking_interval(booking.booking_date, booking.start_time, booking.duration_hours)


def first_conflict(candidate: Interval, bookings: Iterable, exclude_id: Optional[str] = None):  # noqa: ANN001
    """Return the first booking whose interval overlaps ``candidate``."""
    for other in bookings:
        if exclude_id is not None and other.id == exclude_id:
            continue
        if candidate.overlaps(interval_of(other)):
            return other
    return None


def parse_slot(value: str) -> time:
    """Parse an ``HH:MM`` slot label."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def open_slots(
    day: date,
    advertised: Sequence[str],
    bookings: Iterable,
    not_before: Optional[datetime] = None,
) -> List[str]:
    """Advertised slot labels for ``day`` not blocked by ``bookings``.

    Slots that start before ``not_before`` are dropped as well.
    """
    busy = [interval_of(b) for b in bookings]
    result: List[str] = []
    for label in sorted(set(advertised)):
        start = datetime.combine(day, parse_slot(label))
        slot = Interval(start, start + SLOT_LENGTH)
        if not_before is not None and start < not_before:
            continue
        if any(slot.overlaps(b) for b in busy):
            continue
        result.append(start.strftime("%H:%M"))
    return result
