"""
Conflict detection against a trainer's existing bookings.
"""

from datetime import date
from typing import Iterable, List

from .intervals import overlaps
from .models import Booking, TimeOfDay


class ConflictDetector:
    """
    Finds non-cancelled bookings that overlap a requested interval.

    The detector works on whatever booking snapshot it is handed; the caller
    decides whether that snapshot was taken under the repository lock.
    """

    def find_conflicts(
        self,
        bookings: Iterable[Booking],
        trainer_id: str,
        day: date,
        start: TimeOfDay,
        end: TimeOfDay,
        exclude_booking_id: str | None = None,
    ) -> List[Booking]:
        """Return every overlapping booking, earliest start first."""
        conflicts = [
            booking for booking in bookings
            if booking.id != exclude_booking_id
            and booking.trainer_id == trainer_id
            and booking.date == day
            and booking.is_active
            and overlaps(start, end, booking.start_time, booking.end_time)
        ]
        return sorted(conflicts, key=lambda b: (b.start_time, b.id))

    def find_conflict(
        self,
        bookings: Iterable[Booking],
        trainer_id: str,
        day: date,
        start: TimeOfDay,
        end: TimeOfDay,
        exclude_booking_id: str | None = None,
    ) -> Booking | None:
        """Return the first overlapping booking, or None if the interval is free."""
        conflicts = self.find_conflicts(
            bookings, trainer_id, day, start, end, exclude_booking_id=exclude_booking_id
        )
        return conflicts[0] if conflicts else None
