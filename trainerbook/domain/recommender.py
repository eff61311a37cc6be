"""
Heuristic ranking of available slots.
"""

from typing import Iterable, List, Tuple

from .models import Booking, RankedSlot, Slot

BASE_SCORE = 5
ADJACENCY_BONUS = 1

# (first hour, last hour exclusive, score delta, reason)
PREFERRED_BANDS: Tuple[Tuple[int, int, int, str], ...] = (
    (9, 11, 3, "Morning hours - high energy"),
    (14, 16, 2, "Afternoon hours - good time"),
    (18, 20, 3, "Evening hours - popular time"),
    (20, 22, 1, "Late evening hours"),
)
OFF_HOURS_PENALTY = -2
REGULAR_HOURS = (8, 22)


class SlotRecommender:
    """
    Orders slots by a time-of-day preference score.

    Advisory only: every slot passed in comes back out, just reordered.
    """

    def score(self, slot: Slot, bookings: Iterable[Booking]) -> RankedSlot:
        hour = slot.time.hour
        score = BASE_SCORE
        reason = "Available"

        for first, last, delta, band_reason in PREFERRED_BANDS:
            if first <= hour < last:
                score += delta
                reason = band_reason
                break
        else:
            if hour < REGULAR_HOURS[0] or hour >= REGULAR_HOURS[1]:
                score += OFF_HOURS_PENALTY
                reason = "Off-hours"

        if self._is_adjacent(slot, bookings):
            score += ADJACENCY_BONUS
            reason += " (adjacent to an existing session)"

        return RankedSlot(slot=slot, score=score, reason=reason)

    def rank(self, slots: Iterable[Slot], bookings: Iterable[Booking]) -> List[RankedSlot]:
        """Score every slot; highest score first, earlier time breaks ties."""
        active = [b for b in bookings if b.is_active]
        ranked = [self.score(slot, active) for slot in slots]
        return sorted(ranked, key=lambda r: (-r.score, r.time))

    @staticmethod
    def _is_adjacent(slot: Slot, bookings: Iterable[Booking]) -> bool:
        return any(
            booking.is_active and (booking.end_time == slot.time or booking.start_time == slot.end)
            for booking in bookings
        )
