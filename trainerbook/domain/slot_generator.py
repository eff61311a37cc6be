"""
Core business logic for enumerating bookable time slots.

Pure domain logic: the caller hands in the trainer and a snapshot of the
day's bookings, nothing here touches a repository or the clock.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, List

from .calendar import WorkingHoursCalendar
from .conflicts import ConflictDetector
from .models import Booking, Slot, Trainer

DEFAULT_SLOT_STEP_MINUTES = 30


class SlotGenerator:
    """
    Enumerates candidate start times for a session of a given duration.

    Algorithm:
    1. Resolve the trainer's working window for the date
    2. Walk the window from its start in fixed steps while the session still fits
    3. Drop every candidate that overlaps an active booking

    The step is a policy constant, so slots stay on the step grid no matter
    where existing bookings begin or end.
    """

    def __init__(
        self,
        calendar: WorkingHoursCalendar | None = None,
        conflict_detector: ConflictDetector | None = None,
        step_minutes: int = DEFAULT_SLOT_STEP_MINUTES,
    ):
        if step_minutes <= 0:
            raise ValueError(f"Slot step must be positive, got {step_minutes}")
        self.calendar = calendar or WorkingHoursCalendar()
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.step_minutes = step_minutes

    def available_slots(
        self,
        trainer: Trainer,
        day: date,
        duration_minutes: int,
        bookings: Iterable[Booking],
    ) -> List[Slot]:
        """
        Find all free slots of ``duration_minutes`` for the trainer on ``day``.

        Args:
            trainer: Trainer whose working hours bound the search
            day: Calendar date to search
            duration_minutes: Length of the requested session
            bookings: Existing bookings; other trainers/dates are ignored

        Returns:
            Slots in ascending start order
        """
        if duration_minutes <= 0:
            return []

        window = self.calendar.window_for(trainer, day)
        if window is None:
            return []

        day_start, day_end = window
        existing = list(bookings)
        slots: List[Slot] = []

        candidate = day_start
        while candidate.minutes + duration_minutes <= day_end.minutes:
            candidate_end = candidate.add_minutes(duration_minutes)
            conflict = self.conflict_detector.find_conflict(
                existing, trainer.id, day, candidate, candidate_end
            )
            if conflict is None:
                slots.append(Slot(time=candidate, duration_minutes=duration_minutes))
            if candidate.minutes + self.step_minutes > day_end.minutes:
                break
            candidate = candidate.add_minutes(self.step_minutes)

        return slots

    def next_available_date(
        self,
        trainer: Trainer,
        from_date: date,
        duration_minutes: int,
        bookings_for: Callable[[date], Iterable[Booking]],
        max_days: int = 30,
    ) -> date | None:
        """
        Return the first date, starting at ``from_date``, with at least one slot.

        ``bookings_for`` supplies the booking snapshot for each date checked.
        """
        for offset in range(max_days):
            day = from_date + timedelta(days=offset)
            if not self.calendar.window_for(trainer, day):
                continue
            if self.available_slots(trainer, day, duration_minutes, bookings_for(day)):
                return day
        return None
