"""
Working-hours lookups for a trainer on a given calendar date.
"""

from datetime import date
from typing import Tuple

from .intervals import contains
from .models import TimeOfDay, Trainer


class WorkingHoursCalendar:
    """
    Answers availability questions from a trainer's weekly working hours.

    Pure functions of trainer configuration and a date; no I/O.
    """

    def window_for(self, trainer: Trainer, day: date) -> Tuple[TimeOfDay, TimeOfDay] | None:
        """Return the ``(start, end)`` working window, or None on a day off."""
        return trainer.working_hours.get_working_hours_for_day(day)

    def is_open(self, trainer: Trainer, day: date, start: TimeOfDay, end: TimeOfDay) -> bool:
        """Check if ``[start, end)`` is fully inside the trainer's window for ``day``."""
        window = self.window_for(trainer, day)
        if window is None:
            return False
        day_start, day_end = window
        return contains(day_start, day_end, start, end)

    def working_minutes(self, trainer: Trainer, day: date) -> int:
        window = self.window_for(trainer, day)
        if window is None:
            return 0
        day_start, day_end = window
        return day_start.minutes_until(day_end)
