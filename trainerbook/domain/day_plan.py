"""
Timeline of a trainer's working day: sessions, short breaks between them and
bookable free time.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .calendar import WorkingHoursCalendar
from .models import Booking, TimeOfDay, Trainer

SESSION = "session"
BREAK = "break"
AVAILABLE = "available"

MAX_AVAILABLE_BLOCK_MINUTES = 120


@dataclass(frozen=True)
class DayPlanEntry:
    time: TimeOfDay
    kind: str  # "session", "break" or "available"
    duration_minutes: int
    booking: Optional[Booking] = None


class DayPlanner:
    """
    Builds the timeline of one working day.

    Algorithm:
    1. Walk the working window from its start
    2. Emit every active booking at its own start time
    3. A gap between two sessions too short for a session is a break
    4. Any other gap is emitted on the step grid as available time, each entry
       reporting how long it stays free, capped at two hours
    """

    def __init__(
        self,
        calendar: WorkingHoursCalendar | None = None,
        step_minutes: int = 30,
        min_session_minutes: int = 30,
    ):
        self.calendar = calendar or WorkingHoursCalendar()
        self.step_minutes = step_minutes
        self.min_session_minutes = min_session_minutes

    def plan(self, trainer: Trainer, day: date, bookings: Iterable[Booking]) -> List[DayPlanEntry]:
        window = self.calendar.window_for(trainer, day)
        if window is None:
            return []

        day_start, day_end = window
        sessions = sorted(
            (b for b in bookings
             if b.trainer_id == trainer.id and b.date == day and b.is_active
             and b.end_time > day_start and b.start_time < day_end),
            key=lambda b: (b.start_time, b.id),
        )
        entries: List[DayPlanEntry] = []
        current = day_start
        index = 0

        while current < day_end:
            if index < len(sessions) and sessions[index].start_time <= current:
                session = sessions[index]
                index += 1
                entries.append(DayPlanEntry(
                    session.start_time, SESSION, session.duration_minutes(), session
                ))
                current = max(current, session.end_time)
                continue

            gap_end = sessions[index].start_time if index < len(sessions) else day_end
            gap_end = min(gap_end, day_end)
            gap = current.minutes_until(gap_end)
            between_sessions = bool(entries) and entries[-1].kind == SESSION and index < len(sessions)

            if between_sessions and gap < self.min_session_minutes:
                entries.append(DayPlanEntry(current, BREAK, gap))
            else:
                entries.extend(self._free_time(current, gap_end))
            current = gap_end

        return entries

    def _free_time(self, start: TimeOfDay, end: TimeOfDay) -> List[DayPlanEntry]:
        entries = []
        moment = start
        while moment < end:
            free = min(moment.minutes_until(end), MAX_AVAILABLE_BLOCK_MINUTES)
            entries.append(DayPlanEntry(moment, AVAILABLE, free))
            moment = moment.add_minutes(min(self.step_minutes, moment.minutes_until(end)))
        return entries
