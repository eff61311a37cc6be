"""
Domain models for trainers, bookings and derived slots.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple

import pendulum
from pendulum import DateTime

MINUTES_PER_DAY = 24 * 60

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def weekday_name(day: date) -> str:
    """Return the lowercase weekday name for a date (``monday`` ... ``sunday``)."""
    return WEEKDAYS[day.weekday()]


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A wall-clock time stored as minutes since midnight.

    Ordering and arithmetic are plain integer operations. ``24:00`` is only
    representable as an end, so a window or a session may run until midnight.
    """
    minutes: int

    def __post_init__(self):
        if not 0 <= self.minutes <= MINUTES_PER_DAY:
            raise ValueError(f"Time of day out of range: {self.minutes} minutes")

    @classmethod
    def parse(cls, value: str, allow_end_of_day: bool = False) -> "TimeOfDay":
        """
        Parse a strict 24-hour ``HH:MM`` string.

        Raises:
            ValueError: If the value is not exactly two-digit hours and minutes
        """
        if allow_end_of_day and value == "24:00":
            return cls(MINUTES_PER_DAY)
        match = _TIME_PATTERN.match(value or "")
        if not match:
            raise ValueError(f"Invalid time '{value}', expected HH:MM (24-hour)")
        return cls(int(match.group(1)) * 60 + int(match.group(2)))

    @classmethod
    def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
        return cls(hour * 60 + minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def add_minutes(self, minutes: int) -> "TimeOfDay":
        return TimeOfDay(self.minutes + minutes)

    def minutes_until(self, other: "TimeOfDay") -> int:
        """Signed number of minutes from this time to ``other``."""
        return other.minutes - self.minutes

    def on(self, day: date, tz: str) -> DateTime:
        """Combine with a calendar date into an aware wall-clock datetime."""
        if self.minutes == MINUTES_PER_DAY:
            return pendulum.datetime(day.year, day.month, day.day, tz=tz).add(days=1)
        return pendulum.datetime(day.year, day.month, day.day, self.hour, self.minute, tz=tz)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class DayHours:
    """Working window for one weekday."""
    is_working: bool
    start: TimeOfDay = TimeOfDay(0)
    end: TimeOfDay = TimeOfDay(0)

    def __post_init__(self):
        if self.is_working and self.start >= self.end:
            raise ValueError(f"Working start {self.start} must be before end {self.end}")

    def duration_minutes(self) -> int:
        if not self.is_working:
            return 0
        return self.start.minutes_until(self.end)


@dataclass
class WorkingHours:
    """
    Weekly availability of a trainer, keyed by weekday name.

    Weekdays missing from the map are treated as days off.
    """
    days: Dict[str, DayHours] = field(default_factory=dict)

    def __post_init__(self):
        unknown = [day for day in self.days if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s) in working hours: {unknown}")

    def for_weekday(self, weekday: str) -> DayHours | None:
        return self.days.get(weekday)

    def is_working_day(self, day: date) -> bool:
        """Check if a given date falls on a working day."""
        hours = self.for_weekday(weekday_name(day))
        return hours is not None and hours.is_working

    def get_working_hours_for_day(self, day: date) -> Tuple[TimeOfDay, TimeOfDay] | None:
        """
        Get the working window for a specific date.
        Returns None if it's not a working day.
        """
        if not self.is_working_day(day):
            return None
        hours = self.days[weekday_name(day)]
        return hours.start, hours.end

    def working_days_count(self) -> int:
        return sum(1 for hours in self.days.values() if hours.is_working)


@dataclass
class Trainer:
    """Trainer profile as far as scheduling is concerned."""
    id: str
    name: str
    working_hours: WorkingHours
    hourly_rate: Optional[float] = None


class BookingType(str, Enum):
    PERSONAL = "personal"
    GROUP = "group"
    CONSULTATION = "consultation"


class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self is not BookingStatus.SCHEDULED


@dataclass(frozen=True)
class Booking:
    """
    A booked session of a client with a trainer.

    Invariant: start_time must be before end_time.
    """
    id: str
    trainer_id: str
    client_id: str
    date: date
    start_time: TimeOfDay
    end_time: TimeOfDay
    type: BookingType
    status: BookingStatus
    created_at: DateTime
    updated_at: Optional[DateTime] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )

    @property
    def is_active(self) -> bool:
        """Whether the booking still occupies its interval."""
        return self.status is not BookingStatus.CANCELLED

    def duration_minutes(self) -> int:
        return self.start_time.minutes_until(self.end_time)

    def starts_at(self, tz: str) -> DateTime:
        return self.start_time.on(self.date, tz)

    def ends_at(self, tz: str) -> DateTime:
        return self.end_time.on(self.date, tz)

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class Slot:
    """
    A candidate booking interval. Derived on demand, never stored.
    """
    time: TimeOfDay
    duration_minutes: int

    @property
    def end(self) -> TimeOfDay:
        return self.time.add_minutes(self.duration_minutes)

    def format_display(self) -> str:
        """Format: HH:MM – HH:MM (N min)"""
        return f"{self.time} – {self.end} ({self.duration_minutes} min)"


@dataclass(frozen=True)
class RankedSlot:
    """A slot annotated with a recommendation score."""
    slot: Slot
    score: int
    reason: str

    @property
    def time(self) -> TimeOfDay:
        return self.slot.time
