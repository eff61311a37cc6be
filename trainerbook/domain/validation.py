"""
Structural and business-rule validation of a proposed booking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from pendulum import DateTime

from .exceptions import ValidationError
from .models import TimeOfDay

Clock = Callable[[], DateTime]

PAST_DATE = "past_date"
INVALID_TIME_FORMAT = "invalid_time_format"
START_NOT_BEFORE_END = "start_not_before_end"
DURATION_TOO_SHORT = "duration_too_short"
DURATION_TOO_LONG = "duration_too_long"
OUTSIDE_WORKING_HOURS = "outside_working_hours"


@dataclass(frozen=True)
class Violation:
    """A single broken rule."""
    code: str
    field: str
    message: str


@dataclass
class ValidationResult:
    """
    Outcome of validating a booking request.

    ``start`` and ``end`` hold the parsed times when they were well-formed so
    callers don't have to parse twice.
    """
    violations: List[Violation] = field(default_factory=list)
    start: Optional[TimeOfDay] = None
    end: Optional[TimeOfDay] = None

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def codes(self) -> List[str]:
        return [v.code for v in self.violations]

    def raise_for_violations(self) -> None:
        if self.violations:
            raise ValidationError(self.violations)


class SessionValidator:
    """
    Validates the date and times of a booking request.

    Rules are checked in order and every violation is collected:
    1. date is today or later
    2. start and end are strict ``HH:MM``; ``24:00`` is accepted as an end
    3. start is before end
    4. duration is at least the minimum
    5. duration is at most the maximum

    Rules 3-5 only run when both times are well-formed.
    """

    def __init__(
        self,
        clock: Clock,
        min_duration_minutes: int = 30,
        max_duration_minutes: int = 240,
    ):
        self.clock = clock
        self.min_duration_minutes = min_duration_minutes
        self.max_duration_minutes = max_duration_minutes

    def validate(self, day: date, start: str, end: str) -> ValidationResult:
        result = ValidationResult()

        today = self.clock().date()
        if day < today:
            result.violations.append(Violation(
                PAST_DATE, "date", f"Cannot book a session in the past ({day.isoformat()})"
            ))

        self._parse_times(start, end, result)

        if result.start is None or result.end is None:
            return result

        duration = result.start.minutes_until(result.end)
        if duration <= 0:
            result.violations.append(Violation(
                START_NOT_BEFORE_END, "end_time", "Start time must be before end time"
            ))
        elif duration < self.min_duration_minutes:
            result.violations.append(Violation(
                DURATION_TOO_SHORT, "end_time",
                f"Minimum session duration is {self.min_duration_minutes} minutes",
            ))
        elif duration > self.max_duration_minutes:
            result.violations.append(Violation(
                DURATION_TOO_LONG, "end_time",
                f"Maximum session duration is {self.max_duration_minutes // 60} hours"
                if self.max_duration_minutes % 60 == 0
                else f"Maximum session duration is {self.max_duration_minutes} minutes",
            ))

        return result

    def parse_times(self, start: str, end: str) -> ValidationResult:
        """Check only that ``start`` and ``end`` are well-formed times."""
        result = ValidationResult()
        self._parse_times(start, end, result)
        return result

    def _parse_times(self, start: str, end: str, result: ValidationResult) -> None:
        result.start = self._parse_time(start, "start_time", result)
        result.end = self._parse_time(end, "end_time", result, allow_end_of_day=True)

    @staticmethod
    def _parse_time(
        value: str,
        field_name: str,
        result: ValidationResult,
        allow_end_of_day: bool = False,
    ) -> TimeOfDay | None:
        try:
            return TimeOfDay.parse(value, allow_end_of_day=allow_end_of_day)
        except ValueError:
            result.violations.append(Violation(
                INVALID_TIME_FORMAT, field_name,
                f"Invalid time format '{value}', expected HH:MM",
            ))
            return None
