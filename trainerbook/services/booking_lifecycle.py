"""
Write side of the booking engine: create, cancel, reschedule and close
sessions.

Every conflict check that precedes a write runs while holding the
repository lock for the affected ``(trainer_id, date)`` keys, so two racing
requests for overlapping intervals cannot both succeed. Slot listings read
earlier may be stale by the time a request arrives; the check under the
lock is what decides.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import date
from typing import Callable, Optional

from ..domain.calendar import WorkingHoursCalendar
from ..domain.conflicts import ConflictDetector
from ..domain.exceptions import ConflictError, NotFoundError
from ..domain.lifecycle import LifecyclePolicy
from ..domain.models import Booking, BookingStatus, BookingType, Trainer
from ..domain.validation import (
    OUTSIDE_WORKING_HOURS,
    Clock,
    SessionValidator,
    ValidationResult,
    Violation,
)
from .repositories import BookingRepository, TrainerRepository

logger = logging.getLogger(__name__)


def new_booking_id() -> str:
    return f"bk_{uuid.uuid4().hex[:12]}"


class BookingLifecycle:
    """
    Orchestrates validation, conflict detection and status transitions
    against the repositories.
    """

    def __init__(
        self,
        trainers: TrainerRepository,
        bookings: BookingRepository,
        clock: Clock,
        validator: SessionValidator,
        policy: LifecyclePolicy,
        calendar: WorkingHoursCalendar | None = None,
        conflict_detector: ConflictDetector | None = None,
        id_factory: Callable[[], str] = new_booking_id,
    ) -> None:
        self._trainers = trainers
        self._bookings = bookings
        self._clock = clock
        self._validator = validator
        self._policy = policy
        self._calendar = calendar or WorkingHoursCalendar()
        self._conflicts = conflict_detector or ConflictDetector()
        self._id_factory = id_factory

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    def get_trainer(self, trainer_id: str) -> Trainer:
        trainer = self._trainers.get_trainer(trainer_id)
        if trainer is None:
            raise NotFoundError("trainer", trainer_id)
        return trainer

    def validate_request(
        self,
        trainer: Trainer,
        day: date,
        start: str,
        end: str,
    ) -> ValidationResult:
        """
        Run the session rules and, when the times are usable, check the
        interval against the trainer's working window.
        """
        result = self._validator.validate(day, start, end)
        if (
            result.start is not None
            and result.end is not None
            and result.start < result.end
            and not self._calendar.is_open(trainer, day, result.start, result.end)
        ):
            result.violations.append(Violation(
                OUTSIDE_WORKING_HOURS, "start_time",
                f"{trainer.name} is not working {day.isoformat()} {result.start}-{result.end}",
            ))
        return result

    def create(
        self,
        trainer_id: str,
        client_id: str,
        day: date,
        start: str,
        end: str,
        booking_type: BookingType | str = BookingType.PERSONAL,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Create a scheduled booking.

        Raises:
            NotFoundError: Unknown trainer
            ValidationError: Every broken rule of the request
            ConflictError: The interval overlaps an active booking
        """
        trainer = self.get_trainer(trainer_id)
        result = self.validate_request(trainer, day, start, end)

        try:
            session_type = BookingType(booking_type)
        except ValueError:
            result.violations.append(Violation(
                "invalid_booking_type", "type", f"Unknown session type '{booking_type}'"
            ))
        result.raise_for_violations()

        with self._bookings.lock(trainer_id, day):
            conflict = self._conflicts.find_conflict(
                self._bookings.list_for_day(trainer_id, day),
                trainer_id, day, result.start, result.end,
            )
            if conflict is not None:
                raise ConflictError(conflict)

            now = self._clock()
            booking = Booking(
                id=self._id_factory(),
                trainer_id=trainer_id,
                client_id=client_id,
                date=day,
                start_time=result.start,
                end_time=result.end,
                type=session_type,
                status=BookingStatus.SCHEDULED,
                created_at=now,
                updated_at=now,
                notes=notes,
            )
            self._bookings.add(booking)

        logger.info("Booking created: %s for trainer %s on %s", booking.id, trainer_id, booking)
        return booking

    def cancel(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a scheduled booking at least the cancellation lead time ahead.

        Raises:
            NotFoundError: Unknown booking
            PolicyError: Not scheduled, or inside the protected lead time
        """
        booking = self.get_booking(booking_id)

        with self._bookings.lock(booking.trainer_id, booking.date):
            booking = self.get_booking(booking_id)
            now = self._clock()
            self._policy.can_cancel(booking, now).raise_if_denied()
            cancelled = self._policy.transition(
                booking, BookingStatus.CANCELLED, now, cancellation_reason=reason
            )
            self._bookings.update(cancelled)

        logger.info("Booking cancelled: %s", booking_id)
        return cancelled

    def reschedule(self, booking_id: str, new_date: date, new_start: str, new_end: str) -> Booking:
        """
        Move a scheduled booking to a new date and interval.

        The lead time is measured against the original start. The new
        interval is validated and conflict-checked with the booking's own
        prior slot excluded.

        Raises:
            NotFoundError: Unknown booking or trainer
            PolicyError: Not scheduled, or inside the protected lead time
            ValidationError: Every broken rule of the new interval
            ConflictError: The new interval overlaps another active booking
        """
        booking = self.get_booking(booking_id)
        self._policy.can_reschedule(booking, self._clock()).raise_if_denied()

        trainer = self.get_trainer(booking.trainer_id)
        result = self.validate_request(trainer, new_date, new_start, new_end)
        result.raise_for_violations()

        with self._bookings.lock(booking.trainer_id, booking.date, new_date):
            current = self.get_booking(booking_id)
            now = self._clock()
            self._policy.can_reschedule(current, now).raise_if_denied()

            conflict = self._conflicts.find_conflict(
                self._bookings.list_for_day(current.trainer_id, new_date),
                current.trainer_id, new_date, result.start, result.end,
                exclude_booking_id=booking_id,
            )
            if conflict is not None:
                raise ConflictError(conflict)

            moved = dataclasses.replace(
                current,
                date=new_date,
                start_time=result.start,
                end_time=result.end,
                updated_at=now,
            )
            self._bookings.update(moved)

        logger.info("Booking rescheduled: %s to %s", booking_id, moved)
        return moved

    def mark_completed(self, booking_id: str) -> Booking:
        return self._close(booking_id, BookingStatus.COMPLETED)

    def mark_no_show(self, booking_id: str) -> Booking:
        return self._close(booking_id, BookingStatus.NO_SHOW)

    def _close(self, booking_id: str, status: BookingStatus) -> Booking:
        booking = self.get_booking(booking_id)

        with self._bookings.lock(booking.trainer_id, booking.date):
            booking = self.get_booking(booking_id)
            now = self._clock()
            self._policy.can_close(booking, now).raise_if_denied()
            closed = self._policy.transition(booking, status, now)
            self._bookings.update(closed)

        logger.info("Booking %s marked %s", booking_id, status.value)
        return closed
