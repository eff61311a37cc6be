"""
Booking state machine and the time-based policies gating each transition.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, FrozenSet, Optional

from pendulum import DateTime

from .exceptions import PolicyError
from .models import Booking, BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.SCHEDULED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

# Display-only state; never stored
OVERDUE = "overdue"


@dataclass(frozen=True)
class PolicyDecision:
    """Non-raising answer to "may this transition happen now?"."""
    allowed: bool
    reason: Optional[str] = None
    required_lead: Optional[timedelta] = None
    remaining: Optional[timedelta] = None

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise PolicyError(
                self.reason or "Transition not allowed",
                required_lead=self.required_lead,
                remaining=self.remaining,
            )


def _format_hours(delta: timedelta) -> str:
    hours = delta.total_seconds() / 3600
    return f"{hours:g}h" if hours == int(hours) else f"{hours:.1f}h"


class LifecyclePolicy:
    """
    Decides which status transitions are permitted at a given instant.

    ``scheduled`` is the only non-terminal state. Cancelling and rescheduling
    require a minimum lead time before the session start; closing a session
    as completed or no-show requires its end time to have passed.
    """

    def __init__(
        self,
        timezone: str,
        cancellation_lead: timedelta = timedelta(hours=24),
        reschedule_lead: timedelta = timedelta(hours=12),
    ):
        self.timezone = timezone
        self.cancellation_lead = cancellation_lead
        self.reschedule_lead = reschedule_lead

    def time_until_start(self, booking: Booking, now: DateTime) -> timedelta:
        return timedelta(seconds=(booking.starts_at(self.timezone) - now).total_seconds())

    def effective_status(self, booking: Booking, now: DateTime) -> str:
        """Stored status, or ``overdue`` for a scheduled session whose start has passed."""
        if booking.status is BookingStatus.SCHEDULED and booking.starts_at(self.timezone) < now:
            return OVERDUE
        return booking.status.value

    def can_cancel(self, booking: Booking, now: DateTime) -> PolicyDecision:
        if booking.status is not BookingStatus.SCHEDULED:
            return PolicyDecision(False, "Only scheduled sessions can be cancelled")
        return self._check_lead(booking, now, self.cancellation_lead, "Cancellation")

    def can_reschedule(self, booking: Booking, now: DateTime) -> PolicyDecision:
        if booking.status is not BookingStatus.SCHEDULED:
            return PolicyDecision(False, "Only scheduled sessions can be rescheduled")
        return self._check_lead(booking, now, self.reschedule_lead, "Rescheduling")

    def can_close(self, booking: Booking, now: DateTime) -> PolicyDecision:
        """Check whether the session may be marked completed or no-show."""
        if booking.status is not BookingStatus.SCHEDULED:
            return PolicyDecision(False, f"Session is already {booking.status.value}")
        if now < booking.ends_at(self.timezone):
            return PolicyDecision(False, "Session has not ended yet")
        return PolicyDecision(True)

    def transition(
        self,
        booking: Booking,
        new_status: BookingStatus,
        now: DateTime,
        **changes,
    ) -> Booking:
        """Return a copy of ``booking`` moved to ``new_status``."""
        if new_status not in ALLOWED_TRANSITIONS[booking.status]:
            raise PolicyError(
                f"Cannot change session from {booking.status.value} to {new_status.value}"
            )
        return dataclasses.replace(booking, status=new_status, updated_at=now, **changes)

    def _check_lead(
        self,
        booking: Booking,
        now: DateTime,
        required: timedelta,
        action: str,
    ) -> PolicyDecision:
        remaining = self.time_until_start(booking, now)
        if remaining < required:
            return PolicyDecision(
                False,
                f"{action} requires at least {_format_hours(required)} before the session",
                required_lead=required,
                remaining=remaining,
            )
        return PolicyDecision(True, required_lead=required, remaining=remaining)
