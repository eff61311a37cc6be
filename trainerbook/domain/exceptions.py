"""
Domain-specific exception hierarchy for the trainer booking engine.

Every error carries enough structure for the caller to render its own
message or decide whether to retry with different input.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .models import Booking
    from .validation import Violation


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class ConfigError(SchedulingError):
    """Raised when configuration or stored data cannot be loaded."""


class ValidationError(SchedulingError):
    """Raised when a proposed booking breaks one or more validation rules."""

    def __init__(self, violations: List["Violation"]):
        self.violations = list(violations)
        messages = "; ".join(v.message for v in self.violations)
        super().__init__(f"Invalid booking: {messages}")

    @property
    def codes(self) -> List[str]:
        return [v.code for v in self.violations]


class ConflictError(SchedulingError):
    """Raised when the requested interval overlaps an existing booking."""

    def __init__(self, conflicting_booking: "Booking"):
        self.conflicting_booking = conflicting_booking
        super().__init__(
            f"Time conflicts with booking {conflicting_booking.id} "
            f"({conflicting_booking.start_time} - {conflicting_booking.end_time})"
        )


class PolicyError(SchedulingError):
    """
    Raised when a lifecycle transition is not allowed.

    ``required_lead`` and ``remaining`` are only set for lead-time violations.
    """

    def __init__(
        self,
        reason: str,
        required_lead: timedelta | None = None,
        remaining: timedelta | None = None,
    ):
        self.reason = reason
        self.required_lead = required_lead
        self.remaining = remaining
        super().__init__(reason)


class NotFoundError(SchedulingError):
    """Raised when a referenced trainer or booking does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} not found: {identifier}")
