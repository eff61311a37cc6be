"""
Protocols for the storage collaborators the scheduling services depend on.
"""

from __future__ import annotations

from datetime import date
from typing import ContextManager, List, Protocol

from ..domain.models import Booking, Trainer


class TrainerRepository(Protocol):
    """Read-only access to trainer profiles."""

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        """Return the trainer or None if unknown."""


class BookingRepository(Protocol):
    """
    Booking storage with per-trainer-and-date write serialization.

    ``lock`` must make a conflict check followed by ``add``/``update`` atomic
    with respect to every other writer holding a lock for one of the same
    ``(trainer_id, date)`` keys. Reads return snapshots and never wait on it.
    """

    def get(self, booking_id: str) -> Booking | None:
        """Return a booking by id or None."""

    def list_for_day(self, trainer_id: str, day: date) -> List[Booking]:
        """All bookings (any status) of a trainer on one date."""

    def list_for_trainer(
        self,
        trainer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[Booking]:
        """All bookings of a trainer, optionally bounded by date (inclusive)."""

    def add(self, booking: Booking) -> None:
        """Insert a new booking."""

    def update(self, booking: Booking) -> None:
        """Replace the stored booking with the same id."""

    def lock(self, trainer_id: str, *days: date) -> ContextManager[None]:
        """Hold the write locks of the given ``(trainer_id, day)`` keys."""
