"""
In-memory repositories.

Used by the tests and as the base of the JSON file store. The booking
repository keeps one mutex per ``(trainer_id, date)`` so writers for
different trainers or days never wait on each other.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from datetime import date
from typing import Dict, Iterable, Iterator, List, Tuple

from ..domain.models import Booking, Trainer


class InMemoryTrainerRepository:
    """Trainer lookup backed by a dict."""

    def __init__(self, trainers: Iterable[Trainer] = ()):
        self._trainers: Dict[str, Trainer] = {t.id: t for t in trainers}

    def add(self, trainer: Trainer) -> None:
        self._trainers[trainer.id] = trainer

    def get_trainer(self, trainer_id: str) -> Trainer | None:
        return self._trainers.get(trainer_id)

    def all(self) -> List[Trainer]:
        return list(self._trainers.values())


class InMemoryBookingRepository:
    """
    Booking store with per-trainer-and-date write locks.

    ``_data_lock`` only guards the dict itself for the duration of a single
    read or write; it is never held while a caller runs its own logic.
    """

    def __init__(self, bookings: Iterable[Booking] = ()):
        self._bookings: Dict[str, Booking] = {b.id: b for b in bookings}
        self._data_lock = threading.Lock()
        self._registry_lock = threading.Lock()
        self._key_locks: Dict[Tuple[str, date], threading.Lock] = {}

    def get(self, booking_id: str) -> Booking | None:
        with self._data_lock:
            return self._bookings.get(booking_id)

    def list_for_day(self, trainer_id: str, day: date) -> List[Booking]:
        return self.list_for_trainer(trainer_id, day, day)

    def list_for_trainer(
        self,
        trainer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[Booking]:
        with self._data_lock:
            snapshot = list(self._bookings.values())
        selected = [
            b for b in snapshot
            if b.trainer_id == trainer_id
            and (start_date is None or b.date >= start_date)
            and (end_date is None or b.date <= end_date)
        ]
        return sorted(selected, key=lambda b: (b.date, b.start_time, b.id))

    def all(self) -> List[Booking]:
        with self._data_lock:
            return list(self._bookings.values())

    def add(self, booking: Booking) -> None:
        with self._data_lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking {booking.id} already exists")
            self._bookings[booking.id] = booking

    def update(self, booking: Booking) -> None:
        with self._data_lock:
            if booking.id not in self._bookings:
                raise KeyError(booking.id)
            self._bookings[booking.id] = booking

    def _replace_all(self, bookings: Iterable[Booking]) -> None:
        fresh = {b.id: b for b in bookings}
        with self._data_lock:
            self._bookings = fresh

    def _restore(self, booking_id: str, previous: Booking | None) -> None:
        """Put back ``previous`` under ``booking_id``, or drop the id if there was none."""
        with self._data_lock:
            if previous is None:
                self._bookings.pop(booking_id, None)
            else:
                self._bookings[booking_id] = previous

    @contextmanager
    def lock(self, trainer_id: str, *days: date) -> Iterator[None]:
        """
        Hold the locks of every ``(trainer_id, day)`` key.

        Keys are acquired in date order so a reschedule spanning two days
        cannot deadlock against another one going the opposite way.
        """
        with ExitStack() as stack:
            for day in sorted(set(days)):
                stack.enter_context(self._lock_for(trainer_id, day))
            yield

    def _lock_for(self, trainer_id: str, day: date) -> threading.Lock:
        key = (trainer_id, day)
        with self._registry_lock:
            if key not in self._key_locks:
                self._key_locks[key] = threading.Lock()
            return self._key_locks[key]
