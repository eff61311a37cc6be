"""
JSON file backed storage for trainers and bookings.

The file holds a single document:

    {
      "trainers": [
        {"id": "t1", "name": "Anna", "hourly_rate": 40,
         "working_hours": {"monday": {"is_working": true, "start": "09:00", "end": "17:00"}}}
      ],
      "bookings": [
        {"id": "bk_1", "trainer_id": "t1", "client_id": "c1", "date": "2024-11-25",
         "start_time": "10:00", "end_time": "11:00", "type": "personal",
         "status": "scheduled", "created_at": "2024-11-20T09:00:00+01:00"}
      ]
    }

Every write rewrites the whole file while holding a sibling ``.lock`` file.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

import pendulum
from filelock import FileLock

from ..domain.exceptions import ConfigError
from ..domain.models import (
    Booking,
    BookingStatus,
    BookingType,
    DayHours,
    TimeOfDay,
    Trainer,
    WorkingHours,
)
from .memory_repository import InMemoryBookingRepository, InMemoryTrainerRepository

logger = logging.getLogger(__name__)


def trainer_from_dict(data: Dict[str, Any]) -> Trainer:
    days = {}
    for weekday, hours in (data.get("working_hours") or {}).items():
        is_working = bool(hours.get("is_working", False))
        if is_working:
            days[weekday] = DayHours(
                is_working=True,
                start=TimeOfDay.parse(hours["start"]),
                end=TimeOfDay.parse(hours["end"], allow_end_of_day=True),
            )
        else:
            days[weekday] = DayHours(is_working=False)
    return Trainer(
        id=str(data["id"]),
        name=data.get("name", str(data["id"])),
        working_hours=WorkingHours(days=days),
        hourly_rate=data.get("hourly_rate"),
    )


def booking_from_dict(data: Dict[str, Any]) -> Booking:
    updated_at = data.get("updated_at")
    return Booking(
        id=data["id"],
        trainer_id=data["trainer_id"],
        client_id=data["client_id"],
        date=pendulum.from_format(data["date"], "YYYY-MM-DD").date(),
        start_time=TimeOfDay.parse(data["start_time"]),
        end_time=TimeOfDay.parse(data["end_time"], allow_end_of_day=True),
        type=BookingType(data.get("type", BookingType.PERSONAL.value)),
        status=BookingStatus(data.get("status", BookingStatus.SCHEDULED.value)),
        created_at=pendulum.parse(data["created_at"]),
        updated_at=pendulum.parse(updated_at) if updated_at else None,
        notes=data.get("notes"),
        cancellation_reason=data.get("cancellation_reason"),
    )


def booking_to_dict(booking: Booking) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": booking.id,
        "trainer_id": booking.trainer_id,
        "client_id": booking.client_id,
        "date": booking.date.isoformat(),
        "start_time": str(booking.start_time),
        "end_time": str(booking.end_time),
        "type": booking.type.value,
        "status": booking.status.value,
        "created_at": booking.created_at.isoformat(),
    }
    if booking.updated_at is not None:
        data["updated_at"] = booking.updated_at.isoformat()
    if booking.notes:
        data["notes"] = booking.notes
    if booking.cancellation_reason:
        data["cancellation_reason"] = booking.cancellation_reason
    return data


class JsonBookingRepository(InMemoryBookingRepository):
    """
    In-memory repository that persists every write to the data file.

    Reads refresh the snapshot when the file changed on disk. Writes and
    ``lock`` hold the store's file lock, so separate processes sharing one
    data file serialize their conflict checks and never overwrite each
    other's bookings.
    """

    def __init__(self, store: "JsonDataStore", bookings: List[Booking]):
        super().__init__(bookings)
        self._store = store

    def get(self, booking_id: str) -> Booking | None:
        self._store.refresh()
        return super().get(booking_id)

    def list_for_trainer(
        self,
        trainer_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[Booking]:
        self._store.refresh()
        return super().list_for_trainer(trainer_id, start_date, end_date)

    def add(self, booking: Booking) -> None:
        with self._store.exclusive():
            super().add(booking)
            self._save_or_restore(booking.id, None)

    def update(self, booking: Booking) -> None:
        with self._store.exclusive():
            previous = super().get(booking.id)
            super().update(booking)
            self._save_or_restore(booking.id, previous)

    @contextmanager
    def lock(self, trainer_id: str, *days: date) -> Iterator[None]:
        with super().lock(trainer_id, *days), self._store.exclusive():
            yield

    def _save_or_restore(self, booking_id: str, previous: Booking | None) -> None:
        try:
            self._store.save()
        except Exception:
            self._restore(booking_id, previous)
            raise


class JsonDataStore:
    """
    Loads trainers and bookings from a JSON file and writes bookings back.

    Trainer records are written back untouched. A ``<file>.lock`` next to the
    data file guards every read-check-write cycle across processes.
    """

    def __init__(self, path: Path):
        self.path = path
        self._file_lock = FileLock(str(path.with_name(path.name + ".lock")))
        self._signature: Tuple[int, int] | None = None
        document = self._load()
        self._raw_trainers: List[Dict[str, Any]] = document.get("trainers", [])

        try:
            self.trainers = InMemoryTrainerRepository(
                trainer_from_dict(t) for t in self._raw_trainers
            )
        except (KeyError, ValueError, TypeError) as exc:
            raise ConfigError(f"Invalid data in {self.path}: {exc}") from exc
        bookings = self._parse_bookings(document)

        self.bookings = JsonBookingRepository(self, bookings)
        logger.debug(
            "Loaded %d trainer(s) and %d booking(s) from %s",
            len(self._raw_trainers), len(bookings), self.path,
        )

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """
        Hold the data file lock.

        The outermost acquisition reloads the bookings from disk, so whatever
        runs inside sees every write made by other processes.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._file_lock:
            if self._file_lock.lock_counter == 1:
                self._reload()
            yield

    def refresh(self) -> None:
        """Reload the bookings if the file changed since it was last read or written."""
        if self._current_signature() != self._signature:
            self._reload()

    def save(self) -> None:
        with self._file_lock:
            document = {
                "trainers": self._raw_trainers,
                "bookings": [
                    booking_to_dict(b)
                    for b in sorted(self.bookings.all(), key=lambda b: (b.date, b.start_time, b.id))
                ],
            }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
            self._signature = self._current_signature()

    def _reload(self) -> None:
        document = self._load()
        self._raw_trainers = document.get("trainers", [])
        self.bookings._replace_all(self._parse_bookings(document))
        logger.debug("Reloaded bookings from %s", self.path)

    def _parse_bookings(self, document: Dict[str, Any]) -> List[Booking]:
        try:
            return [booking_from_dict(b) for b in document.get("bookings", [])]
        except (KeyError, ValueError, TypeError) as exc:
            raise ConfigError(f"Invalid data in {self.path}: {exc}") from exc

    def _current_signature(self) -> Tuple[int, int] | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def _load(self) -> Dict[str, Any]:
        signature = self._current_signature()
        if signature is None:
            logger.info("Data file %s does not exist yet, starting empty", self.path)
            self._signature = None
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ConfigError("Data file must contain an object at the root level.")
        self._signature = signature
        return document
