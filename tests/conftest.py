"""Shared test fixtures and helpers."""

from datetime import date
from itertools import count
from typing import Optional

import pendulum
import pytest

from trainerbook.adapters.memory_repository import (
    InMemoryBookingRepository,
    InMemoryTrainerRepository,
)
from trainerbook.domain.models import (
    Booking,
    BookingStatus,
    BookingType,
    DayHours,
    TimeOfDay,
    Trainer,
    WorkingHours,
)
from trainerbook.services.scheduling import SchedulingService

TZ = "Europe/Berlin"

# Wednesday; the following Monday is 2024-11-25
NOW = pendulum.datetime(2024, 11, 20, 10, 0, tz=TZ)
MONDAY = date(2024, 11, 25)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: pendulum.DateTime = NOW):
        self.now = now

    def __call__(self) -> pendulum.DateTime:
        return self.now

    def set(self, now: pendulum.DateTime) -> None:
        self.now = now


def make_trainer(trainer_id: str = "t1", hourly_rate: Optional[float] = 60.0) -> Trainer:
    """Trainer working Mon-Fri 09:00-17:00 and Saturday 10:00-14:00."""
    weekday = DayHours(True, TimeOfDay.of(9), TimeOfDay.of(17))
    days = {day: weekday for day in ("monday", "tuesday", "wednesday", "thursday", "friday")}
    days["saturday"] = DayHours(True, TimeOfDay.of(10), TimeOfDay.of(14))
    days["sunday"] = DayHours(False)
    return Trainer(
        id=trainer_id,
        name="Anna Petrova",
        working_hours=WorkingHours(days=days),
        hourly_rate=hourly_rate,
    )


_ids = count(1)


def make_booking(
    start: str,
    end: str,
    day: date = MONDAY,
    status: BookingStatus = BookingStatus.SCHEDULED,
    trainer_id: str = "t1",
    booking_type: BookingType = BookingType.PERSONAL,
    booking_id: Optional[str] = None,
    created_at: pendulum.DateTime = NOW,
) -> Booking:
    """Helper to create a Booking with sensible defaults."""
    return Booking(
        id=booking_id or f"b{next(_ids)}",
        trainer_id=trainer_id,
        client_id="c1",
        date=day,
        start_time=TimeOfDay.parse(start),
        end_time=TimeOfDay.parse(end),
        type=booking_type,
        status=status,
        created_at=created_at,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def trainer():
    return make_trainer()


@pytest.fixture
def trainers(trainer):
    return InMemoryTrainerRepository([trainer])


@pytest.fixture
def bookings():
    return InMemoryBookingRepository()


@pytest.fixture
def service(trainers, bookings, clock):
    return SchedulingService(trainers=trainers, bookings=bookings, timezone=TZ, clock=clock)
