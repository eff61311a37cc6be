"""
Tests for the JSON file store.
"""

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from trainerbook.adapters.json_store import (
    JsonDataStore,
    booking_from_dict,
    booking_to_dict,
    trainer_from_dict,
)
from trainerbook.domain.exceptions import ConfigError, ConflictError
from trainerbook.domain.models import BookingStatus, BookingType
from trainerbook.services.scheduling import SchedulingService

from conftest import MONDAY, TZ, FixedClock

TRAINER = {
    "id": "t1",
    "name": "Anna Petrova",
    "hourly_rate": 40,
    "working_hours": {
        "monday": {"is_working": True, "start": "09:00", "end": "17:00"},
        "tuesday": {"is_working": False},
        "friday": {"is_working": True, "start": "18:00", "end": "24:00"},
    },
}

BOOKING = {
    "id": "bk_1",
    "trainer_id": "t1",
    "client_id": "c1",
    "date": "2024-11-25",
    "start_time": "10:00",
    "end_time": "11:00",
    "type": "group",
    "status": "no-show",
    "created_at": "2024-11-20T09:00:00+01:00",
    "cancellation_reason": "sick",
}


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"trainers": [TRAINER], "bookings": [BOOKING]}), encoding="utf-8")
    return path


class TestRecordConversion:
    def test_trainer_from_dict(self):
        trainer = trainer_from_dict(TRAINER)

        assert trainer.hourly_rate == 40
        assert trainer.working_hours.working_days_count() == 2
        assert not trainer.working_hours.for_weekday("tuesday").is_working
        assert str(trainer.working_hours.for_weekday("friday").end) == "24:00"

    def test_booking_from_dict(self):
        booking = booking_from_dict(BOOKING)

        assert booking.date == MONDAY
        assert booking.type is BookingType.GROUP
        assert booking.status is BookingStatus.NO_SHOW
        assert booking.updated_at is None
        assert booking.cancellation_reason == "sick"

    def test_booking_to_dict_keeps_wire_values(self):
        assert booking_to_dict(booking_from_dict(BOOKING)) == BOOKING


class TestJsonDataStore:
    """Tests for loading and persisting the data file."""

    def test_load(self, data_file):
        store = JsonDataStore(data_file)

        assert store.trainers.get_trainer("t1").name == "Anna Petrova"
        assert store.bookings.get("bk_1").client_id == "c1"

    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonDataStore(tmp_path / "nothing.json")

        assert store.trainers.all() == []
        assert store.bookings.all() == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            JsonDataStore(path)

    def test_invalid_record(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"bookings": [{"id": "x"}]}), encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid data"):
            JsonDataStore(path)

    def test_root_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigError):
            JsonDataStore(path)

    def test_writes_are_persisted(self, data_file):
        """A booking created through the service survives a reload."""
        store = JsonDataStore(data_file)
        service = SchedulingService(
            store.trainers, store.bookings, timezone=TZ, clock=FixedClock(),
            id_factory=lambda: "bk_2",
        )

        service.create_booking("t1", "c2", MONDAY, "09:00", "10:00")
        service.cancel_booking("bk_2", reason="moved away")

        reloaded = JsonDataStore(data_file)
        booking = reloaded.bookings.get("bk_2")
        assert booking.status is BookingStatus.CANCELLED
        assert booking.cancellation_reason == "moved away"
        assert reloaded.trainers.get_trainer("t1").hourly_rate == 40

        document = json.loads(data_file.read_text(encoding="utf-8"))
        assert [b["id"] for b in document["bookings"]] == ["bk_2", "bk_1"]
        assert document["trainers"] == [TRAINER]
        assert not (data_file.parent / "data.json.tmp").exists()


def make_service(store, booking_id):
    return SchedulingService(
        store.trainers, store.bookings, timezone=TZ, clock=FixedClock(),
        id_factory=lambda: booking_id,
    )


class TestSharedDataFile:
    """Two stores opened on the same file behave like two processes."""

    def test_overlapping_booking_from_second_store_conflicts(self, data_file):
        first = make_service(JsonDataStore(data_file), "bk_a")
        second_store = JsonDataStore(data_file)
        second = make_service(second_store, "bk_b")

        first.create_booking("t1", "c2", MONDAY, "12:00", "13:00")

        with pytest.raises(ConflictError) as excinfo:
            second.create_booking("t1", "c3", MONDAY, "12:30", "13:30")

        assert excinfo.value.conflicting_booking.id == "bk_a"
        document = json.loads(data_file.read_text(encoding="utf-8"))
        assert sorted(b["id"] for b in document["bookings"]) == ["bk_1", "bk_a"]
        assert second_store.bookings.get("bk_b") is None

    def test_writes_from_both_stores_are_kept(self, data_file):
        first_store = JsonDataStore(data_file)
        second_store = JsonDataStore(data_file)

        make_service(first_store, "bk_a").create_booking("t1", "c2", MONDAY, "12:00", "13:00")
        make_service(second_store, "bk_b").create_booking("t1", "c3", MONDAY, "14:00", "15:00")

        reloaded = JsonDataStore(data_file)
        assert sorted(b.id for b in reloaded.bookings.all()) == ["bk_1", "bk_a", "bk_b"]
        assert first_store.bookings.get("bk_b").client_id == "c3"

    def test_concurrent_overlapping_requests_from_two_stores(self, data_file):
        """Exactly one of two racing overlapping requests wins."""
        stores = [JsonDataStore(data_file), JsonDataStore(data_file)]
        services = [make_service(store, f"bk_{n}x") for n, store in enumerate(stores)]
        barrier = threading.Barrier(2)

        def attempt(service):
            barrier.wait()
            try:
                return service.create_booking("t1", "c2", MONDAY, "12:00", "13:00")
            except ConflictError:
                return None

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, services))

        assert sum(result is not None for result in results) == 1
        document = json.loads(data_file.read_text(encoding="utf-8"))
        assert len(document["bookings"]) == 2


class TestFailedWrites:
    """A write that cannot be saved leaves the in-memory state untouched."""

    @staticmethod
    def _failing_save():
        raise OSError("disk full")

    def test_add_is_rolled_back(self, data_file, monkeypatch):
        store = JsonDataStore(data_file)
        service = make_service(store, "bk_2")
        monkeypatch.setattr(store, "save", self._failing_save)

        with pytest.raises(OSError):
            service.create_booking("t1", "c2", MONDAY, "12:00", "13:00")

        assert store.bookings.get("bk_2") is None
        assert service.find_conflict("t1", MONDAY, "12:00", "13:00") is None

    def test_update_is_rolled_back(self, data_file, monkeypatch):
        store = JsonDataStore(data_file)
        service = make_service(store, "bk_2")
        service.create_booking("t1", "c2", MONDAY, "12:00", "13:00")
        monkeypatch.setattr(store, "save", self._failing_save)

        with pytest.raises(OSError):
            service.cancel_booking("bk_2", reason="ill")

        booking = store.bookings.get("bk_2")
        assert booking.status is BookingStatus.SCHEDULED
        assert booking.cancellation_reason is None
