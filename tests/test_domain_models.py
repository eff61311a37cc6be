"""
Tests for domain models.
"""

from datetime import date

import pytest

from trainerbook.domain.models import (
    BookingStatus,
    DayHours,
    Slot,
    TimeOfDay,
    WorkingHours,
    weekday_name,
)

from conftest import MONDAY, make_booking


class TestTimeOfDay:
    """Tests for TimeOfDay value type."""

    def test_parse_valid_time(self):
        """Test parsing a well-formed HH:MM string."""
        t = TimeOfDay.parse("09:30")

        assert t.minutes == 570
        assert t.hour == 9
        assert t.minute == 30
        assert str(t) == "09:30"

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "1200", "", "ab:cd", "09:00 "])
    def test_parse_rejects_malformed_time(self, value):
        """Test that anything but strict two-digit 24-hour times is rejected."""
        with pytest.raises(ValueError, match="expected HH:MM"):
            TimeOfDay.parse(value)

    def test_end_of_day_only_when_allowed(self):
        """Test that 24:00 is accepted as a window end."""
        assert TimeOfDay.parse("24:00", allow_end_of_day=True).minutes == 1440

    def test_ordering_is_numeric(self):
        """Test that times compare by minutes, not lexically."""
        assert TimeOfDay.of(9) < TimeOfDay.of(10)
        assert TimeOfDay.parse("09:59") < TimeOfDay.parse("10:00")

    def test_arithmetic(self):
        """Test adding minutes and measuring differences."""
        start = TimeOfDay.of(10)

        assert start.add_minutes(90) == TimeOfDay.of(11, 30)
        assert start.minutes_until(TimeOfDay.of(9)) == -60

    def test_on_builds_aware_datetime(self):
        """Test combining a time with a date."""
        dt = TimeOfDay.of(14, 15).on(MONDAY, "Europe/Berlin")

        assert (dt.year, dt.month, dt.day, dt.hour, dt.minute) == (2024, 11, 25, 14, 15)
        assert dt.timezone_name == "Europe/Berlin"

    def test_on_keeps_wall_clock_across_dst_change(self):
        """Clocks jump forward on 2024-03-31 in Berlin."""
        dt = TimeOfDay.of(10).on(date(2024, 3, 31), "Europe/Berlin")

        assert (dt.hour, dt.minute) == (10, 0)
        assert TimeOfDay.parse("24:00", allow_end_of_day=True).on(
            date(2024, 3, 31), "Europe/Berlin"
        ).day == 1


class TestWorkingHours:
    """Tests for WorkingHours model."""

    def test_weekday_name(self):
        assert weekday_name(date(2024, 11, 25)) == "monday"
        assert weekday_name(date(2024, 11, 24)) == "sunday"

    def test_get_working_hours_for_day(self, trainer):
        """Test getting working hours for a specific day."""
        window = trainer.working_hours.get_working_hours_for_day(MONDAY)

        assert window == (TimeOfDay.of(9), TimeOfDay.of(17))

    def test_day_off_returns_none(self, trainer):
        """Test that a non-working day has no window."""
        sunday = date(2024, 11, 24)

        assert not trainer.working_hours.is_working_day(sunday)
        assert trainer.working_hours.get_working_hours_for_day(sunday) is None

    def test_missing_weekday_is_day_off(self):
        """Test that weekdays absent from the map count as days off."""
        hours = WorkingHours(days={"tuesday": DayHours(True, TimeOfDay.of(8), TimeOfDay.of(12))})

        assert hours.get_working_hours_for_day(MONDAY) is None
        assert hours.working_days_count() == 1

    def test_unknown_weekday_rejected(self):
        with pytest.raises(ValueError, match="Unknown weekday"):
            WorkingHours(days={"funday": DayHours(False)})

    def test_invalid_window_rejected(self):
        with pytest.raises(ValueError, match="must be before end"):
            DayHours(True, TimeOfDay.of(17), TimeOfDay.of(9))


class TestBooking:
    """Tests for Booking model."""

    def test_invalid_interval_raises_error(self):
        """Test that a booking ending before it starts is rejected."""
        with pytest.raises(ValueError, match="must be before end time"):
            make_booking("11:00", "10:00")

    def test_duration_and_activity(self):
        booking = make_booking("10:00", "11:30")
        cancelled = make_booking("10:00", "11:30", status=BookingStatus.CANCELLED)

        assert booking.duration_minutes() == 90
        assert booking.is_active
        assert not cancelled.is_active

    def test_terminal_statuses(self):
        assert not BookingStatus.SCHEDULED.is_terminal
        assert BookingStatus.COMPLETED.is_terminal
        assert BookingStatus.CANCELLED.is_terminal
        assert BookingStatus.NO_SHOW.is_terminal


class TestSlot:
    def test_end_and_display(self):
        slot = Slot(time=TimeOfDay.of(9, 30), duration_minutes=60)

        assert slot.end == TimeOfDay.of(10, 30)
        assert slot.format_display() == "09:30 – 10:30 (60 min)"
