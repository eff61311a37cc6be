"""
Tests for SessionValidator.
"""

from datetime import date

import pytest

from trainerbook.domain.exceptions import ValidationError
from trainerbook.domain.validation import (
    DURATION_TOO_LONG,
    DURATION_TOO_SHORT,
    INVALID_TIME_FORMAT,
    PAST_DATE,
    START_NOT_BEFORE_END,
    SessionValidator,
)

from conftest import MONDAY, NOW

TODAY = NOW.date()
YESTERDAY = date(2024, 11, 19)


@pytest.fixture
def validator(clock):
    return SessionValidator(clock)


class TestSessionValidator:
    """Tests for booking request validation."""

    def test_valid_request(self, validator):
        result = validator.validate(MONDAY, "09:00", "10:00")

        assert result.is_valid
        assert str(result.start) == "09:00"
        assert str(result.end) == "10:00"

    def test_today_is_allowed(self, validator):
        assert validator.validate(TODAY, "18:00", "19:00").is_valid

    def test_past_date(self, validator):
        """Yesterday is rejected with a past-date violation."""
        result = validator.validate(YESTERDAY, "09:00", "10:00")

        assert result.codes == [PAST_DATE]
        assert result.violations[0].field == "date"

    def test_unpadded_hour_is_invalid_format(self, validator):
        result = validator.validate(MONDAY, "9:00", "10:00")

        assert result.codes == [INVALID_TIME_FORMAT]
        assert result.violations[0].field == "start_time"
        assert result.start is None

    def test_start_not_before_end(self, validator):
        assert validator.validate(MONDAY, "10:00", "10:00").codes == [START_NOT_BEFORE_END]
        assert validator.validate(MONDAY, "11:00", "10:00").codes == [START_NOT_BEFORE_END]

    def test_minimum_duration(self, validator):
        """A 20-minute session is too short."""
        assert validator.validate(MONDAY, "14:00", "14:20").codes == [DURATION_TOO_SHORT]
        assert validator.validate(MONDAY, "14:00", "14:30").is_valid

    def test_maximum_duration(self, validator):
        assert validator.validate(MONDAY, "09:00", "13:00").is_valid
        result = validator.validate(MONDAY, "09:00", "13:01")

        assert result.codes == [DURATION_TOO_LONG]
        assert "4 hours" in result.violations[0].message

    def test_all_violations_are_collected(self, validator):
        """Every broken rule is reported, not just the first."""
        result = validator.validate(YESTERDAY, "25:00", "x")

        assert result.codes == [PAST_DATE, INVALID_TIME_FORMAT, INVALID_TIME_FORMAT]
        assert [v.field for v in result.violations] == ["date", "start_time", "end_time"]

    def test_past_date_and_duration_together(self, validator):
        result = validator.validate(YESTERDAY, "14:00", "14:20")

        assert result.codes == [PAST_DATE, DURATION_TOO_SHORT]

    def test_custom_bounds(self, clock):
        validator = SessionValidator(clock, min_duration_minutes=15, max_duration_minutes=90)

        assert validator.validate(MONDAY, "14:00", "14:15").is_valid
        assert validator.validate(MONDAY, "14:00", "15:45").codes == [DURATION_TOO_LONG]

    def test_raise_for_violations(self, validator):
        result = validator.validate(YESTERDAY, "14:00", "14:20")

        with pytest.raises(ValidationError) as excinfo:
            result.raise_for_violations()

        assert excinfo.value.codes == [PAST_DATE, DURATION_TOO_SHORT]

    def test_midnight_is_a_valid_end(self, validator):
        result = validator.validate(MONDAY, "23:00", "24:00")

        assert result.is_valid
        assert result.start.minutes_until(result.end) == 60

    def test_midnight_is_not_a_valid_start(self, validator):
        result = validator.validate(MONDAY, "24:00", "24:30")

        assert INVALID_TIME_FORMAT in result.codes
        assert result.violations[0].field == "start_time"

    def test_parse_times_only_checks_format(self, validator):
        assert validator.parse_times("09:00", "24:00").is_valid
        assert validator.parse_times("9:00", "10:00").codes == [INVALID_TIME_FORMAT]
