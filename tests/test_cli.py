"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from trainerbook import __version__
from trainerbook.cli.app import app

DAY = "2099-03-02"

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    every_day = {"is_working": True, "start": "08:00", "end": "20:00"}
    data = {
        "trainers": [{
            "id": "t1",
            "name": "Anna Petrova",
            "working_hours": {
                day: every_day
                for day in ("monday", "tuesday", "wednesday", "thursday",
                            "friday", "saturday", "sunday")
            },
        }],
        "bookings": [],
    }
    (tmp_path / "data.json").write_text(json.dumps(data), encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text("data_file: data.json\n", encoding="utf-8")
    return path


def invoke(config_file, *args):
    return runner.invoke(app, [*args, "--config", str(config_file)])


class TestCli:
    def test_book_and_list(self, config_file, tmp_path):
        result = invoke(config_file, "book", "t1", "c1", DAY, "10:00", "11:00", "--type", "group")

        assert result.exit_code == 0, result.output
        assert "Session booked" in result.output

        stored = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))["bookings"]
        assert len(stored) == 1
        assert stored[0]["type"] == "group"

        result = invoke(config_file, "slots", "t1", DAY)
        assert result.exit_code == 0, result.output
        assert "09:00" in result.output
        assert "10:00 – 11:00" not in result.output

    def test_conflict_exits_with_error(self, config_file):
        invoke(config_file, "book", "t1", "c1", DAY, "10:00", "11:00")

        result = invoke(config_file, "book", "t1", "c2", DAY, "10:30", "11:30")

        assert result.exit_code == 1
        assert "Conflict" in result.output

    def test_validation_errors_are_listed(self, config_file):
        result = invoke(config_file, "book", "t1", "c1", DAY, "14:00", "14:20")

        assert result.exit_code == 1
        assert "Invalid booking" in result.output

    def test_unknown_trainer(self, config_file):
        result = invoke(config_file, "slots", "nobody", DAY)

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_bad_date(self, config_file):
        result = invoke(config_file, "slots", "t1", "02.03.2099")

        assert result.exit_code != 0

    def test_recommend(self, config_file):
        result = invoke(config_file, "recommend", "t1", DAY, "--limit", "3")

        assert result.exit_code == 0, result.output
        assert "Recommended slots" in result.output

    def test_reports(self, config_file):
        assert invoke(config_file, "stats", "t1").exit_code == 0
        assert invoke(config_file, "forecast", "t1", "--days", "3").exit_code == 0

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_plan_and_upcoming(self, config_file):
        invoke(config_file, "book", "t1", "c1", DAY, "10:00", "11:00")

        result = invoke(config_file, "plan", "t1", DAY)
        assert result.exit_code == 0, result.output
        assert "Day plan" in result.output
        assert "session" in result.output

        result = invoke(config_file, "upcoming", "t1")
        assert result.exit_code == 0, result.output
        assert "1 upcoming session(s)" in result.output

    def test_upcoming_without_sessions(self, config_file):
        result = invoke(config_file, "upcoming", "t1")

        assert result.exit_code == 0
        assert "No upcoming sessions" in result.output
