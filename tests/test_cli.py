"""
Tests for the command line interface.
"""

import json

import pendulum
import pytest
from typer.testing import CliRunner

from lessonslots import __version__
from lessonslots.cli.app import app

runner = CliRunner()


def _next_monday(weeks_ahead: int = 2):
    today = pendulum.now("UTC").date()
    return today.add(days=(7 - today.weekday()) % 7 + 7 * weeks_ahead)


@pytest.fixture
def cli_env(tmp_path):
    monday = _next_monday()
    lesson_start = pendulum.now("UTC").add(days=3).replace(hour=10, minute=0, second=0, microsecond=0)
    data = {
        "users": [
            {"id": "t1", "name": "Asha Rao", "email": "asha@example.com", "timezone": "UTC"},
            {"id": "s1", "name": "Sam Lee", "email": "sam@example.com", "timezone": "UTC"},
        ],
        "weekly_rules": [
            {"owner_id": "t1", "day_of_week": 1, "start_time": "09:00", "end_time": "17:00"},
        ],
        "blocked_ranges": [],
        "booking_policies": [],
        "lessons": [
            {"id": "l1", "teacher_id": "t1", "student_id": "s1", "title": "Chords", "skill": "Guitar",
             "start": lesson_start.to_iso8601_string(), "duration_minutes": 60, "status": "CONFIRMED"},
        ],
    }
    (tmp_path / "schedule.json").write_text(json.dumps(data), encoding="utf-8")

    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: UTC\n"
        "data_file: schedule.json\n",
        encoding="utf-8",
    )
    return path, monday


class TestCli:
    """Tests for the lessonslots commands."""

    def test_slots_lists_times(self, cli_env):
        config_file, monday = cli_env
        monday = monday.isoformat()
        result = runner.invoke(
            app,
            ["slots", "t1", "--config", str(config_file), "--start", monday, "--end", monday],
        )

        assert result.exit_code == 0
        assert "09:00 - 10:00" in result.output
        assert "10:15 - 11:15" in result.output

    def test_slots_unknown_owner_fails(self, cli_env):
        config_file, _ = cli_env
        result = runner.invoke(app, ["slots", "ghost", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_check_reports_availability(self, cli_env):
        config_file, monday = cli_env
        at = f"{monday.isoformat()}T10:00:00"
        result = runner.invoke(app, ["check", "t1", "--at", at, "--config", str(config_file)])

        assert result.exit_code == 0
        assert "✓ Available" in result.output

    def test_validate_rejects_past_booking(self, cli_env):
        config_file, _ = cli_env
        result = runner.invoke(
            app,
            ["validate", "t1", "--at", "2020-01-06T10:00:00", "--config", str(config_file)],
        )

        assert result.exit_code == 1
        assert "Cannot book lessons in the past" in result.output

    def test_validate_accepts_valid_booking(self, cli_env):
        config_file, monday = cli_env
        at = f"{monday.isoformat()}T10:00:00"
        result = runner.invoke(app, ["validate", "t1", "--at", at, "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Booking is valid" in result.output

    def test_export_prints_calendar(self, cli_env):
        config_file, _ = cli_env
        result = runner.invoke(app, ["export", "s1", "--config", str(config_file)])

        assert result.exit_code == 0
        assert result.output.startswith("BEGIN:VCALENDAR")
        assert "UID:l1@skillexchange.com" in result.output

    def test_export_writes_file(self, cli_env, tmp_path):
        config_file, _ = cli_env
        output = tmp_path / "lessons.ics"
        result = runner.invoke(
            app, ["export", "t1", "--config", str(config_file), "--output", str(output)]
        )

        assert result.exit_code == 0
        assert output.read_bytes().startswith(b"BEGIN:VCALENDAR\r\n")

    def test_policy_shows_defaults(self, cli_env):
        config_file, _ = cli_env
        result = runner.invoke(app, ["policy", "t1", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "30, 60, 90, 120" in result.output

    def test_missing_config_fails(self, tmp_path):
        result = runner.invoke(app, ["policy", "t1", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
