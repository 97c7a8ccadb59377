"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lessonslots.config import AppConfig, PolicyDefaultsConfig, load_config


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "Asia/Kolkata"
        assert config.business_hours.start_hour == 6
        assert config.business_hours.end_hour == 23
        assert config.policy_defaults.allowed_durations == [30, 60, 90, 120]
        assert config.calendar.uid_domain == "skillexchange.com"

    def test_load_from_yaml_resolves_data_file(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "timezone: Europe/Berlin\n"
            "data_file: data/schedule.json\n"
            "log_level: debug\n"
            "policy_defaults:\n"
            "  buffer_minutes: 10\n"
            "  allowed_durations: [60, 30, 60]\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.timezone == "Europe/Berlin"
        assert config.data_file == tmp_path / "data" / "schedule.json"
        assert config.log_level == "DEBUG"
        assert config.policy_defaults.allowed_durations == [30, 60]

        policy = config.policy_defaults.to_policy("t1")
        assert policy.owner_id == "t1"
        assert policy.buffer_minutes == 10
        assert policy.allowed_durations == frozenset({30, 60})

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("timezone: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_non_mapping_root_raises(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_path)

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(timezone="Mars/Olympus_Mons")

    def test_business_hours_order(self):
        with pytest.raises(ValidationError):
            AppConfig(business_hours={"start_hour": 20, "end_hour": 8})

    @pytest.mark.parametrize("durations", [[], [10], [300]])
    def test_invalid_durations(self, durations):
        with pytest.raises(ValidationError):
            PolicyDefaultsConfig(allowed_durations=durations)

    def test_buffer_bounds(self):
        with pytest.raises(ValidationError):
            PolicyDefaultsConfig(buffer_minutes=-1)
        with pytest.raises(ValidationError):
            PolicyDefaultsConfig(buffer_minutes=61)


class TestLoadConfig:
    """Tests for config discovery."""

    def test_falls_back_to_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("lessonslots.config.get_default_config_path", lambda: tmp_path / "config.yaml")

        assert load_config() == AppConfig()

    def test_explicit_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(Path(tmp_path / "missing.yaml"))
