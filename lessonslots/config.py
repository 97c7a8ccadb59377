"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BookingPolicy, BusinessHours


class DefaultsConfig(BaseModel):
    """Default settings for slot listing and calendar export."""
    duration_minutes: int = 60
    slot_window_days: int = 7
    export_window_days: int = 30

    @field_validator("duration_minutes", "slot_window_days", "export_window_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and windows are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value


class PolicyDefaultsConfig(BaseModel):
    """Booking policy applied to teachers who have not stored their own."""
    buffer_minutes: int = Field(default=15, ge=0, le=60)
    min_advance_hours: int = Field(default=24, ge=1, le=168)
    max_advance_days: int = Field(default=90, ge=1, le=365)
    allowed_durations: List[int] = Field(default_factory=lambda: [30, 60, 90, 120])
    auto_accept: bool = False
    cancellation_hours: int = Field(default=24, ge=1, le=168)

    @field_validator("allowed_durations")
    @classmethod
    def validate_durations(cls, value: List[int]) -> List[int]:
        """Durations must be 15-240 minutes; duplicates are dropped."""
        if not value:
            raise ValueError("At least one duration must be allowed")
        out_of_range = [duration for duration in value if not 15 <= duration <= 240]
        if out_of_range:
            raise ValueError(f"Durations must be between 15 and 240 minutes, got {out_of_range}")
        return sorted(set(value))

    def to_policy(self, owner_id: str) -> BookingPolicy:
        """Build the domain policy for an owner."""
        return BookingPolicy(
            owner_id=owner_id,
            buffer_minutes=self.buffer_minutes,
            min_advance_hours=self.min_advance_hours,
            max_advance_days=self.max_advance_days,
            allowed_durations=frozenset(self.allowed_durations),
            auto_accept=self.auto_accept,
            cancellation_hours=self.cancellation_hours,
        )


class BusinessHoursConfig(BaseModel):
    """Hours of the day in which lessons may start."""
    start_hour: int = 6
    end_hour: int = 23

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "BusinessHoursConfig":
        """Ensure the window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def to_business_hours(self) -> BusinessHours:
        return BusinessHours(start_hour=self.start_hour, end_hour=self.end_hour)


class CalendarConfig(BaseModel):
    """iCalendar export identity."""
    prodid: str = "-//Skill Exchange Platform//EN"
    uid_domain: str = "skillexchange.com"


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Asia/Kolkata"
    data_file: Path = Path("schedule.json")
    log_level: str = "WARNING"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    policy_defaults: PolicyDefaultsConfig = Field(default_factory=PolicyDefaultsConfig)
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names in any case."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``data_file`` paths are resolved against the config file's
        directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_file: Optional[Path] = None) -> AppConfig:
    """
    Load an explicit config file, or the default one if it exists.

    Falls back to built-in defaults only when no file was requested and none
    is found at the default location.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
