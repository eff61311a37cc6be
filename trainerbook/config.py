"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import timedelta
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class PolicyConfig(BaseModel):
    """Business policy applied by the booking engine."""
    slot_step_minutes: int = 30
    min_duration_minutes: int = 30
    max_duration_minutes: int = 240
    cancellation_lead_hours: float = 24
    reschedule_lead_hours: float = 12
    forecast_slot_minutes: int = 60

    @field_validator(
        "slot_step_minutes",
        "min_duration_minutes",
        "max_duration_minutes",
        "forecast_slot_minutes",
    )
    @classmethod
    def validate_positive_minutes(cls, value: int) -> int:
        """Ensure minute settings are positive."""
        if value <= 0:
            raise ValueError(f"Minute values must be greater than zero, got {value}")
        return value

    @field_validator("cancellation_lead_hours", "reschedule_lead_hours")
    @classmethod
    def validate_lead_hours(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"Lead time cannot be negative, got {value}")
        return value

    @model_validator(mode="after")
    def validate_duration_order(self) -> "PolicyConfig":
        """Ensure the duration bounds describe a non-empty range."""
        if self.max_duration_minutes < self.min_duration_minutes:
            raise ValueError("max_duration_minutes must not be below min_duration_minutes")
        return self

    def cancellation_lead(self) -> timedelta:
        return timedelta(hours=self.cancellation_lead_hours)

    def reschedule_lead(self) -> timedelta:
        return timedelta(hours=self.reschedule_lead_hours)


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    data_file: Path = Path("trainerbook.json")
    log_level: str = "WARNING"
    policy: PolicyConfig = Field(default_factory=PolicyConfig)

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
            config = config.model_copy(
                update={"data_file": config_path.parent / config.data_file}
            )
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
