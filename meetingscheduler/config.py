"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from datetime import time
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class DefaultsConfig(BaseModel):
    """Default working hours and meeting duration."""
    duration_minutes: int = 30
    working_start: time = time(9, 0)
    working_end: time = time(17, 0)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure meeting duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_hours_differ(self) -> "DefaultsConfig":
        """An end before the start is an overnight shift; equal bounds are not."""
        if self.working_start == self.working_end:
            raise ValueError("working_start and working_end must differ")
        return self


class ApiConfig(BaseModel):
    """Connection settings for the REST backend."""
    base_url: str
    token: Optional[str] = None
    timeout_seconds: float = 30

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Application configuration."""
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    timezone: str = "Europe/Berlin"
    data_source: Literal["file", "http"] = "file"
    data_file: Path = Path("schedule.json")
    api: Optional[ApiConfig] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def validate_data_source(self) -> "AppConfig":
        """The HTTP data source needs connection settings."""
        if self.data_source == "http" and self.api is None:
            raise ValueError("data_source 'http' requires an 'api' section")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``data_file`` is resolved against the config file's directory.

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
