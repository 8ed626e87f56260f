"""
Tests for configuration loading.
"""

from datetime import time

import pytest
from pydantic import ValidationError

from meetingscheduler.config import AppConfig, DefaultsConfig


class TestDefaultsConfig:
    """Tests for DefaultsConfig validation."""

    def test_defaults(self):
        defaults = DefaultsConfig()

        assert defaults.working_start == time(9, 0)
        assert defaults.working_end == time(17, 0)
        assert defaults.duration_minutes == 30

    def test_overnight_defaults_allowed(self):
        defaults = DefaultsConfig(working_start="22:00", working_end="06:00")

        assert defaults.working_end < defaults.working_start

    def test_equal_bounds_rejected(self):
        with pytest.raises(ValidationError, match="must differ"):
            DefaultsConfig(working_start="09:00", working_end="09:00")

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValidationError):
            DefaultsConfig(duration_minutes=0)


class TestAppConfig:
    """Tests for AppConfig loading."""

    def test_load_from_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "timezone: UTC\n"
            "log_level: info\n"
            "data_file: data/schedule.json\n"
            "defaults:\n"
            "  working_start: '08:00'\n"
            "  working_end: '16:30'\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.timezone == "UTC"
        assert config.log_level == "INFO"
        assert config.defaults.working_end == time(16, 30)
        assert config.data_file == tmp_path / "data" / "schedule.json"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "config.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("defaults: [unclosed", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_root_must_be_mapping(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping at the root"):
            AppConfig.load_from_yaml(config_path)

    def test_http_source_requires_api_section(self):
        with pytest.raises(ValidationError, match="requires an 'api' section"):
            AppConfig(data_source="http")

    def test_api_base_url_validated(self):
        config = AppConfig(data_source="http", api={"base_url": "http://localhost:8080/"})

        assert config.api.base_url == "http://localhost:8080"

        with pytest.raises(ValidationError):
            AppConfig(data_source="http", api={"base_url": "localhost:8080"})

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            AppConfig(log_level="chatty")
