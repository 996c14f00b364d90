"""Unit tests for the settings configuration module."""

import logging
from pathlib import Path

import pytest
import yaml

from custodybot.config.settings import (
    CustodyBotSettings,
    LoggingSettings,
    get_settings,
    reset_settings,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Empty configuration directory."""
    path = tmp_path / "config"
    path.mkdir()
    return path


def write_config(config_dir: Path, data) -> Path:
    """Write a config.yaml into the directory."""
    config_file = config_dir / "config.yaml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_file


class TestDefaults:
    """Tests for default values."""

    def test_default_values(self, config_dir):
        """Defaults apply when nothing is configured."""
        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 12
        assert settings.default_start_time == "09:00"
        assert settings.default_end_time == "17:00"
        assert settings.import_occurrence_limit == 12
        assert settings.max_occurrences == 1000
        assert settings.extra_custody_keywords == []
        assert settings.ics_uid_domain == "custodybot.local"
        assert settings.calendar_timezone is None
        assert isinstance(settings.logging, LoggingSettings)

    def test_logging_defaults(self):
        """Logging defaults to INFO on the console and no file output."""
        config = LoggingSettings()

        assert config.console_enabled is True
        assert config.console_level == "INFO"
        assert config.file_enabled is False
        assert config.file_level == "DEBUG"
        assert config.max_log_files == 5
        assert config.third_party_level == "WARNING"

    def test_paths(self, config_dir):
        """Config file and log directory derive from config_dir."""
        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.config_file == config_dir / "config.yaml"
        assert settings.log_dir == config_dir / "logs"

    def test_custom_log_directory(self, config_dir, tmp_path):
        """An explicit log directory wins over the default."""
        settings = CustodyBotSettings(
            config_dir=config_dir, logging=LoggingSettings(file_directory=str(tmp_path / "l"))
        )

        assert settings.log_dir == tmp_path / "l"

    def test_invalid_values_rejected(self, config_dir):
        """Out-of-range numbers fail validation."""
        with pytest.raises(ValueError):
            CustodyBotSettings(config_dir=config_dir, schedule_horizon_weeks=0)


class TestEnvironment:
    """Tests for CUSTODYBOT_* environment variables."""

    def test_env_vars_are_read(self, monkeypatch, config_dir):
        """Prefixed variables populate settings."""
        monkeypatch.setenv("CUSTODYBOT_SCHEDULE_HORIZON_WEEKS", "6")
        monkeypatch.setenv("CUSTODYBOT_EXTRA_CUSTODY_KEYWORDS", '["soccer", "swim"]')

        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 6
        assert settings.extra_custody_keywords == ["soccer", "swim"]

    def test_env_var_beats_yaml(self, monkeypatch, config_dir):
        """YAML does not override a value set in the environment."""
        write_config(config_dir, {"schedule_horizon_weeks": 4})
        monkeypatch.setenv("CUSTODYBOT_SCHEDULE_HORIZON_WEEKS", "6")

        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 6

    def test_config_dir_from_env(self, monkeypatch, config_dir):
        """The config directory itself can come from the environment."""
        write_config(config_dir, {"max_occurrences": 50})
        monkeypatch.setenv("CUSTODYBOT_CONFIG_DIR", str(config_dir))

        settings = CustodyBotSettings()

        assert settings.config_dir == config_dir
        assert settings.max_occurrences == 50


class TestYamlConfig:
    """Tests for config.yaml loading."""

    def test_yaml_values_are_applied(self, config_dir):
        """Top-level, ics and logging sections are loaded."""
        write_config(
            config_dir,
            {
                "schedule_horizon_weeks": 4,
                "default_start_time": "08:00",
                "extra_custody_keywords": ["soccer"],
                "calendar_timezone": "Europe/London",
                "ics": {"prodid": "-//Example//EN", "uid_domain": "example.org"},
                "logging": {"console_level": "DEBUG", "file_enabled": True, "unknown": 1},
            },
        )

        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 4
        assert settings.default_start_time == "08:00"
        assert settings.extra_custody_keywords == ["soccer"]
        assert settings.calendar_timezone == "Europe/London"
        assert settings.ics_prodid == "-//Example//EN"
        assert settings.ics_uid_domain == "example.org"
        assert settings.logging.console_level == "DEBUG"
        assert settings.logging.file_enabled is True
        assert not hasattr(settings.logging, "unknown")

    def test_explicit_argument_beats_yaml(self, config_dir):
        """Keyword arguments are not overridden by YAML."""
        write_config(config_dir, {"schedule_horizon_weeks": 4, "ics": {"uid_domain": "a.org"}})

        settings = CustodyBotSettings(
            config_dir=config_dir, schedule_horizon_weeks=20, ics_uid_domain="b.org"
        )

        assert settings.schedule_horizon_weeks == 20
        assert settings.ics_uid_domain == "b.org"

    def test_non_mapping_yaml_is_ignored(self, config_dir):
        """A YAML document that is not a mapping leaves defaults alone."""
        write_config(config_dir, ["schedule_horizon_weeks", 4])

        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 12

    def test_non_mapping_sections_are_ignored(self, config_dir):
        """ics and logging sections must be mappings."""
        write_config(config_dir, {"ics": "nope", "logging": ["DEBUG"]})

        settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.ics_uid_domain == "custodybot.local"
        assert settings.logging.console_level == "INFO"

    def test_invalid_yaml_logs_warning(self, config_dir, caplog):
        """Broken YAML is reported and defaults are kept."""
        (config_dir / "config.yaml").write_text("schedule_horizon_weeks: [4\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            settings = CustodyBotSettings(config_dir=config_dir)

        assert settings.schedule_horizon_weeks == 12
        assert "Could not load YAML config" in caplog.text


class TestGlobalSettings:
    """Tests for get_settings() and reset_settings()."""

    def test_get_settings_is_cached(self, monkeypatch, config_dir):
        """The same instance is returned until reset."""
        monkeypatch.setenv("CUSTODYBOT_CONFIG_DIR", str(config_dir))

        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
