"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "CUSTODYBOT_"


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(
        default="DEBUG",
        description="File log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    file_directory: Optional[str] = Field(
        default=None, description="Custom log directory (defaults to config_dir/logs)"
    )
    file_prefix: str = Field(default="custodybot", description="Log file prefix")
    max_log_files: int = Field(default=5, description="Maximum number of log files to keep")
    include_function_names: bool = Field(
        default=True, description="Include function names and line numbers in file logs"
    )

    # Third-party Libraries
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class CustodyBotSettings(BaseSettings):
    """Application settings with environment variable support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Schedule expansion
    schedule_horizon_weeks: int = Field(
        default=12, ge=1, description="Weeks ahead of start_date to generate schedule visits"
    )
    default_start_time: str = Field(default="09:00", description="Default visit start (HH:MM)")
    default_end_time: str = Field(default="17:00", description="Default visit end (HH:MM)")

    # Calendar import
    import_occurrence_limit: int = Field(
        default=12, ge=1, description="Occurrences generated per recurring imported event"
    )
    max_occurrences: int = Field(
        default=1000, ge=1, description="Hard cap on occurrences from any single expansion"
    )
    extra_custody_keywords: list[str] = Field(
        default_factory=list, description="Additional words marking events as custody time"
    )

    # ICS export
    ics_prodid: str = Field(
        default="-//CustodyBot//Custody Schedule//EN", description="PRODID of exported calendars"
    )
    ics_uid_domain: str = Field(
        default="custodybot.local", description="Domain part of exported event UIDs"
    )
    calendar_timezone: Optional[str] = Field(
        default=None, description="Timezone label written as X-WR-TIMEZONE (not resolved)"
    )

    # File Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "custodybot")

    # Logging
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **kwargs: Any) -> None:
        # Track which environment variables are set before calling parent
        env_vars_set = {
            key[len(ENV_PREFIX) :].lower()
            for key in os.environ
            if key.upper().startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        # Track which arguments were explicitly provided
        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        # Load YAML configuration after basic initialization
        self._load_yaml_config()

    @property
    def config_file(self) -> Path:
        """Path to YAML configuration file."""
        return self.config_dir / "config.yaml"

    @property
    def log_dir(self) -> Path:
        """Directory for log files."""
        if self.logging.file_directory:
            return Path(self.logging.file_directory)
        return self.config_dir / "logs"

    def _is_overridden(self, setting: str) -> bool:
        return setting in self._explicit_args or setting in self._env_vars_set

    def _load_basic_settings(self, config_data: dict) -> None:
        """Load top-level settings from YAML data."""
        basic_settings = [
            "schedule_horizon_weeks",
            "default_start_time",
            "default_end_time",
            "import_occurrence_limit",
            "max_occurrences",
            "extra_custody_keywords",
            "calendar_timezone",
        ]

        for setting in basic_settings:
            if setting in config_data and not self._is_overridden(setting):
                setattr(self, setting, config_data[setting])

    def _load_ics_config(self, config_data: dict) -> None:
        """Load ICS export settings from the ``ics`` section."""
        ics_config = config_data.get("ics")
        if not isinstance(ics_config, dict):
            return

        if "prodid" in ics_config and not self._is_overridden("ics_prodid"):
            self.ics_prodid = ics_config["prodid"]
        if "uid_domain" in ics_config and not self._is_overridden("ics_uid_domain"):
            self.ics_uid_domain = ics_config["uid_domain"]

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from the ``logging`` section."""
        logging_config = config_data.get("logging")
        if not isinstance(logging_config, dict) or self._is_overridden("logging"):
            return

        for setting, value in logging_config.items():
            if setting in LoggingSettings.model_fields:
                setattr(self.logging, setting, value)

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self.config_file
        if not config_file.exists():
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)

            if not isinstance(config_data, dict):
                return

            self._load_basic_settings(config_data)
            self._load_ics_config(config_data)
            self._load_logging_config(config_data)

        except (OSError, yaml.YAMLError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logging.warning(f"Could not load YAML config from {config_file}: {e}")


# Global settings management
_settings_instance: Optional[CustodyBotSettings] = None


def get_settings() -> CustodyBotSettings:
    """Get the global settings instance, creating it lazily if needed."""
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = CustodyBotSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
