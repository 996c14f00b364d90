"""Configuration module."""

from .settings import CustodyBotSettings, LoggingSettings, get_settings, reset_settings

__all__ = [
    "CustodyBotSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
