"""
sinklog Configuration Module.

Settings are read from environment variables (prefix ``SINKLOG_LOG_``) and
an optional ``.env`` file in the working directory.

Usage:
    from sinklog.config import settings

    settings.logging.level  # LogLevel.INFO
    settings.logging.log_dir  # "./logs"
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import ConsoleColor, LoggingSettings, LogLevel


class Settings(BaseSettings):
    """Composite settings; each sub-settings object loads from its own env prefix."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


# Singleton instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "LoggingSettings",
    "LogLevel",
    "ConsoleColor",
]
