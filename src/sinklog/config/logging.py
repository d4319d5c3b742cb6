"""
Logging Configuration.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConsoleColor(str, Enum):
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class LoggingSettings(BaseSettings):
    """Logging infrastructure configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SINKLOG_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum severity written to every sink")
    log_dir: str = Field(default="./logs", description="Directory holding the daily JSON files")
    date_format: str = Field(default="%Y%m%d", description="strftime format of the file name date suffix")
    console: bool = Field(default=True, description="Enable the stdout sink")
    file: bool = Field(default=True, description="Enable the daily JSON file sink")
    console_color: ConsoleColor = Field(default=ConsoleColor.AUTO, description="ANSI colors on the console")
    add_caller: bool = Field(default=True, description="Attach file/line/caller to every record")
    capture_stdlib: bool = Field(default=False, description="Route stdlib logging records into the logger")
