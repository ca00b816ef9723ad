"""
Gator Configuration System
==========================

Configuration management with environment variables and Pydantic models.
Environment variables (``GATOR_`` prefix, ``__`` for nested sections) override
Field defaults.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseSettings(BaseModel):
    """Database configuration."""
    path: str = Field(default="data/gator.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class PollingSettings(BaseModel):
    """Feed polling configuration."""
    request_timeout: float = Field(default=10.0, gt=0, le=300, description="Per-fetch deadline in seconds")
    user_agent: str = Field(default="gator", description="User-Agent header sent with every fetch")
    browse_limit: int = Field(default=2, ge=1, le=1000, description="Default number of posts shown by browse")

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v):
        """User agent must not be blank."""
        if not v or not v.strip():
            raise ValueError("user_agent must not be empty")
        return v.strip()


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/gator.log", description="Log file path, empty to disable")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging on the console")
    console_logging: bool = Field(default=True, description="Enable console logging")


class GatorSettings(BaseSettings):
    """Main application settings."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    user_config_path: str = Field(
        default="~/.gatorconfig.json",
        description="JSON file holding the current user name",
    )

    # Application metadata
    app_name: str = Field(default="Gator", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "GATOR_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration and create needed directories."""
        errors = []

        try:
            db_path = Path(self.database.path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid database path: {e}")

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value

    def resolved_user_config_path(self) -> Path:
        return Path(self.user_config_path).expanduser()


def load_settings(**overrides) -> GatorSettings:
    """Load settings from environment variables and defaults.

    Keyword overrides take precedence over the environment; tests use them to
    point the database at a temporary directory.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = GatorSettings(**overrides)
        settings.validate_configuration()
        return settings

    except Exception as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e
