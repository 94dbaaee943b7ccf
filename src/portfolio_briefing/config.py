"""Pydantic Settings configuration management."""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BeforeValidator, Field, ValidationError, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio_briefing.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_AGENT_ID = "698be3e9544d8929157d02a4"
DEFAULT_SCHEDULE_ID = "698be3f5ebe6fd87d1dcc0f0"


def _find_project_root() -> Path:
    """Find project root directory (contains pyproject.toml or .env).

    Priority check for PROJECT_ROOT environment variable for Docker scenarios.
    """
    env_root = os.environ.get("PROJECT_ROOT")
    if env_root:
        path = Path(env_root)
        if path.exists():
            return path.resolve()

    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists() or (parent / ".env").exists():
            return parent
    return current.parents[2]


_PROJECT_ROOT = _find_project_root()


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from string or bool."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


def _validate_positive(v: float) -> float:
    if v <= 0:
        raise ConfigurationError("Value must be greater than 0")
    return v


def _strip_trailing_slash(v: str) -> str:
    return v.rstrip("/")


EnvBool = Annotated[bool, BeforeValidator(_parse_bool)]
PositiveSeconds = Annotated[float, AfterValidator(_validate_positive)]
BaseUrl = Annotated[str, AfterValidator(_strip_trailing_slash)]

_COMMON_CONFIG = SettingsConfigDict(
    env_file=_PROJECT_ROOT / ".env",
    env_file_encoding="utf-8",
    extra="ignore",
)


# ==========================================
# Nested configuration classes using BaseSettings
# ==========================================


class ServiceConfig(BaseSettings):
    """Remote agent and scheduler endpoints, and the fixed identifiers bound to them."""

    model_config = _COMMON_CONFIG

    agent_api_url: BaseUrl = Field(default="http://localhost:3000/api/agent", validation_alias="AGENT_API_URL")
    scheduler_api_url: BaseUrl = Field(default="http://localhost:3000/api/scheduler", validation_alias="SCHEDULER_API_URL")
    agent_id: str = Field(default=DEFAULT_AGENT_ID, validation_alias="AGENT_ID")
    schedule_id: str = Field(default=DEFAULT_SCHEDULE_ID, validation_alias="SCHEDULE_ID")
    service_api_key: str | None = Field(default=None, validation_alias="SERVICE_API_KEY")


class ScheduleViewConfig(BaseSettings):
    """How much of the schedule job is fetched and projected."""

    model_config = _COMMON_CONFIG

    log_limit: int = Field(default=10, ge=1, le=100, validation_alias="SCHEDULE_LOG_LIMIT")
    log_refresh_delay: float = Field(default=2.0, ge=0, validation_alias="SCHEDULE_LOG_REFRESH_DELAY")
    upcoming_run_count: int = Field(default=5, ge=1, le=50, validation_alias="UPCOMING_RUN_COUNT")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = _COMMON_CONFIG

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ConfigurationError(f"Log level must be one of {valid_levels}")
        return v.upper()


class SystemConfig(BaseSettings):
    """System configuration."""

    model_config = _COMMON_CONFIG

    http_timeout: PositiveSeconds = Field(default=30.0, validation_alias="HTTP_TIMEOUT")
    debug: EnvBool = Field(default=False, validation_alias="DEBUG")


# ==========================================
# Main configuration class
# ==========================================


def _default_base_dir() -> str:
    """Get default base directory for application data.

    Priority:
    1. BASE_DIR environment variable
    2. ~/.portfolio-briefing (user home directory)
    """
    env_base = os.environ.get("BASE_DIR")
    if env_base:
        return env_base
    return str(Path.home() / ".portfolio-briefing")


class Config(BaseSettings):
    """Main configuration class.

    Uses pydantic-settings to load configuration from environment variables
    and the project .env file. Each nested configuration class loads its own
    environment variables independently.

    All runtime data (preference database, logs) is stored under base_dir.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        env_parse_none_str="null",
    )

    base_dir: str = Field(default_factory=_default_base_dir, validation_alias="BASE_DIR")

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    schedule_view: ScheduleViewConfig = Field(default_factory=ScheduleViewConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @computed_field
    @property
    def data_dir(self) -> str:
        """Directory for the preference database."""
        return str(Path(self.base_dir) / "data")

    @computed_field
    @property
    def log_dir(self) -> str:
        """Directory for log files."""
        return str(Path(self.base_dir) / "logs")

    @computed_field
    @property
    def database_path(self) -> str:
        """Path to SQLite preference database file."""
        return str(Path(self.base_dir) / "data" / "preferences.db")

    def get_db_url(self) -> str:
        """Get SQLAlchemy database connection URL.

        Creates parent directories if they don't exist.
        """
        db_path = Path(self.database_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path.absolute()}"

    def validate_config(self) -> list[str]:
        """Validate configuration completeness and return list of warnings."""
        warnings_list: list[str] = []

        if not self.service.agent_id:
            warnings_list.append("Warning: AGENT_ID is empty, analysis requests will be rejected")
        if not self.service.schedule_id:
            warnings_list.append("Warning: SCHEDULE_ID is empty, schedule calls will fail")
        if not self.service.service_api_key:
            warnings_list.append("Note: SERVICE_API_KEY is not set, requests are sent without an API key")

        return warnings_list


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance.

    Returns:
        Config instance with all settings loaded.
    """
    return Config()


def get_config_safe() -> tuple[Config | None, list[str]]:
    """Safely load configuration.

    Returns:
        tuple: (Config object or None, list of error messages)
    """
    errors = []
    try:
        config = Config()
        return config, []
    except ValidationError as e:
        errors.append(f"Failed to load configuration: {e}")
        return None, errors
    except ConfigurationError as e:
        errors.append(f"Invalid configuration: {e}")
        return None, errors


def get_project_root() -> Path:
    """Get project root directory path."""
    return _PROJECT_ROOT
