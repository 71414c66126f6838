import typing as t
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Runtime environment for the application."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Log levels understood by loguru."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Settings shared by the supervisor and its collaborators.

    Values come from keyword arguments first, then ``CLUSTERIZE_*``
    environment variables, then the defaults below.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERIZE_",
        extra="ignore",
        frozen=True,
    )

    environment: Environment = Environment.PRODUCTION
    log_level: LogLevel = LogLevel.INFO
    startup_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds a worker may take to come online before it is "
        "reported as failed to fork",
    )
    shutdown_timeout: float = Field(
        default=10.0,
        ge=0,
        description="Seconds shutdown waits for terminated workers to exit",
    )
    start_method: t.Literal["fork", "spawn", "forkserver"] | None = Field(
        default=None,
        description="multiprocessing start method, platform default if None",
    )


def build_settings(**overrides: t.Any) -> Settings:
    """Build Settings, ignoring overrides that are None.

    Lets callers pass optional arguments straight through without
    clobbering environment or default values.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
