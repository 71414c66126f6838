"""Logging infrastructure built on loguru.

The library never configures logging at import time beyond what
``get_logger`` needs to return a usable logger. Applications call
``setup_logging`` (or ``create_app``) to pick level and sink format.
"""

import sys
import typing as t

from loguru import logger

from ..config.settings import Environment, LogLevel, Settings

if t.TYPE_CHECKING:
    import loguru

_HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{process}</cyan> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_configured = False


def configure_logger(
    level: LogLevel = LogLevel.INFO,
    environment: Environment = Environment.PRODUCTION,
) -> None:
    """Replace loguru's sinks with a single stderr sink.

    Production logs are serialised to JSON lines so lifecycle records stay
    machine readable; other environments get a coloured human format.
    """
    global _configured

    logger.remove()
    logger.configure(extra={"name": "clusterize"})

    if environment == Environment.PRODUCTION:
        logger.add(
            sys.stderr,
            level=level.value,
            serialize=True,
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=level.value,
            format=_HUMAN_FORMAT,
            colorize=environment == Environment.DEVELOPMENT,
            backtrace=True,
            diagnose=environment == Environment.DEVELOPMENT,
        )

    _configured = True


def setup_logging(settings: Settings) -> None:
    """Configure logging from application settings."""
    configure_logger(level=settings.log_level, environment=settings.environment)


def get_logger(name: str) -> "loguru.Logger":
    """Return a logger bound to ``name``, configuring defaults on first use."""
    if not _configured:
        configure_logger()
    return logger.bind(name=name)


def is_configured() -> bool:
    """True once a sink has been installed by this module."""
    return _configured


def reset_logging() -> None:
    """Remove all sinks and forget the configuration. Used by tests."""
    global _configured

    logger.remove()
    _configured = False
