"""
Structured logging for tfstream using structlog.

Readers and writers log with key/value context. Output is JSON by default
and a colored console renderer is available for development. Opening a
record file applies the ``logging`` section of the configuration once,
unless the application has already configured logging itself.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from tfstream.utils.config import get_config

_configured = False


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = "tfstream"
    return event_dict


def _build_handler(log_output: str) -> logging.Handler:
    if log_output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if log_output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(log_output)


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stdout",
) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: stdout, stderr, or a file path to append to

    Raises:
        ValueError: If log_level or log_format is unknown
    """
    global _configured

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    if log_format not in ("json", "console"):
        raise ValueError(f"Unknown log format: {log_format}")

    handler = _build_handler(log_output)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("tfstream")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
        existing.close()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=log_output in ("stdout", "stderr"))

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def configure_from_config(config: Any) -> None:
    """
    Configure logging from the ``logging`` section of a Config.

    Args:
        config: Config instance
    """
    configure_logging(
        log_level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format", "json"),
        log_output=config.get("logging.output", "stdout"),
    )


def ensure_logging_configured(config: Optional[Any] = None) -> bool:
    """
    Configure logging from config unless it is already configured.

    Skipped when ``logging.configure_on_open`` is false.

    Returns:
        True if logging was configured by this call
    """
    if _configured:
        return False

    if config is None:
        config = get_config()

    if not config.get("logging.configure_on_open", True):
        return False

    configure_from_config(config)
    return True


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Undo configure_logging (mainly for testing)."""
    global _configured

    package_logger = logging.getLogger("tfstream")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
        existing.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)

    structlog.reset_defaults()
    _configured = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        structlog logger
    """
    return structlog.get_logger(name)
