"""Structured logging configuration for Arbiter.

Arbiter is embedded in host agents, so logging stays quiet by default
(WARNING) and writes to stderr, leaving stdout to the host and to the CLI's
``--stdout`` output. Development mode renders human-readable lines, production
mode renders JSON.

Standard log keys:
- task_type: Classified task type
- complexity: Classified complexity (1-5)
- routing_mode: Active routing mode, if any
- candidate_count: Number of candidates at a given stage

Event naming convention:
- Use dot.notation (e.g., "selector.legacy.ranked", "resolver.tier.matched")
- Format: domain.entity.verb_past_tense

Usage:
    from arbiter.observability import configure_logging, get_logger, bind_context

    configure_logging(LoggingConfig(mode=LogMode.DEV, log_level="DEBUG"))
    log = get_logger(__name__)

    bind_context(agent="planner")
    log.debug("selector.legacy.ranked", candidate_count=4)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from functools import partialmethod
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, Field
import structlog


class LogMode(str, Enum):
    """Logging output mode."""

    DEV = "dev"
    PROD = "prod"


def _default_log_level() -> str:
    return os.environ.get("ARBITER_LOG_LEVEL", "WARNING").upper()


class LoggingConfig(BaseModel):
    """Configuration for structured logging.

    Attributes:
        mode: Output mode (dev for human-readable, prod for JSON).
        log_level: Minimum log level to output.
        log_dir: Directory for log files. Defaults to ~/.arbiter/logs/.
        max_log_days: Number of days to retain log files. Defaults to 7.
        enable_file_logging: Whether to write logs to files. Off by default.
    """

    mode: LogMode = Field(default=LogMode.DEV)
    log_level: str = Field(default_factory=_default_log_level)
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".arbiter" / "logs")
    max_log_days: int = Field(default=7, ge=1, le=365)
    enable_file_logging: bool = Field(default=False)

    model_config = {"frozen": True}


_configured: bool = False
_current_config: LoggingConfig | None = None
_console_logging_enabled: bool = True


def _mode_from_env() -> LogMode:
    # Anything but "prod" means dev.
    return LogMode.PROD if os.environ.get("ARBITER_LOG_MODE", "").lower() == "prod" else LogMode.DEV


def _level_number(level: str) -> int:
    level_number = logging.getLevelNamesMapping().get(level.upper())
    return level_number if isinstance(level_number, int) else logging.WARNING


def _file_handler(config: LoggingConfig) -> TimedRotatingFileHandler | None:
    if not config.enable_file_logging:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=str(config.log_dir / "arbiter.log"),
        when="midnight",
        interval=1,
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(_level_number(config.log_level))
    return handler


def _processors(mode: LogMode) -> list[Any]:
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if mode == LogMode.DEV
        else structlog.processors.JSONRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.format_exc_info,
        renderer,
    ]


def set_console_logging(enabled: bool) -> None:
    """Enable or disable console (stderr) log output."""
    global _console_logging_enabled
    _console_logging_enabled = enabled


class _StderrFileLogger:
    """structlog output target: stderr (unless disabled) plus an optional file."""

    def __init__(self, file_handler: TimedRotatingFileHandler | None = None) -> None:
        self._file_handler = file_handler

    def _emit(self, level: int, message: str) -> None:
        if _console_logging_enabled:
            print(message, file=sys.stderr)
        if self._file_handler is not None:
            self._file_handler.emit(
                logging.LogRecord("arbiter", level, "", 0, message, (), None)
            )

    debug = partialmethod(_emit, logging.DEBUG)
    info = msg = __call__ = partialmethod(_emit, logging.INFO)
    warning = warn = partialmethod(_emit, logging.WARNING)
    error = exception = partialmethod(_emit, logging.ERROR)
    critical = fatal = partialmethod(_emit, logging.CRITICAL)


def _logger_factory(
    file_handler: TimedRotatingFileHandler | None,
) -> Callable[..., _StderrFileLogger]:
    # structlog passes the logger name positionally; every logger shares one target.
    def factory(*_args: Any) -> _StderrFileLogger:
        return _StderrFileLogger(file_handler)

    return factory


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog for Arbiter.

    Safe to call more than once; later calls replace the previous setup.

    Args:
        config: Logging configuration. If None, uses defaults with mode from
            ARBITER_LOG_MODE and level from ARBITER_LOG_LEVEL.

    Example:
        configure_logging(LoggingConfig(mode=LogMode.PROD, log_level="INFO"))
    """
    global _configured, _current_config

    if config is None:
        config = LoggingConfig(mode=_mode_from_env())

    _current_config = config
    log_level = _level_number(config.log_level)

    file_handler = _file_handler(config)

    structlog.configure(
        processors=_processors(config.mode),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_logger_factory(file_handler),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance, configuring defaults on first use.

    Args:
        name: Optional logger name, usually ``__name__``.

    Returns:
        A bound structlog logger.
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent log entries.

    Example:
        bind_context(agent="reviewer", routing_mode="quality")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove context variables from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def get_current_config() -> LoggingConfig | None:
    """Return the current LoggingConfig or None if not configured."""
    return _current_config


def is_configured() -> bool:
    """Return True if configure_logging has been called."""
    return _configured


def reset_logging() -> None:
    """Reset logging configuration state.

    This is primarily for testing purposes.
    """
    global _configured, _current_config
    _configured = False
    _current_config = None
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
