"""
Logging utilities for bayesprep.

Loggers are created per module and configured lazily from the global
configuration. Keyword arguments passed to a log call are appended to the
message as ``| key=value`` context; array values are summarized by shape.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from ..config.settings import get_default_config, LogLevel


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring the level name."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def format_context(**context: Any) -> str:
    """Render keyword context as 'k=v | k=v'; arrays are shown by shape."""
    parts = []
    for key, value in context.items():
        if isinstance(value, np.ndarray):
            value = f"array{value.shape}"
        elif isinstance(value, float):
            value = f"{value:.4g}"
        parts.append(f"{key}={value}")
    return " | ".join(parts)


class BayesPrepLogger:
    """Module logger with context formatting and advisory records."""

    ADVISORY_PREFIX = "Advisory: "

    def __init__(self, name: str, config=None):
        self.name = name
        self._config = config
        self.logger = logging.getLogger(name)
        self._configured = False

    @property
    def config(self):
        return self._config or get_default_config()

    def _configure(self):
        settings = self.config.logging
        level = settings.level.value if isinstance(settings.level, LogLevel) else settings.level
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        if settings.console_logging:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ColoredFormatter(settings.format_string))
            self.logger.addHandler(handler)

        if settings.file_logging and settings.log_file:
            settings.log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(settings.log_file)
            handler.setFormatter(logging.Formatter(settings.format_string))
            self.logger.addHandler(handler)

        # records are not passed on to the root logger
        self.logger.propagate = False
        self._configured = True

    def _log(self, level: int, message: str, context: Dict[str, Any]):
        if not self._configured:
            self._configure()
        if self.logger.isEnabledFor(level):
            if context:
                message = f"{message} | {format_context(**context)}"
            self.logger.log(level, message)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def advisory(self, message: str, **kwargs):
        """Log an informational notice about the model structure."""
        self._log(logging.INFO, f"{self.ADVISORY_PREFIX}{message}", kwargs)


_loggers: Dict[str, BayesPrepLogger] = {}


def get_logger(name: str = "bayesprep") -> BayesPrepLogger:
    """
    Get the logger of a module.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Cached BayesPrepLogger
    """
    if name not in _loggers:
        _loggers[name] = BayesPrepLogger(name)
    return _loggers[name]


def setup_logging(
    level: Optional[Union[str, LogLevel]] = None,
    console: Optional[bool] = None,
    file_path: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Change the logging configuration and reconfigure all loggers.

    Args:
        level: Logging level name or LogLevel
        console: Log to stdout
        file_path: Also log to this file
        format_string: Format of log records
    """
    updates: Dict[str, Any] = {}
    if level is not None:
        updates["logging.level"] = LogLevel(level.upper()) if isinstance(level, str) else level
    if console is not None:
        updates["logging.console_logging"] = console
    if file_path is not None:
        updates["logging.file_logging"] = True
        updates["logging.log_file"] = Path(file_path)
    if format_string is not None:
        updates["logging.format_string"] = format_string
    get_default_config().update(**updates)

    for logger in _loggers.values():
        logger._configured = False
