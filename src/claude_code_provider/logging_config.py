"""Configurable logging for the Claude Code provider."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

PACKAGE_LOGGER_NAME = "claude_code_provider"
LOG_LEVEL_ENV_VAR = "CLAUDE_CODE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_disabled_logger = logging.getLogger(f"{PACKAGE_LOGGER_NAME}.disabled")
_disabled_logger.disabled = True
_disabled_logger.propagate = False


def get_logger(logger: Any = None) -> Any:
    """Resolve the ``logger`` setting to a logger object.

    Args:
        logger: None for the package logger, False to drop all output, or any
            object with ``debug``/``info``/``warning``/``error`` methods.

    Returns:
        The logger to use.
    """
    if logger is False:
        return _disabled_logger
    if logger is None:
        return logging.getLogger(PACKAGE_LOGGER_NAME)
    return logger


class VerboseLoggerAdapter:
    """Gates ``debug`` and ``info`` behind the ``verbose`` setting.

    ``warning`` and ``error`` always pass through to the wrapped logger.
    """

    def __init__(self, logger: Any, verbose: bool = False) -> None:
        self.logger = logger
        self.verbose = verbose

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        if self.verbose:
            self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        if self.verbose:
            self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        # custom loggers written against console-style APIs only have warn()
        log = getattr(self.logger, "warning", None) or self.logger.warn
        log(message, *args, **kwargs)

    warn = warning

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.error(message, *args, **kwargs)


def create_verbose_logger(logger: Any = None, verbose: bool = False) -> VerboseLoggerAdapter:
    """Resolve ``logger`` and wrap it with verbose gating."""
    return VerboseLoggerAdapter(get_logger(logger), verbose=verbose)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the package logger and set its level.

    Args:
        level: Level name; defaults to ``$CLAUDE_CODE_LOG_LEVEL`` or WARNING.

    Returns:
        The configured package logger.
    """
    level_name = (level or os.getenv(LOG_LEVEL_ENV_VAR, "WARNING")).upper()

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level_name, logging.WARNING))

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    return package_logger
