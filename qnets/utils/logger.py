"""Structured logging with loguru."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger as _loguru_logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{extra[name]}</cyan> — <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {extra[name]}:{function}:{line} — {message}"

# Remove default sink and reconfigure
_loguru_logger.remove()
_loguru_logger.configure(extra={"name": "qnets"})
_loguru_logger.add(sys.stderr, level="WARNING", format=_CONSOLE_FORMAT, colorize=True)


def configure_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Replace the console sink and optionally add a rotating file sink.

    Args:
        level: Minimum level for the console sink.
        log_file: When given, DEBUG+ records are also written there.
    """
    _loguru_logger.remove()
    _loguru_logger.add(sys.stderr, level=level.upper(), format=_CONSOLE_FORMAT, colorize=True)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _loguru_logger.add(
            log_file,
            rotation="10 MB",
            retention="30 days",
            level="DEBUG",
            format=_FILE_FORMAT,
        )


def get_logger(name: str = __name__):
    """Return a module-scoped loguru logger."""
    return _loguru_logger.bind(name=name)
