"""
Logging configuration and setup.

Everything goes through one set of handlers: the ``bobbot`` package logger,
plus discord.py and LiteLLM. The bot starts discord.py with
``log_handler=None``, so its records would otherwise have nowhere to go.
Library loggers get a minimum level because both are very chatty at DEBUG.
"""

import logging
import sys
from pathlib import Path

from bobbot.config.settings import Settings

PACKAGE_LOGGER = "bobbot"

# Minimum level per third-party logger
LIBRARY_LOGGERS = {
    "discord": logging.INFO,
    "LiteLLM": logging.WARNING,
}

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name on the console."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Records are shared between handlers; the file must not get escape codes.
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _build_handlers(settings: Settings) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    handlers: list[logging.Handler] = [console]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)
    return handlers


def _route(logger: logging.Logger, handlers: list[logging.Handler], level: int) -> None:
    logger.handlers.clear()
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def setup_logging(settings: Settings) -> None:
    """
    Configure the package and library loggers from settings.

    Safe to call more than once; each call replaces the handlers installed
    by the previous one.

    Args:
        settings: Application settings containing log configuration
    """
    level = getattr(logging, settings.log_level)
    handlers = _build_handlers(settings)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    _route(package_logger, handlers, level)
    for name, floor in LIBRARY_LOGGERS.items():
        _route(logging.getLogger(name), handlers, max(level, floor))

    package_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        package_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger nested under the package logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger that writes through the package handlers
    """
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
