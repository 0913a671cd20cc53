"""
Logging setup shared by the API server and the booking service.

Entry points call ``setup_logging`` for their own module logger and
``configure_package_loggers`` once for the library packages, whose modules
log through ``logging.getLogger(__name__)``.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Packages whose modules log without configuring handlers themselves
LIBRARY_PACKAGES = ("availability", "db", "notifications")


def _rotating_file_handler(
    log_dir: str, log_file: str, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_dir_path / log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: str = "logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Attach a stdout handler, and optionally a rotating file handler, to a logger.

    Calling it again for the same name returns the logger unchanged.

    Args:
        name: Logger name (typically __name__)
        log_level: Logging level name; unknown names fall back to INFO
        log_file: Log file name inside ``log_dir``; no file handler if None
        log_dir: Directory for log files, created on demand
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep
        format_string: Record format (defaults to DEFAULT_FORMAT)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(_rotating_file_handler(log_dir, log_file, max_bytes, backup_count))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_package_loggers(log_level: str = "INFO", log_dir: str = "logs") -> None:
    """Give each library package logger its own handlers and log file."""
    for package in LIBRARY_PACKAGES:
        setup_logging(package, log_level=log_level, log_file=f"{package}.log", log_dir=log_dir)
