"""
Logging configuration for scan runs.

Analyzers and the correlation engine log through ordinary module loggers under
the ``seccopilot`` namespace and attach structured fields via ``extra``. This
module wires those loggers to stderr, optionally to an hourly rotating file,
and optionally renders records as JSON lines.
"""

import json
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Any

ROOT_LOGGER = "seccopilot"

# Structured fields copied from ``extra`` into JSON log entries
STRUCTURED_FIELDS = (
    "event",
    "stage",
    "analyzer",
    "file",
    "detector",
    "findings",
    "reason",
    "mode",
)


class ScanEventFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["error"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(
    log_file: str | None = None,
    log_level: str = "INFO",
    json_format: bool = False,
) -> logging.Logger:
    """
    Configure the ``seccopilot`` logger hierarchy.

    Args:
        log_file: Path to a log file, rotated hourly (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON lines instead of human-readable text

    Returns:
        The configured package root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    logger.handlers.clear()

    formatter: logging.Formatter
    if json_format:
        formatter = ScanEventFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(name)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    # stdout belongs to the report renderer
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="H",
            interval=1,
            backupCount=168,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y%m%d_%H%M%S.log"
        file_handler.setFormatter(ScanEventFormatter())
        logger.addHandler(file_handler)

    return logger


def get_scan_logger() -> logging.Logger:
    """Get the logger used for scan lifecycle events."""
    return logging.getLogger(f"{ROOT_LOGGER}.scan")
