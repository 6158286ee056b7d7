"""Logging configuration for sbomgraph.

Every module logs through the shared ``logger`` defined here. Records go to
standard error because standard output carries the SBOM document.
"""

import logging
import sys
from typing import Any, Dict, Optional

LOGGER_NAME = "sbomgraph"
TEXT_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    return numeric


def _formatter(structured: bool) -> logging.Formatter:
    if structured:
        return StructuredFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """
    Set up the sbomgraph logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Whether to use structured JSON logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(_level(level))

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level(level))
    handler.setFormatter(_formatter(structured))
    logger.addHandler(handler)

    return logger


def configure_logging(level: Optional[str] = None, structured: Optional[bool] = None) -> None:
    """
    Reconfigure the shared logger after import, e.g. from CLI flags.

    Args:
        level: New level for the logger and its handlers, unchanged when None
        structured: Switch handlers to JSON (True) or text (False), unchanged when None
    """
    if level is not None:
        logger.setLevel(_level(level))
    for handler in logger.handlers:
        if level is not None:
            handler.setLevel(_level(level))
        if structured is not None:
            handler.setFormatter(_formatter(structured))


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for CI log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        import json
        from datetime import datetime

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


logger = setup_logging()
