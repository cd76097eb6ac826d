"""Logging configuration for ScholarCite.

Provides structured logging with configurable levels and formatters for
tracking collaborator failures, fallbacks and discarded responses during an
editing session.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

# Create the main logger for the scholarcite package
logger = logging.getLogger("scholarcite")

LOG_FORMATS = ("standard", "json")


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    format_style: str = "standard",
) -> logging.Logger:
    """
    Configure logging for the scholarcite package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to also write logs to
        format_style: "standard" for human-readable, "json" for one JSON
            object per line

    Returns:
        Configured logger instance

    Raises:
        ValueError: If format_style is not one of LOG_FORMATS
    """
    if format_style not in LOG_FORMATS:
        raise ValueError(
            f"Unknown log format '{format_style}'. Must be one of: {', '.join(LOG_FORMATS)}"
        )

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if format_style == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Args:
        name: Module name (e.g., "session", "clients.openai")

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(f"scholarcite.{name}")


def _format_context(context: dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


def log_failure(
    logger: logging.Logger,
    operation: str,
    error: Exception | str,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log a failure with structured context.

    Args:
        logger: Logger instance to use
        operation: Name of the operation that failed
        error: Exception or error message
        context: Additional context about the failure
        level: Logging level (default: ERROR)
    """
    error_type = type(error).__name__ if isinstance(error, Exception) else "Error"

    msg_parts = [f"{operation} failed: [{error_type}] {error}"]
    if context:
        msg_parts.append(f"Context: {_format_context(context)}")

    logger.log(level, " | ".join(msg_parts))


def log_warning(
    logger: logging.Logger,
    operation: str,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Log a warning with structured context.

    Args:
        logger: Logger instance to use
        operation: Name of the operation
        message: Warning message
        context: Additional context
    """
    msg_parts = [f"{operation}: {message}"]
    if context:
        msg_parts.append(f"Context: {_format_context(context)}")

    logger.warning(" | ".join(msg_parts))


# Initialize default logging (can be reconfigured by CLI or settings)
setup_logging(level=logging.WARNING)
