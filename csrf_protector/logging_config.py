"""Centralized logging configuration for the CSRF protector."""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Optional, Protocol

from fastapi import Request

from csrf_protector.exceptions import LogDirectoryNotFoundError

LOGGER_NAME = "csrf_protector"
VALIDATION_FAILURE_EVENT = "OWASP CSRF PROTECTOR VALIDATION FAILURE"
ATTACK_LOG_FILENAME = "csrf_attacks.log"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers:
        return logger

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Prevent duplicate logs
    logger.propagate = False

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger instance."""
    return logging.getLogger(LOGGER_NAME)


class CSRFLogger(Protocol):
    """Sink for CSRF validation failures."""

    def log(self, message: str, context: dict) -> None: ...


class AppLogger:
    """Forward attack reports to the application logger."""

    def log(self, message: str, context: dict) -> None:
        get_logger().warning(f"{message}: {context}")


class JSONFormatter(logging.Formatter):
    """Format a record as one JSON object, merging its ``context`` extra."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        return json.dumps(entry, default=str)


class FileLogger:
    """Write attack reports as JSON lines to ``<log_directory>/csrf_attacks.log``.

    The file rolls over at midnight; older days keep a date suffix.
    """

    def __init__(self, log_directory: str):
        """Initialize the file logger.

        Args:
            log_directory: Existing directory to write log files into

        Raises:
            LogDirectoryNotFoundError: If the directory does not exist
        """
        self.log_directory = Path(log_directory).resolve()
        if not self.log_directory.is_dir():
            raise LogDirectoryNotFoundError(
                f"CSRF protector log directory not found: {self.log_directory}"
            )

        self.logger = logging.getLogger(f"{LOGGER_NAME}.attacks.{self.log_directory}")
        if not self.logger.handlers:
            handler = TimedRotatingFileHandler(
                self.log_directory / ATTACK_LOG_FILENAME, when="midnight", encoding="utf-8"
            )
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            # Prevent attack reports reaching the console handler
            self.logger.propagate = False

    def log(self, message: str, context: dict) -> None:
        self.logger.warning(message, extra={"context": context})


def log_request(
    request: Request, user_id: Optional[str] = None, extra_data: Optional[dict] = None
) -> None:
    """Log incoming HTTP request details.

    Args:
        request: FastAPI request object
        user_id: Optional user ID for authenticated requests
        extra_data: Optional additional data to log
    """
    logger = get_logger()

    log_data = {
        "method": request.method,
        "url": str(request.url),
        "path": request.url.path,
        "client_ip": getattr(request.client, "host", "unknown") if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    if user_id:
        log_data["user_id"] = user_id

    if extra_data:
        log_data.update(extra_data)

    logger.info(f"Request: {log_data}")


def log_csrf_event(event_type: str, request_type: str, path: str, extra_data: Optional[dict] = None) -> None:
    """Log token lifecycle events.

    Args:
        event_type: Type of event (validated, exempt, refreshed, cleared)
        request_type: "GET" or "POST"
        path: Request path
        extra_data: Optional additional data to log
    """
    logger = get_logger()

    log_data = {
        "event_type": event_type,
        "request_type": request_type,
        "path": path,
    }

    if extra_data:
        log_data.update(extra_data)

    logger.debug(f"CSRF event: {log_data}")


# Initialize logging on import
_log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(_log_level)
