"""Structured logging configuration.

JSON lines for production log aggregation, a readable single-line format
for local development, and a compact access line per request.
"""

import logging
import sys
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

ACCESS_LOGGER_NAME = "yelp_camp.access"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that always includes timestamp, level and logger name.

    Records at WARNING and above also carry their source location.
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if record.levelno >= logging.WARNING:
            log_record["location"] = f"{record.pathname}:{record.lineno}"
            log_record["function"] = record.funcName


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure the root logger.

    Args:
        log_level: Minimum level to capture (DEBUG, INFO, WARNING, ERROR,
            CRITICAL). Unknown names fall back to INFO.
        json_output: Emit JSON when True, the human-readable format otherwise.

    Example:
        >>> configure_logging("DEBUG", json_output=False)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # werkzeug's own access log duplicates ours
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name, typically __name__."""
    return logging.getLogger(name)


def format_access_line(
    method: str,
    path: str,
    status_code: int,
    content_length: Optional[int],
    duration_ms: float,
) -> str:
    """Render one request in the ``tiny`` access format.

    Example:
        >>> format_access_line("GET", "/campgrounds", 200, 512, 3.14159)
        'GET /campgrounds 200 512 - 3.142 ms'
    """
    size = "-" if content_length is None else str(content_length)
    return f"{method} {path} {status_code} {size} - {duration_ms:.3f} ms"


def log_access(
    method: str,
    path: str,
    status_code: int,
    content_length: Optional[int],
    duration_ms: float,
) -> None:
    """Emit the access line for a finished request with structured extras."""
    logging.getLogger(ACCESS_LOGGER_NAME).info(
        format_access_line(method, path, status_code, content_length, duration_ms),
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 3),
        },
    )
