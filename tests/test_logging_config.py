"""Tests for logging configuration module."""

import json
import logging
from io import StringIO

from yelp_camp.logging_config import (
    ACCESS_LOGGER_NAME,
    CustomJsonFormatter,
    configure_logging,
    format_access_line,
    get_logger,
    log_access,
)


def _capture(logger_name: str) -> StringIO:
    """Attach a JSON handler writing to a fresh buffer."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(message)s"))
    logger.addHandler(handler)
    return stream


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_sets_log_level(self) -> None:
        """Log level should be set on root logger."""
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_warning_level(self) -> None:
        """WARNING level should be set correctly."""
        configure_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Unrecognized level names should mean INFO."""
        configure_logging("CHATTY")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_clears_existing_handlers(self) -> None:
        """Existing handlers should be replaced by exactly one."""
        root_logger = logging.getLogger()
        root_logger.addHandler(logging.StreamHandler())

        configure_logging("INFO")

        assert len(root_logger.handlers) == 1

    def test_configure_logging_json_output_true(self) -> None:
        """JSON output should use CustomJsonFormatter."""
        configure_logging("INFO", json_output=True)
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, CustomJsonFormatter)

    def test_configure_logging_json_output_false(self) -> None:
        """Non-JSON output should use standard Formatter."""
        configure_logging("INFO", json_output=False)
        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, CustomJsonFormatter)

    def test_quiets_framework_loggers(self) -> None:
        """werkzeug and SQLAlchemy engine logs should stay at WARNING."""
        configure_logging("DEBUG")
        assert logging.getLogger("werkzeug").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestCustomJsonFormatter:
    """Tests for CustomJsonFormatter class."""

    def test_json_formatter_outputs_valid_json(self) -> None:
        """Formatter should output valid JSON with the standard fields."""
        stream = _capture("test_json")
        logging.getLogger("test_json").info("Test message")

        log_data = json.loads(stream.getvalue())
        assert log_data["message"] == "Test message"
        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test_json"
        assert "timestamp" in log_data

    def test_info_records_have_no_location(self) -> None:
        """Location details are reserved for warnings and above."""
        stream = _capture("test_json_info")
        logging.getLogger("test_json_info").info("quiet")

        assert "location" not in json.loads(stream.getvalue())

    def test_warning_records_include_location(self) -> None:
        """WARNING and above should carry source location and function."""
        stream = _capture("test_json_warning")
        logging.getLogger("test_json_warning").warning("loud")

        log_data = json.loads(stream.getvalue())
        assert "test_logging_config.py" in log_data["location"]
        assert log_data["function"] == "test_warning_records_include_location"

    def test_extra_fields_are_included(self) -> None:
        """Values passed through ``extra`` should become JSON fields."""
        stream = _capture("test_json_extra")
        logging.getLogger("test_json_extra").info("with extras", extra={"user_id": "abc"})

        assert json.loads(stream.getvalue())["user_id"] == "abc"


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_named_logger(self) -> None:
        """Should return the logger registered under the given name."""
        logger = get_logger("yelp_camp.something")
        assert logger is logging.getLogger("yelp_camp.something")


class TestAccessLog:
    """Tests for the per-request access line."""

    def test_format_access_line(self) -> None:
        """Method, path, status, size and duration in the tiny format."""
        line = format_access_line("GET", "/campgrounds", 200, 512, 3.14159)
        assert line == "GET /campgrounds 200 512 - 3.142 ms"

    def test_format_access_line_unknown_size(self) -> None:
        """A missing content length is rendered as a dash."""
        line = format_access_line("POST", "/login", 302, None, 0.5)
        assert line == "POST /login 302 - - 0.500 ms"

    def test_log_access_writes_structured_record(self) -> None:
        """log_access should write the line plus structured extras."""
        stream = _capture(ACCESS_LOGGER_NAME)
        log_access("DELETE", "/campgrounds/1", 302, 0, 12.3456)

        log_data = json.loads(stream.getvalue())
        assert log_data["message"] == "DELETE /campgrounds/1 302 0 - 12.346 ms"
        assert log_data["status_code"] == 302
        assert log_data["duration_ms"] == 12.346
