"""Unit tests for logging module."""

import json
import logging

import pytest

from langroute.core import logging as router_logging
from langroute.core.config import LoggingConfig
from langroute.core.exceptions import RouteGenerationError
from langroute.core.logging import (
    JsonFormatter,
    RouterLogger,
    TextFormatter,
    get_logger,
    initialize_logging,
)


class ListHandler(logging.Handler):
    """Collects records emitted on the langroute logger."""

    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def log_config() -> LoggingConfig:
    """Create a test logging configuration."""
    return LoggingConfig(level="DEBUG", format="json", output="stdout")


@pytest.fixture
def router_logger(log_config: LoggingConfig) -> RouterLogger:
    """Create a test router logger."""
    return RouterLogger(log_config)


@pytest.fixture
def records(router_logger: RouterLogger) -> list[logging.LogRecord]:
    """Records emitted through the router logger."""
    handler = ListHandler()
    logger = router_logger.get_logger()
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


def make_record(msg: str = "test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter() -> None:
    """Test JsonFormatter produces valid JSON with extra fields."""
    record = make_record()
    record.route_id = "HOME"  # type: ignore
    record.extra_fields = {"event_type": "route_lookup", "match": {"lang": "FR"}}  # type: ignore

    log_data = json.loads(JsonFormatter().format(record))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test"
    assert log_data["message"] == "test message"
    assert log_data["route_id"] == "HOME"
    assert log_data["event_type"] == "route_lookup"
    assert log_data["match"] == {"lang": "FR"}
    assert "extra_fields" not in log_data
    assert "timestamp" in log_data


def test_text_formatter() -> None:
    """Test TextFormatter produces human-readable output."""
    record = make_record()
    record.route_id = "HOME"  # type: ignore
    record.lang = "FR"  # type: ignore

    result = TextFormatter().format(record)

    assert "[INFO]" in result
    assert "test message" in result
    assert "(route=HOME, lang=FR)" in result
    assert "route=" not in TextFormatter().format(make_record())


def test_router_logger_initialization(router_logger: RouterLogger) -> None:
    """Test RouterLogger configures the package logger."""
    logger = router_logger.get_logger()

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.propagate is False


def test_text_format(tmp_path) -> None:
    """Test the text format writing to a file."""
    path = tmp_path / "router.log"
    router_logger = RouterLogger(LoggingConfig(format="text", output=str(path)))

    router_logger.get_logger().info("hello")
    router_logger.get_logger().handlers[0].flush()

    assert "[INFO] langroute: hello" in path.read_text()
    router_logger.get_logger().handlers[0].close()


def test_log_table_built(router_logger: RouterLogger, records: list[logging.LogRecord]) -> None:
    """Test table build logging."""
    router_logger.log_table_built(5, "routes.yml")

    assert len(records) == 1
    assert records[0].levelno == logging.INFO
    assert "5 routes" in records[0].getMessage()
    assert records[0].extra_fields["table"] == {"route_count": 5, "source": "routes.yml"}  # type: ignore


def test_log_lookup(router_logger: RouterLogger, records: list[logging.LogRecord]) -> None:
    """Test lookup logging for hits and misses."""
    router_logger.log_lookup("GET", "fr/accueil", "HOME", "FR", {"page": "2"})
    router_logger.log_lookup("GET", "nowhere", "", "")

    assert [record.levelno for record in records] == [logging.DEBUG, logging.DEBUG]
    assert records[0].getMessage() == "GET /fr/accueil -> HOME [FR]"
    assert records[0].extra_fields["match"]["params"] == {"page": "2"}  # type: ignore
    assert records[1].getMessage() == "GET /nowhere -> no route"


def test_log_generation_error(router_logger: RouterLogger, records: list[logging.LogRecord]) -> None:
    """Test URL generation errors are logged as warnings."""
    error = RouteGenerationError("boom", route_id="HOME", lang="DE", kind="unknown_language")

    router_logger.log_generation_error(error)

    assert records[0].levelno == logging.WARNING
    assert records[0].getMessage() == "boom"
    assert records[0].extra_fields["url"] == {  # type: ignore
        "route_id": "HOME",
        "lang": "DE",
        "param": None,
        "kind": "unknown_language",
    }


def test_global_logger(log_config: LoggingConfig, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the global logger must be initialized first."""
    monkeypatch.setattr(router_logging, "_router_logger", None)

    with pytest.raises(RuntimeError, match="Logging not initialized"):
        get_logger()

    router_logger = initialize_logging(log_config)
    assert get_logger() is router_logger
