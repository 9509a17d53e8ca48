"""Logging module for the router.

Provides structured logging with JSON or text output for route table builds,
lookups and URL generation errors.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from langroute.core.config import LoggingConfig
from langroute.core.exceptions import RouteGenerationError

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "extra_fields", None)
        if isinstance(extra, dict):
            log_data.update(extra)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES and key != "extra_fields":
                log_data[key] = value

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Text formatter for human-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).isoformat()
        base = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"

        route_id = getattr(record, "route_id", None)
        if route_id:
            base += f" (route={route_id}, lang={getattr(record, 'lang', '')})"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class RouterLogger:
    """Router logger with structured event helpers."""

    def __init__(self, config: LoggingConfig):
        """Initialize the router logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self._setup_logging()

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        logger = logging.getLogger("langroute")
        logger.setLevel(getattr(logging, self.config.level))
        logger.handlers.clear()

        handler: logging.Handler
        if self.config.output == "stdout":
            handler = logging.StreamHandler(sys.stdout)
        elif self.config.output == "stderr":
            handler = logging.StreamHandler(sys.stderr)
        else:
            handler = logging.FileHandler(self.config.output)

        formatter: logging.Formatter
        if self.config.format == "json":
            formatter = JsonFormatter()
        else:
            formatter = TextFormatter()

        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False

    def get_logger(self, name: str = "langroute") -> logging.Logger:
        """Get a logger instance.

        Args:
            name: Logger name (default: "langroute")

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    def log_table_built(self, route_count: int, source: str, **kwargs: Any) -> None:
        """Log a route table build.

        Args:
            route_count: Number of route identifiers
            source: Where the table came from (array, yaml, json, cache)
            **kwargs: Additional fields to log
        """
        extra_fields = {
            "event_type": "table_built",
            "table": {"route_count": route_count, "source": source},
        }
        extra_fields.update(kwargs)
        self.get_logger().info(
            f"Route table loaded from {source} ({route_count} routes)",
            extra={"extra_fields": extra_fields},
        )

    def log_lookup(
        self,
        method: str,
        path: str,
        route_id: str,
        lang: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a route lookup.

        Args:
            method: HTTP method
            path: Request path
            route_id: Matched route identifier, empty when nothing matched
            lang: Matched language
            params: Extracted rewrite parameters
            **kwargs: Additional fields to log
        """
        extra_fields = {
            "event_type": "route_lookup",
            "request": {"method": method, "path": path},
            "match": {"route_id": route_id, "lang": lang, "params": params or {}},
        }
        extra_fields.update(kwargs)

        if route_id:
            message = f"{method} /{path} -> {route_id} [{lang}]"
        else:
            message = f"{method} /{path} -> no route"
        self.get_logger().debug(message, extra={"extra_fields": extra_fields})

    def log_generation_error(self, error: Exception, **kwargs: Any) -> None:
        """Log a URL generation error.

        Args:
            error: The recorded error
            **kwargs: Additional fields to log
        """
        extra_fields: dict[str, Any] = {"event_type": "url_error"}
        if isinstance(error, RouteGenerationError):
            extra_fields["url"] = {
                "route_id": error.route_id,
                "lang": error.lang,
                "param": error.param,
                "kind": error.kind,
            }
        extra_fields.update(kwargs)
        self.get_logger().warning(str(error), extra={"extra_fields": extra_fields})


# Global logger instance (will be initialized by the application)
_router_logger: RouterLogger | None = None


def initialize_logging(config: LoggingConfig) -> RouterLogger:
    """Initialize the global router logger.

    Args:
        config: Logging configuration

    Returns:
        Initialized RouterLogger instance
    """
    global _router_logger
    _router_logger = RouterLogger(config)
    return _router_logger


def get_logger() -> RouterLogger:
    """Get the global router logger.

    Returns:
        The global RouterLogger instance

    Raises:
        RuntimeError: If logging has not been initialized
    """
    if _router_logger is None:
        raise RuntimeError("Logging not initialized. Call initialize_logging() first.")
    return _router_logger
