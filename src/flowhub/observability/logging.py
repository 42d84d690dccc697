"""Structured JSON logging with flow execution context."""
import logging
import sys
from typing import Any, TextIO

from pythonjsonlogger import jsonlogger

from flowhub.config import get_settings


CONTEXT_FIELDS = ("execution_id", "flow_id", "node_id", "proxy")


class FlowContextFilter(logging.Filter):
    """Add flow context fields to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Context fields are only emitted when set
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None):
                log_record[name] = getattr(record, name)
            else:
                log_record.pop(name, None)


def setup_logging(stream: TextIO | None = None) -> None:
    """Configure logging for the application (stdout unless a stream is given)."""
    settings = get_settings()

    handler = logging.StreamHandler(stream or sys.stdout)
    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(FlowContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)


class FlowLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges call-site ``extra`` with its own."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> FlowLoggerAdapter:
    """
    Get a logger that accepts flow context in ``extra``.

    Args:
        name: Logger name (typically __name__)
        **context: Fields bound to every record (execution_id, flow_id...)
    """
    return FlowLoggerAdapter(logging.getLogger(name), extra=context)


def with_flow_context(
    execution_id: str | None = None,
    flow_id: str | None = None,
    node_id: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """``extra`` for a log call; empty ids are left out."""
    ids = {"execution_id": execution_id, "flow_id": flow_id, "node_id": node_id}
    return {**kwargs, **{key: value for key, value in ids.items() if value}}
