from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from playlist_relay.domain.log_buffer import LogBuffer

SERVICE_LOGGER = "relay"

EXTRA_FIELDS = (
    "run_id",
    "intent",
    "requester",
    "chat_id",
    "batch_id",
    "item",
    "path",
    "status_code",
    "error",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class LogBufferHandler(logging.Handler):
    """Copies records into the in-memory ring served by GET /logs."""

    def __init__(self, buffer: LogBuffer, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            raw = getattr(record, "raw", None)
            if raw is None:
                details = {key: getattr(record, key) for key in EXTRA_FIELDS if getattr(record, key, None) is not None}
                raw = details or None
            self.buffer.append(
                severity=record.levelname,
                message=record.getMessage(),
                raw=raw,
                timestamp=datetime.fromtimestamp(record.created, tz=UTC),
            )
        except Exception:
            self.handleError(record)


def configure_logging(level: int = logging.INFO) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


def attach_log_buffer(buffer: LogBuffer) -> LogBufferHandler:
    handler = LogBufferHandler(buffer)
    service_logger = logging.getLogger(SERVICE_LOGGER)
    service_logger.addHandler(handler)
    if service_logger.level == logging.NOTSET or service_logger.level > logging.INFO:
        service_logger.setLevel(logging.INFO)
    return handler


def detach_log_buffer(handler: LogBufferHandler) -> None:
    logging.getLogger(SERVICE_LOGGER).removeHandler(handler)
