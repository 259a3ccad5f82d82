"""JSON logging for the service log stream and the session audit trail."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "pdfchat.audit"

# Correlation fields callers may attach with ``extra=``.
CONTEXT_FIELDS = ("session_id", "req_id")


class EventJSONFormatter(logging.Formatter):
    """Render one JSON object per record.

    Telemetry and audit helpers log dictionaries, which become the body of the
    object; any other message is stored under ``message``. With
    ``include_origin=False`` the level and logger name are left out, which keeps
    audit lines down to the timestamp and the event itself.
    """

    def __init__(self, include_origin: bool = True) -> None:
        super().__init__()
        self.include_origin = include_origin

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {"ts": self.formatTime(record)}
        if self.include_origin:
            payload["level"] = record.levelname
            payload["logger"] = record.name

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload.setdefault(name, value)

        if record.exc_info and "exc" not in payload:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO", log_dir: str | Path = "logs") -> None:
    """Send JSON logs to stderr and session audit events to ``log_dir/audit.log``."""

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": EventJSONFormatter},
                "audit": {"()": EventJSONFormatter, "include_origin": False},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
                "audit": {
                    "class": "logging.FileHandler",
                    "filename": str(log_dir / "audit.log"),
                    "encoding": "utf-8",
                    "formatter": "audit",
                },
            },
            "root": {"level": level, "handlers": ["default"]},
            "loggers": {
                AUDIT_LOGGER_NAME: {
                    "level": "INFO",
                    "handlers": ["audit"],
                    "propagate": False,
                }
            },
        }
    )
