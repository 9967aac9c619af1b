"""Logging configuration for coursekit-service.

Two output shapes, one handler:

  _ContainerFormatter: single human-readable line per record, for a
    terminal.  WARNING and above get a [file:line] suffix so a denied
    video request or a store timeout points straight at the guard clause.

  _JsonFormatter: one JSON object per line (JSON Lines), for a log
    pipeline.  Context fields attached by the request middleware or passed
    through ``extra=`` (request_id, learner_id, course_id, ...) become
    top-level keys, so "every denial for learner X" is a filter instead of
    a regex.

Set LOG_JSON=true in production to switch to JSON output.

WHAT NEVER GETS LOGGED
-----------------------
Private-key PEM text, bearer tokens, and issued signatures.  Log the key
*id* and the expiry instead; they identify a credential without letting
anyone replay it.  tests/api/test_log_secrets.py enforces this.
"""

from __future__ import annotations

import json
import logging
import sys


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout."""

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter for machine-parseable log output."""

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "learner_id",
        "course_id",
        "lesson_id",
        "meetup_id",
        "payment_status",
        "status_code",
        "duration_ms",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error).  Unknown
                    names fall back to INFO.
        json_format: Emit JSON lines instead of the human-readable format.
                     Controlled by LOG_JSON in Settings.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # botocore logs request signing details at DEBUG; keep it quiet along
    # with the HTTP server and client libraries.
    for name in (
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpcore",
        "httpx",
        "botocore",
        "boto3",
    ):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
