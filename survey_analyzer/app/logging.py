from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# CLI subcommand being executed; set by main() and cleared when it returns.
_COMMAND: ContextVar[Optional[str]] = ContextVar("command", default=None)

_RESERVED_ATTRS = {
    "msg", "args", "levelname", "levelno", "name", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
    "taskName", "command", "message", "asctime",
}


def set_command(command: str) -> None:
    _COMMAND.set(command)


def clear_command() -> None:
    _COMMAND.set(None)


class CommandFilter(logging.Filter):
    # Stamps record.command so both formats can show which subcommand logged.
    def filter(self, record: logging.LogRecord) -> bool:
        record.command = _COMMAND.get()
        return True


class JsonFormatter(logging.Formatter):
    # One JSON object per line for --json-logs / SURVEY_LOG_JSON.
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "command": getattr(record, "command", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # extra={} fields such as question ids; non-JSON values are stringified.
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value, ensure_ascii=False)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    # Logs go to stderr; stdout carries the command output.
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(CommandFilter())

    if json_logs:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s command=%(command)s %(message)s"
        ))

    root.addHandler(handler)
