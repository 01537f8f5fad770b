"""
Logging setup.

Plain text by default; JSON lines when LOG_JSON is set so the output can go
straight to a log aggregator. Fields passed via logger.info(..., extra={...})
are carried into the JSON record.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any

_RESERVED = {
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName",
}

# Keys whose values must never reach the logs
_REDACTED_KEYS = {"password", "new_password", "token", "access_token", "password_hash"}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            log_data[key] = "[REDACTED]" if key in _REDACTED_KEYS else _jsonable(value)
        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure the root logger once per process start."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root_logger.addHandler(handler)


def token_hint(token: str) -> str:
    """Last four characters of a token, the only part that may be logged."""
    if not token:
        return ""
    return f"...{token[-4:]}"
