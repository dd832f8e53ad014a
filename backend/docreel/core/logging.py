"""
Logging setup shared by the API and the background pipeline tasks.

Console output is coloured text by default and JSON lines with
JSON_LOGS=true; the optional log file is always JSON. Request, session and
job ids set through ``set_request_id`` and friends are attached to every
record logged in the same task, which is how an export's background work
stays traceable to the request that started it.
"""

import json
import logging
import os
import sys
import time
from contextvars import ContextVar
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

REDACTED = "***REDACTED***"
SENSITIVE_KEY_TOKENS = ("password", "secret", "token", "api_key", "apikey", "authorization", "fal_key")
CONTEXT_KEYS = ("request_id", "session_id", "job_id")
QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "asyncio", "google_genai", "fal_client")

_log_context: ContextVar[Mapping[str, str]] = ContextVar("log_context", default={})

# Everything a bare LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _bind(key: str, value: Optional[str]) -> None:
    context = dict(_log_context.get())
    if value:
        context[key] = value
    else:
        context.pop(key, None)
    _log_context.set(context)


def set_request_id(request_id: str) -> None:
    _bind("request_id", request_id)


def set_session_id(session_id: str) -> None:
    _bind("session_id", session_id)


def set_job_id(job_id: str) -> None:
    _bind("job_id", job_id)


def clear_context() -> None:
    _log_context.set({})


def current_context() -> Dict[str, str]:
    return dict(_log_context.get())


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(token in lowered for token in SENSITIVE_KEY_TOKENS)


def redact(value: Any, key: str = "") -> Any:
    """Replace values stored under secret-looking keys, recursing into containers."""
    if key and _is_sensitive(key) and not isinstance(value, (dict, list, tuple)):
        return REDACTED
    if isinstance(value, dict):
        return {k: redact(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item, key) for item in value]
    return value


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and key not in CONTEXT_KEYS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(current_context())
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value:
                entry[key] = value

        extras = record_extras(record)
        if extras:
            entry["extra"] = redact(extras)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Short coloured lines with abbreviated correlation ids."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    CONTEXT_LABELS = {"request_id": "req", "session_id": "sess", "job_id": "job"}

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        ids = current_context()
        context = ", ".join(f"{self.CONTEXT_LABELS[k]}:{v[:8]}" for k, v in ids.items() if k in self.CONTEXT_LABELS)
        line = f"{color}{clock} {record.levelname:<8}{self.RESET} {record.name:<30}"
        if context:
            line += f" [{context}]"
        line += f" {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LoggerAdapter(logging.LoggerAdapter):
    """Adds the adapter's bound fields and the current correlation ids to ``extra``."""

    def process(self, msg: str, kwargs: Any) -> tuple:
        kwargs["extra"] = {**(self.extra or {}), **current_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, **bound: Any) -> LoggerAdapter:
    """
    Example:
        logger = get_logger(__name__, component="export_stage")
        logger.info("Export started", extra={"export_id": export_id})
    """
    return LoggerAdapter(logging.getLogger(name), bound)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None, use_json: bool = False) -> None:
    """Replace root handlers with a console handler and, optionally, a rotating JSON file."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if use_json else DevelopmentFormatter())
    root.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=int(os.getenv("LOG_MAX_BYTES", str(20 * 1024 * 1024))),
            backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogTimer:
    """Logs start, end and duration of a block; failures are logged and re-raised."""

    def __init__(self, logger: Any, operation: str, level: int = logging.INFO, **fields: Any):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.fields = fields
        self.started = 0.0
        self.duration = 0.0

    def __enter__(self) -> "LogTimer":
        self.started = time.perf_counter()
        self.logger.log(self.level, f"Starting: {self.operation}", extra=self.fields)
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb) -> None:
        self.duration = time.perf_counter() - self.started
        extra = {**self.fields, "duration_seconds": round(self.duration, 3)}
        if exc_type is None:
            self.logger.log(self.level, f"Completed: {self.operation}", extra=extra)
            return
        if not issubclass(exc_type, Exception):
            # CancelledError, KeyboardInterrupt
            return
        self.logger.error(
            f"Failed: {self.operation}",
            extra={**extra, "error": str(exc_val)},
            exc_info=(exc_type, exc_val, _exc_tb),
        )
