"""
Structured JSON logging with per-request context.

Every log line is a single JSON object with guaranteed keys: ``timestamp``,
``level``, ``logger``, ``message``, ``service`` and ``version``, plus
whatever fields the current request has attached to the log context
(``request_id``, ``params``, ``form``, ...).
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..constants import APP_VERSION, FORM_FIELD, LOG_BACKUP_COUNT, LOG_MAX_BYTES, PARAMS_FIELD

# Thread-local storage for per-request context (request_id, params, form, ...)
_context = threading.local()

# Default service name, overridable via LOG_SERVICE_NAME env var
SERVICE_NAME: str = os.environ.get("LOG_SERVICE_NAME", "paramlogger")


def set_log_context(**kwargs: Any) -> None:
    """Attach key-value pairs to the current thread's log context.

    Typical usage inside a Flask hook::

        set_log_context(request_id=rid, params='{"q": ["x"]}')
    """
    if not hasattr(_context, "data"):
        _context.data = {}
    _context.data.update(kwargs)


def clear_log_context() -> None:
    """Remove all per-request context from the current thread."""
    _context.data = {}


def remove_log_context(*keys: str) -> None:
    """Drop *keys* from the current thread's log context, if present."""
    data = getattr(_context, "data", None)
    if data:
        for key in keys:
            data.pop(key, None)


def get_log_context() -> Dict[str, Any]:
    """Return a *copy* of the current thread's context dict."""
    return dict(getattr(_context, "data", {}))


# ── JSON Formatter ───────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit each record as a single-line JSON object."""

    # Keys that are promoted from ``extra`` to the top-level JSON.
    _PROMOTE_KEYS = frozenset(
        {
            "request_id",
            "trace_id",
            "duration_ms",
            "status_code",
            "method",
            "path",
            "error_type",
            PARAMS_FIELD,
            FORM_FIELD,
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "version": APP_VERSION,
            "thread": record.threadName,
        }

        # Source location for DEBUG / ERROR+
        if record.levelno <= logging.DEBUG or record.levelno >= logging.ERROR:
            entry["func"] = record.funcName
            entry["line"] = record.lineno
            entry["file"] = record.pathname

        ctx = get_log_context()
        if ctx:
            entry.update(ctx)

        for key in self._PROMOTE_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
            entry["error_type"] = record.exc_info[0].__name__

        return json.dumps(entry, default=str, ensure_ascii=False)


# ── Plain Formatter (dev / console) ─────────────────────────────


class _DevFormatter(logging.Formatter):
    """Human-readable coloured output for local development."""

    _COLORS = {
        "DEBUG": "\033[36m",     # cyan
        "INFO": "\033[32m",      # green
        "WARNING": "\033[33m",   # yellow
        "ERROR": "\033[31m",     # red
        "CRITICAL": "\033[35m",  # magenta
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        ctx = get_log_context()
        rid = ctx.get("request_id", "")
        prefix = f"[{rid[:8]}] " if rid else ""
        base = (
            f"{color}{ts} {record.levelname:<8}{self._RESET} "
            f"{record.name} {prefix}{record.getMessage()}"
        )
        for key in (PARAMS_FIELD, FORM_FIELD):
            val = getattr(record, key, None) or ctx.get(key)
            if val:
                base += f" {key}={val}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


# ── Logger Factory ───────────────────────────────────────────────


def setup_structured_logger(
    name: str,
    log_file: str,
    *,
    level: Optional[int] = None,
    debug: bool = False,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Create (or retrieve) a structured JSON logger.

    Args:
        name: Logger name.
        log_file: Filename under *log_dir*.
        level: Explicit level (overrides *debug*).
        debug: If ``True``, sets level to ``DEBUG``.
        log_dir: Directory for the log file. Defaults to ``$LOG_DIR`` or
            ``./logs``.

    Returns:
        A configured ``logging.Logger``.
    """
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR", "logs")
    log_path = Path(log_dir) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        return logger

    # ── JSON file handler ────────────────────────────────────────
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(_JsonFormatter())

    # ── Console handler: JSON in prod, coloured in dev ───────────
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    use_json_console = os.environ.get("LOG_FORMAT", "").lower() == "json"
    if use_json_console:
        console_handler.setFormatter(_JsonFormatter())
    else:
        console_handler.setFormatter(_DevFormatter())

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
