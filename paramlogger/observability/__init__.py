"""
Observability package: structured logging and the per-request log line.

Provides:
- ``setup_structured_logger``: JSON-formatted logging
- ``set_log_context`` / ``get_log_context`` / ``clear_log_context``:
  thread-local fields merged into every log line
- ``RequestLogger``: Flask middleware for request-id propagation and one
  log line per request
"""

from .logging import (
    clear_log_context,
    get_log_context,
    remove_log_context,
    set_log_context,
    setup_structured_logger,
)
from .request_log import RequestLogger

__all__ = [
    "setup_structured_logger",
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "remove_log_context",
    "RequestLogger",
]
