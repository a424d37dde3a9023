"""
Per-request log line with request-ID propagation.

``RequestLogger`` installs Flask hooks that:
1. Extract or generate a request ID (``X-Request-ID`` / W3C ``traceparent``).
2. Push it, with method and path, into the structured log context.
3. Emit exactly one log line per request at teardown, carrying every field
   other middleware attached to the context (``params``, ``form``, ...).
4. Clear the context so nothing leaks into the next request on the thread.
"""

import logging
import time
import uuid
from typing import Optional

from flask import Flask, g, request

from ..constants import FORM_FIELD, PARAMS_FIELD, REQUEST_ID_HEADER, TRACEPARENT_HEADER
from .logging import clear_log_context, get_log_context, set_log_context

# Context fields copied onto the record so non-JSON handlers see them too.
_RECORD_FIELDS = ("request_id", PARAMS_FIELD, FORM_FIELD)


def _new_id(length: int = 32) -> str:
    """Generate a random hex ID (32 chars = 128-bit trace id)."""
    return uuid.uuid4().hex[:length]


class RequestLogger:
    """Flask middleware: assigns request IDs and logs one line per request.

    Usage::

        RequestLogger(app, logger=setup_structured_logger("http", "http.log"))
    """

    def __init__(self, app: Flask, *, logger: Optional[logging.Logger] = None):
        """
        Args:
            app: The Flask application.
            logger: Logger for the per-request line. Defaults to ``app.logger``.
        """
        self.app = app
        self.logger = logger or app.logger
        self._install(app)

    # ── installation ─────────────────────────────────────────────

    def _install(self, app: Flask) -> None:
        app.before_request(self._before)
        app.after_request(self._after)
        app.teardown_request(self._teardown)

    # ── hooks ────────────────────────────────────────────────────

    def _before(self) -> None:
        request_id = self._extract_request_id()
        g.request_id = request_id
        g.request_start = time.monotonic()
        set_log_context(request_id=request_id, method=request.method, path=request.path)

    def _after(self, response):
        request_id = g.get("request_id")
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        g.status_code = response.status_code
        return response

    def _teardown(self, exc=None) -> None:
        try:
            start = g.get("request_start")
            if start is None:
                return
            duration_ms = (time.monotonic() - start) * 1000
            # after_request is skipped when an exception propagates
            status_code = g.get("status_code", 500)

            ctx = get_log_context()
            fields = {k: ctx[k] for k in _RECORD_FIELDS if k in ctx}

            log_method = (
                self.logger.warning
                if exc is not None or status_code >= 400
                else self.logger.info
            )
            log_method(
                "%s %s %s %.1fms",
                request.method,
                request.path,
                status_code,
                duration_ms,
                extra={
                    "duration_ms": round(duration_ms, 2),
                    "status_code": status_code,
                    **fields,
                },
            )
        finally:
            clear_log_context()

    # ── header parsing ───────────────────────────────────────────

    def _extract_request_id(self) -> str:
        """Return the caller's request ID or a fresh one.

        Supports:
        * ``traceparent`` (W3C Trace Context): ``00-<trace_id>-<span_id>-<flags>``
        * ``X-Request-ID`` (simple propagation)
        """
        tp = request.headers.get(TRACEPARENT_HEADER, "")
        if tp:
            parts = tp.split("-")
            if len(parts) >= 4 and len(parts[1]) == 32:
                return parts[1]

        rid = request.headers.get(REQUEST_ID_HEADER, "")
        if rid:
            return rid

        return _new_id(32)
