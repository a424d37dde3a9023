"""
Request parameter logging with secret redaction.

``ParamLogger`` wraps Flask view functions.  After the view finishes, whether
it returned normally or raised, the request's parameters are serialised to
JSON and attached to the log context:

* ``params``: query arguments merged with route arguments.
* ``form``: body fields (URL-encoded or multipart) for non-GET requests,
  with excluded field names replaced by ``[FILTERED]``.

The emitted log line is the host logger's business (see
``observability.request_log.RequestLogger``).  Nothing here changes the
response, and failures are only reported through the logger.
"""

import json
import logging
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from flask import Flask, current_app, request
from werkzeug.datastructures import FileStorage, MultiDict
from werkzeug.exceptions import HTTPException

from .constants import (
    DEFAULT_EXCLUSIONS,
    DEFAULT_LOG_FILE,
    FILTERED_INDICATOR,
    FORM_FIELD,
    FORM_MIMETYPES,
    MULTIPART_MIMETYPE,
    PARAMS_FIELD,
)
from .config import CONFIG_SECTION, exclusions_from_config
from .errors import FormExtractionError
from .observability.logging import remove_log_context, set_log_context, setup_structured_logger

Fields = Dict[str, List[str]]

EXTENSION_NAME = "paramlogger"


# ── Redaction ────────────────────────────────────────────────────


def normalize_exclusions(names: Iterable[str]) -> frozenset:
    """Casefold *names* into a set usable by :func:`mask_secrets`."""
    if isinstance(names, str):
        raise TypeError("Exclusion names must be a sequence of strings, not a single string")
    normalized = set()
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"Exclusion names must be strings, got {type(name).__name__}")
        normalized.add(name.casefold())
    return frozenset(normalized)


_DEFAULT_EXCLUSION_SET = normalize_exclusions(DEFAULT_EXCLUSIONS)


def mask_secrets(
    form: Union[Mapping[str, List[str]], MultiDict],
    exclusions: Optional[Iterable[str]] = None,
) -> Fields:
    """Return a copy of *form* with excluded fields replaced by ``[FILTERED]``.

    *exclusions* defaults to ``DEFAULT_EXCLUSIONS`` and is casefolded before
    matching, so raw names and :func:`normalize_exclusions` output both work.
    Keys and their order are preserved; values of other fields are passed
    through as-is.
    """
    if exclusions is None:
        exclusions = _DEFAULT_EXCLUSION_SET
    else:
        exclusions = normalize_exclusions(exclusions)
    if isinstance(form, MultiDict):
        form = form.to_dict(flat=False)

    masked: Fields = {}
    for key, values in form.items():
        if key.casefold() in exclusions:
            masked[key] = [FILTERED_INDICATOR]
        else:
            masked[key] = values
    return masked


# ── Extraction ───────────────────────────────────────────────────


def flatten_multipart(values: MultiDict, files: MultiDict) -> Fields:
    """Merge multipart value fields and uploaded-file names into one mapping.

    Files contribute their declared filename only; content is never read.
    """
    flat: Fields = {}
    for key, vals in values.lists():
        flat.setdefault(key, []).extend(vals)
    for key, uploads in files.lists():
        flat.setdefault(key, []).extend(_filename(f) for f in uploads)
    return flat


def _filename(upload: FileStorage) -> str:
    return upload.filename or ""


def extract_form(req) -> Fields:
    """Return the body fields of *req* as a name -> values mapping.

    Raises:
        FormExtractionError: If Werkzeug fails to parse the body.
    """
    try:
        if req.mimetype == MULTIPART_MIMETYPE:
            return flatten_multipart(req.form, req.files)
        return req.form.to_dict(flat=False)
    except (HTTPException, ValueError, OSError) as exc:
        raise FormExtractionError(req.method, req.path, str(exc)) from exc


def resolved_params(req) -> Fields:
    """Query arguments merged with the matched route's arguments."""
    params = req.args.to_dict(flat=False)
    for key, value in (req.view_args or {}).items():
        params.setdefault(key, []).append(str(value))
    return params


# ── Middleware ───────────────────────────────────────────────────


class ParamLogger:
    """Flask extension that logs request parameters with secrets masked.

    Usage::

        app.register_blueprint(api_bp)
        ParamLogger(app, extra_exclusions=["ApiToken"])

    ``init_app`` wraps the view functions registered so far and installs a
    ``before_request`` hook that wraps any endpoint added later on its first
    request.  Individual views can also be decorated with :meth:`wrap`.
    """

    def __init__(
        self,
        app: Optional[Flask] = None,
        *,
        exclusions: Optional[Iterable[str]] = None,
        extra_exclusions: Iterable[str] = (),
        redact_params: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            app: Flask application to install into.
            exclusions: Field names to redact. Replaces the defaults.
            extra_exclusions: Field names added to *exclusions*.
            redact_params: Also redact the ``params`` field.
            logger: Where errors are reported. Defaults to ``app.logger``.
        """
        for arg in (exclusions, extra_exclusions):
            if isinstance(arg, str):
                raise TypeError("Exclusion names must be a sequence of strings, not a single string")
        names = list(DEFAULT_EXCLUSIONS if exclusions is None else exclusions)
        names.extend(extra_exclusions)
        self.exclusions = normalize_exclusions(names)
        self.redact_params = redact_params
        self.logger = logger
        if app is not None:
            self.init_app(app)

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        app: Optional[Flask] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> "ParamLogger":
        """Build from the ``param_logger`` and ``logging`` config sections.

        A structured logger is created from the ``logging`` section unless
        *logger* is given.
        """
        section = config.get(CONFIG_SECTION, {})
        if logger is None:
            logging_cfg = config.get("logging", {})
            logger = setup_structured_logger(
                EXTENSION_NAME,
                logging_cfg.get("log_file", DEFAULT_LOG_FILE),
                debug=logging_cfg.get("debug", False),
                log_dir=logging_cfg.get("log_dir"),
            )
        return cls(
            app,
            exclusions=exclusions_from_config(config),
            redact_params=section.get("redact_params", False),
            logger=logger,
        )

    # ── installation ─────────────────────────────────────────────

    def init_app(self, app: Flask) -> None:
        app.extensions[EXTENSION_NAME] = self
        for endpoint, view in list(app.view_functions.items()):
            if not getattr(view, "_paramlogger_wrapped", False):
                app.view_functions[endpoint] = self.wrap(view)
        app.before_request(self._wrap_endpoint)

    def _wrap_endpoint(self) -> None:
        app = current_app._get_current_object()
        view = app.view_functions.get(request.endpoint)
        if view is not None and not getattr(view, "_paramlogger_wrapped", False):
            app.view_functions[request.endpoint] = self.wrap(view)

    def wrap(self, view: Callable) -> Callable:
        """Decorator form: log parameters around a single view."""

        @wraps(view)
        def wrapped(*args, **kwargs):
            return self.intercept(view, *args, **kwargs)

        wrapped._paramlogger_wrapped = True
        return wrapped

    # ── per-request ──────────────────────────────────────────────

    def intercept(self, view: Callable, *args, **kwargs):
        """Call *view* and attach ``params``/``form`` once it has finished."""
        remove_log_context(PARAMS_FIELD, FORM_FIELD)
        try:
            return view(*args, **kwargs)
        finally:
            self._log_request()

    def _log_request(self) -> None:
        if request.method != "GET":
            try:
                self.log_form()
            except Exception as exc:
                self._logger().error("Could not log form fields: %s", exc, exc_info=True)

        try:
            params = resolved_params(request)
            if self.redact_params:
                params = mask_secrets(params, self.exclusions)
            set_log_context(**{PARAMS_FIELD: json.dumps(params)})
        except Exception as exc:
            self._logger().error("Could not log request params: %s", exc, exc_info=True)

    def log_form(self) -> None:
        """Attach the masked body fields of the current request as ``form``.

        Requests without a form body (GET, JSON, empty) attach nothing.
        """
        if request.mimetype not in FORM_MIMETYPES:
            return
        fields = extract_form(request)
        masked = mask_secrets(fields, self.exclusions)
        set_log_context(**{FORM_FIELD: json.dumps(masked)})

    def _logger(self) -> logging.Logger:
        return self.logger or current_app.logger
