"""One-call setup of request logging for a Flask application."""

import os
from typing import Any, Dict, Optional

from flask import Flask

from .config import ConfigError, load_config, validate_config
from .constants import DEFAULT_LOG_FILE
from .middleware import ParamLogger
from .observability import RequestLogger, setup_structured_logger


def install(
    app: Flask,
    config: Optional[Dict[str, Any]] = None,
    *,
    config_path: Optional[str] = None,
) -> ParamLogger:
    """Install ``RequestLogger`` and ``ParamLogger`` on *app*.

    Register blueprints before calling this; views added afterwards are not
    wrapped.

    Args:
        app: The Flask application.
        config: Pre-loaded configuration dict (preferred).
        config_path: JSON config file, used when *config* is not given.
            Falls back to ``$PARAM_LOGGER_CONFIG``; with neither, defaults
            apply.

    Returns:
        The installed ``ParamLogger``.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    if config is None:
        config_path = config_path or os.environ.get("PARAM_LOGGER_CONFIG")
        config = load_config(config_path) if config_path else {}

    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors))

    logging_cfg = config.get("logging", {})
    logger = setup_structured_logger(
        "http",
        logging_cfg.get("log_file", DEFAULT_LOG_FILE),
        debug=logging_cfg.get("debug", False),
        log_dir=logging_cfg.get("log_dir"),
    )
    RequestLogger(app, logger=logger)
    return ParamLogger.from_config(config, app, logger=logger)
