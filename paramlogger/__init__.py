"""
paramlogger - request parameter logging with secret redaction for Flask
"""

__version__ = "0.1.0"

from .config import ConfigError, exclusions_from_config, load_config
from .constants import DEFAULT_EXCLUSIONS, FILTERED_INDICATOR
from .errors import FormExtractionError, ParamLoggerError
from .integration import install
from .middleware import ParamLogger, extract_form, flatten_multipart, mask_secrets
from .observability import RequestLogger

__all__ = [
    "ParamLogger",
    "RequestLogger",
    "install",
    "mask_secrets",
    "flatten_multipart",
    "extract_form",
    "load_config",
    "exclusions_from_config",
    "ConfigError",
    "ParamLoggerError",
    "FormExtractionError",
    "DEFAULT_EXCLUSIONS",
    "FILTERED_INDICATOR",
]
