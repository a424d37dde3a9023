"""
Configuration loading and validation for paramlogger.

The embedding application either passes exclusions straight to
``ParamLogger`` or keeps them in a JSON file with a ``param_logger``
section.  String values may contain ``${ENV_VAR:-default}`` placeholders,
resolved from the environment (and ``.env``) at load time.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .constants import DEFAULT_CONFIG_PATH, DEFAULT_EXCLUSIONS
from .errors import ParamLoggerError

load_dotenv()

CONFIG_SECTION = "param_logger"


class ConfigError(ParamLoggerError):
    """Raised when the configuration file is missing or invalid."""


def load_config(config_path: str = DEFAULT_CONFIG_PATH, *, base_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file and resolve ``${ENV_VAR:-default}``
    placeholders in all string values.

    Args:
        config_path: Path to the config file. Relative paths are resolved
            against *base_dir* (defaults to the current working directory).
        base_dir: Directory relative paths are resolved against.

    Returns:
        Fully-resolved configuration dictionary.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    full_path = Path(config_path)
    if not full_path.is_absolute():
        full_path = (base_dir or Path.cwd()) / full_path

    if not full_path.exists():
        raise ConfigError(f"Configuration file not found: {full_path}")

    try:
        with open(full_path, "r") as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {full_path}: {exc}") from exc

    if not isinstance(config, dict):
        raise ConfigError(f"Top level of {full_path} must be a JSON object")

    return _resolve(config)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate a config dict.

    Returns:
        A list of human-readable error strings.  Empty means valid.
    """
    errors: List[str] = []

    section = config.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        return [f"Config section '{CONFIG_SECTION}' must be an object"]

    for key in ("exclusions", "extra_exclusions"):
        if key not in section:
            continue
        value = section[key]
        if isinstance(value, str):
            continue  # comma-separated, typically from a placeholder
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            errors.append(f"'{CONFIG_SECTION}.{key}' must be a list of strings")

    if "redact_params" in section and not isinstance(section["redact_params"], bool):
        errors.append(f"'{CONFIG_SECTION}.redact_params' must be true or false")

    logging_section = config.get("logging", {})
    if not isinstance(logging_section, dict):
        errors.append("Config section 'logging' must be an object")
    elif "debug" in logging_section and not isinstance(logging_section["debug"], bool):
        errors.append("'logging.debug' must be true or false")

    return errors


def exclusions_from_config(config: Dict[str, Any]) -> List[str]:
    """Return the exclusion names configured in *config*.

    ``exclusions`` replaces the defaults when present; ``extra_exclusions``
    is always appended.

    Raises:
        ConfigError: If the section fails validation.
    """
    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors))

    section = config.get(CONFIG_SECTION, {})
    names = _as_names(section["exclusions"]) if "exclusions" in section else list(DEFAULT_EXCLUSIONS)
    names.extend(_as_names(section.get("extra_exclusions", [])))
    return names


# ── Private helpers ──────────────────────────────────────────────

_PLACEHOLDER_RE = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _as_names(value: Any) -> List[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [v for v in value if v]


def _resolve(obj: Any) -> Any:
    """Recursively resolve ``${ENV_VAR:-default}`` in string values."""
    if isinstance(obj, str):
        return _PLACEHOLDER_RE.sub(_replace_match, obj)
    elif isinstance(obj, dict):
        return {k: _resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve(v) for v in obj]
    return obj


def _replace_match(m: re.Match) -> str:
    var = m.group(1)
    default = m.group(2) if m.group(2) is not None else ""
    return os.environ.get(var, default)
