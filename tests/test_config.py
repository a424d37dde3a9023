"""Tests for config.py: loading, placeholder resolution and validation."""

import json

import pytest

from paramlogger.config import ConfigError, exclusions_from_config, load_config, validate_config
from paramlogger.constants import DEFAULT_EXCLUSIONS
from paramlogger.errors import ParamLoggerError


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


class TestLoadConfig:
    def test_loads_absolute_path(self, tmp_path):
        cfg = _write(tmp_path / "config.json", {"param_logger": {"redact_params": True}})
        assert load_config(str(cfg)) == {"param_logger": {"redact_params": True}}

    def test_relative_path_uses_base_dir(self, tmp_path):
        _write(tmp_path / "custom.json", {"logging": {"debug": False}})
        assert load_config("custom.json", base_dir=tmp_path) == {"logging": {"debug": False}}

    def test_resolves_env_placeholders(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SECRET_FIELD", "Pin")
        cfg = _write(
            tmp_path / "config.json",
            {"param_logger": {"extra_exclusions": ["${SECRET_FIELD}", "${UNSET_FIELD:-Ssn}"]}},
        )
        config = load_config(str(cfg))
        assert config["param_logger"]["extra_exclusions"] == ["Pin", "Ssn"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "nope.json"))

    def test_invalid_json_raises(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(str(bad))

    def test_non_object_raises(self, tmp_path):
        cfg = _write(tmp_path / "list.json", ["password"])
        with pytest.raises(ConfigError):
            load_config(str(cfg))

    def test_config_error_is_paramlogger_error(self):
        assert issubclass(ConfigError, ParamLoggerError)


class TestValidateConfig:
    def test_empty_config_is_valid(self):
        assert validate_config({}) == []

    def test_valid_section(self):
        config = {
            "param_logger": {"exclusions": ["a"], "extra_exclusions": "b,c", "redact_params": False},
            "logging": {"debug": True},
        }
        assert validate_config(config) == []

    def test_rejects_non_string_exclusions(self):
        errors = validate_config({"param_logger": {"exclusions": ["ok", 3]}})
        assert len(errors) == 1
        assert "param_logger.exclusions" in errors[0]

    def test_rejects_non_bool_redact_params(self):
        errors = validate_config({"param_logger": {"redact_params": "yes"}})
        assert any("redact_params" in e for e in errors)

    def test_rejects_non_object_section(self):
        assert validate_config({"param_logger": ["password"]})

    def test_rejects_non_bool_debug(self):
        errors = validate_config({"logging": {"debug": "true"}})
        assert any("logging.debug" in e for e in errors)


class TestExclusionsFromConfig:
    def test_defaults_when_unset(self):
        assert exclusions_from_config({}) == list(DEFAULT_EXCLUSIONS)

    def test_extra_exclusions_appended(self):
        config = {"param_logger": {"extra_exclusions": ["ApiToken"]}}
        assert exclusions_from_config(config) == list(DEFAULT_EXCLUSIONS) + ["ApiToken"]

    def test_exclusions_replace_defaults(self):
        config = {"param_logger": {"exclusions": ["pin"], "extra_exclusions": ["otp"]}}
        assert exclusions_from_config(config) == ["pin", "otp"]

    def test_comma_separated_string(self):
        config = {"param_logger": {"extra_exclusions": "ApiToken, Ssn,,"}}
        assert exclusions_from_config(config)[-2:] == ["ApiToken", "Ssn"]

    def test_empty_placeholder_values_dropped(self):
        config = {"param_logger": {"exclusions": ["", "pin"]}}
        assert exclusions_from_config(config) == ["pin"]

    def test_invalid_section_raises(self):
        with pytest.raises(ConfigError):
            exclusions_from_config({"param_logger": {"exclusions": [1]}})
