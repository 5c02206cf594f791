"""Tests for checker configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from esmready.config import CheckerConfig, load_config
from esmready.errors import ConfigurationError


def test_defaults():
    config = load_config(None)
    assert config.max_workers == 8
    assert config.esm_conditions == ["import", "module", "node", "default"]
    assert config.cjs_conditions == ["require", "node", "default"]
    assert config.skip_type_packages


def test_dict_and_instance_sources():
    config = load_config({"max_workers": 2, "use_module_field": True})
    assert config.max_workers == 2
    assert config.use_module_field
    assert load_config(config) is config


def test_toml_file(tmp_path: Path):
    path = tmp_path / "esmready.toml"
    path.write_text(
        'max_workers = 4\nesm_conditions = ["import", "browser", "default"]\n',
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.max_workers == 4
    assert config.esm_conditions == ["import", "browser", "default"]


def test_json_file_and_table(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text('{"esmready": {"include_dev_dependencies": true}}', encoding="utf-8")
    assert load_config(str(path)).include_dev_dependencies


def test_inline_strings():
    assert load_config('{"max_workers": 3}').max_workers == 3
    assert load_config("extra_builtins = ['electron']").extra_builtins == ["electron"]


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        load_config({"max_workers": 0})
    with pytest.raises(ValidationError):
        load_config({"esm_conditions": ["import"]})
    with pytest.raises(ValidationError):
        load_config({"cjs_conditions": []})
    with pytest.raises(ValidationError):
        load_config({"unknown_option": 1})


def test_undecodable_sources():
    with pytest.raises(ConfigurationError):
        load_config("{ not json")
    with pytest.raises(ConfigurationError):
        load_config("[1, 2]")
    with pytest.raises(TypeError):
        load_config(42)


def test_round_trip_through_dict():
    config = CheckerConfig(max_workers=5)
    assert CheckerConfig.from_dict(config.to_dict()) == config


def test_missing_config_file_is_reported_as_unreadable(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="Cannot read configuration file"):
        load_config(str(tmp_path / "missing.toml"))
    with pytest.raises(ConfigurationError, match="Cannot read configuration file"):
        load_config("missing.json")
