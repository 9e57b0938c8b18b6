"""Tests for config loading and error helpers."""

import logging

import pytest

import services.config as config
import services.logger as log
from services.config_io import find_config, load_config
from services.error import ConfigurationError, catch_and_log, raise_and_log


@pytest.fixture
def data_path(tmp_path, monkeypatch):
    monkeypatch.setenv("DRIVERS_DATA_PATH", str(tmp_path))
    config.reload()
    yield tmp_path
    config.reload()


def test_find_config_prefers_json(tmp_path):
    assert find_config(tmp_path) is None
    (tmp_path / "config.toml").write_text("a = 1\n", encoding="utf-8")
    assert find_config(tmp_path).name == "config.toml"
    (tmp_path / "config.json").write_text("{}", encoding="utf-8")
    assert find_config(tmp_path).name == "config.json"


def test_load_yaml_and_toml(tmp_path):
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("registries:\n  auth:\n    validation:\n      strict: true\n", encoding="utf-8")
    assert load_config(yaml_path) == {"registries": {"auth": {"validation": {"strict": True}}}}

    toml_path = tmp_path / "config.toml"
    toml_path.write_text("[registries.auth.validation]\nstrict = true\n", encoding="utf-8")
    assert load_config(toml_path) == {"registries": {"auth": {"validation": {"strict": True}}}}


def test_empty_yaml_is_empty_dict(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == {}


def test_config_get_dotted_keys(data_path):
    (data_path / "config.json").write_text('{"a": {"b": {"c": 1}}, "x": 2}', encoding="utf-8")
    assert config.get("a.b.c") == 1
    assert config.get("x") == 2
    assert config.get("a.missing", "fallback") == "fallback"
    assert config.get("x.y") is None


def test_config_without_file(data_path):
    assert config.get("anything", 5) == 5


def test_config_is_cached_until_reload(data_path):
    path = data_path / "config.json"
    path.write_text('{"x": 1}', encoding="utf-8")
    assert config.get("x") == 1
    path.write_text('{"x": 2}', encoding="utf-8")
    assert config.get("x") == 1
    config.reload()
    assert config.get("x") == 2


def test_broken_config_raises(data_path):
    (data_path / "config.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Read config failed"):
        config.get("x")


def test_raise_and_log(caplog):
    logger = log.get_logger()
    logger.addHandler(caplog.handler)
    try:
        with pytest.raises(ConfigurationError, match="bad value"):
            raise_and_log("bad value", ConfigurationError)
    finally:
        logger.removeHandler(caplog.handler)
    assert any(r.levelno == logging.ERROR and "bad value" in r.getMessage() for r in caplog.records)


def test_catch_and_log_reraises():
    with pytest.raises(KeyError):
        with catch_and_log("lookup"):
            raise KeyError("k")
