"""Tests for the driver hub and its config-driven options."""

import json

import pytest

import services.config as config
from drivers.hub import DriverHub
from drivers.registry import DriverRegistry
from services.error import DriverValidationError, UnknownDriverTypeError


@pytest.fixture
def data_path(tmp_path, monkeypatch):
    monkeypatch.setenv("DRIVERS_DATA_PATH", str(tmp_path))
    config.reload()
    yield tmp_path
    config.reload()


def test_register_and_lookup():
    hub = DriverHub()
    storage = DriverRegistry("storage", {"name": str})
    assert hub.register("storage", storage) is hub
    assert hub.registry("storage") is storage
    assert hub.all_registries() == {"storage": storage}


def test_unknown_driver_type():
    hub = DriverHub()
    with pytest.raises(UnknownDriverTypeError, match="Invalid driver type: auth"):
        hub.registry("auth")


def test_driver_and_drivers_shortcuts():
    hub = DriverHub()
    hub.register("storage", DriverRegistry("storage", {"name": str}))

    driver = hub.driver("storage", {"id": "s3", "name": "S3"})
    assert driver.id == "s3"
    drivers = hub.drivers("storage", [{"id": "gcs", "name": "GCS"}, {"id": "local", "name": "Local"}])
    assert [d.id for d in drivers] == ["gcs", "local"]
    assert hub.registry("storage").keys() == ["s3", "gcs", "local"]


def test_create_without_config(data_path):
    hub = DriverHub()
    registry = hub.create("storage", {"size": int}, missing=True)
    assert hub.registry("storage") is registry
    assert registry.options == {}
    assert registry.has_missing
    assert registry.add({"id": "a", "size": "3"}).size == 3


def test_create_reads_validation_options(data_path):
    (data_path / "config.json").write_text(
        json.dumps({"registries": {"storage": {"validation": {"strict": True}}}}),
        encoding="utf-8",
    )
    hub = DriverHub()
    registry = hub.create("storage", {"size": int})
    assert registry.options == {"strict": True}
    with pytest.raises(DriverValidationError):
        registry.add({"id": "a", "size": "3"})


def test_explicit_options_win_over_config(data_path):
    (data_path / "config.json").write_text(
        json.dumps({"registries": {"storage": {"validation": {"strict": True}}}}),
        encoding="utf-8",
    )
    registry = DriverHub().create("storage", {"size": int}, options={})
    assert registry.add({"id": "a", "size": "3"}).size == 3
