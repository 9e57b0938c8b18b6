"""
Driver hub.

Hosts expose their registries to other subsystems through one hub, keyed by
driver type (``"storage"``, ``"auth"``, ...).  Subsystems then add or look up
drivers without holding a reference to each registry.
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel

import services.config as config
import services.logger as log
from services.error import UnknownDriverTypeError, raise_and_log

from drivers.registry import DriverRegistry

l = log.get_logger()


class DriverHub:
    """Named slots of ``DriverRegistry`` instances."""

    def __init__(self):
        self._registries: dict[str, DriverRegistry] = {}

    def register(self, driver_type: str, registry: DriverRegistry) -> DriverHub:
        """Register *registry* under *driver_type*, replacing any previous one."""
        if driver_type in self._registries:
            l.warning(f"Replacing registry for driver type: {driver_type}")
        self._registries[driver_type] = registry
        l.info(f"Registered driver type: {driver_type}")
        return self

    def create(
        self,
        driver_type: str,
        schema: Any = None,
        missing: Callable[..., Any] | bool | None = None,
        options: dict[str, Any] | None = None,
    ) -> DriverRegistry:
        """Build a registry and register it under *driver_type*.

        Validation options default to the config entry
        ``registries.<driver_type>.validation``.
        """
        if options is None:
            options = config.get(f"registries.{driver_type}.validation")
        registry = DriverRegistry(driver_type, schema, options or {}, missing)
        self.register(driver_type, registry)
        return registry

    def registry(self, driver_type: str) -> DriverRegistry:
        if driver_type not in self._registries:
            raise_and_log(f"Invalid driver type: {driver_type}", UnknownDriverTypeError)
        return self._registries[driver_type]

    def all_registries(self) -> dict[str, DriverRegistry]:
        """Return a snapshot of ``{driver_type: registry}``."""
        return dict(self._registries)

    def driver(self, driver_type: str, driver: Any) -> BaseModel:
        return self.registry(driver_type).add(driver)

    def drivers(self, driver_type: str, drivers: list[Any]) -> list[BaseModel]:
        return self.registry(driver_type).add_all(drivers)


# Shared hub for the host application
hub = DriverHub()
