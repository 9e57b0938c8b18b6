"""
Driver registry.

A ``DriverRegistry`` holds the validated drivers of one extension point
(storage backends, auth strategies, ...) keyed by their ``id``.  Every driver
is validated against the registry's pydantic schema before it is stored, and
an optional 'missing' generator lets ``get`` hand out a placeholder driver for
unknown ids instead of failing.

Example::

    storage = DriverRegistry("storage", {
        "name":  str,
        "read":  (Callable[..., Any], driver_field(tags=["async"])),
    }, missing=lambda driver_id, make_error: {"name": f"Missing Driver: {driver_id}"})

    storage.add({"id": "s3", "name": "S3", "read": s3_read})
    storage.get("s3")      # the validated S3 driver
    storage.get("gcs")     # id 'missing', name 'Missing Driver: gcs'
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel

import services.logger as log
from services.error import (
    ConfigurationError,
    DriverNotFoundError,
    DuplicateIdError,
    raise_and_log,
)

from drivers.missing import (
    MISSING_ID,
    MissingDriverSynthesizer,
    build_overlay_template,
    empty_generator,
)
from drivers.schema import compile_schema, describe_schema, validate_value

l = log.get_logger()

EVENTS = ("add", "remove", "remove_all")


def _is_driver_batch(value: Any) -> bool:
    # a single driver may itself be iterable (mappings, models)
    return isinstance(value, Iterable) and not isinstance(value, (Mapping, BaseModel, str, bytes))


class DriverRegistry:
    """
    Named collection of schema-validated drivers.

    Listeners subscribe to ``"add"`` (called with the driver), ``"remove"``
    (called with the driver) and ``"remove_all"`` (called without arguments).
    """

    def __init__(
        self,
        driver_type: str,
        schema: Any = None,
        options: Mapping[str, Any] | None = None,
        missing: Callable[..., Any] | bool | None = None,
    ):
        # (type, schema, missing) form, without validation options
        if missing is None and (callable(options) or options is True):
            missing, options = options, None

        self.driver_type = driver_type
        self.schema: type[BaseModel] = compile_schema(schema)
        self.options: dict[str, Any] = dict(options or {})
        self.fn_overlay_template = build_overlay_template(describe_schema(self.schema))

        self._drivers: dict[str, BaseModel] = {}
        self._listeners: dict[str, list[Callable]] = {event: [] for event in EVENTS}
        self._missing: MissingDriverSynthesizer | None = None

        if missing is not None and missing is not False:
            self.configure_missing(missing)

    # ------------------------------------------------------------------
    # 'missing' driver
    # ------------------------------------------------------------------

    @property
    def missing(self) -> MissingDriverSynthesizer | None:
        """The synthesizer producing validated 'missing' drivers, if configured."""
        return self._missing

    @missing.setter
    def missing(self, generator: Callable[..., Any] | bool) -> None:
        self.configure_missing(generator)

    @property
    def has_missing(self) -> bool:
        return self._missing is not None

    def configure_missing(self, generator: Callable[..., Any] | bool) -> MissingDriverSynthesizer:
        """Configure the 'missing' driver generator.

        Args:
            generator: ``generator(requested_id, make_error) -> dict | None``
                       (or ``generator(requested_id)``), or ``True`` for a
                       generator returning no fields.

        Raises:
            ConfigurationError: if *generator* is neither callable nor ``True``,
                if a driver with id ``"missing"`` is already registered, or if
                a generator was configured before.
        """
        if not callable(generator) and generator is not True:
            raise_and_log("Configured 'missing' driver must be a function or 'True'", ConfigurationError)
        if self.exists(MISSING_ID):
            raise_and_log(
                "Cannot configure a default 'missing' driver when a driver with that id has already been added",
                ConfigurationError,
            )
        if self._missing is not None:
            raise_and_log(f"A 'missing' driver is already configured for {self.driver_type} drivers", ConfigurationError)

        if generator is True:
            generator = empty_generator

        self._missing = MissingDriverSynthesizer(generator, self.fn_overlay_template, self.validate)
        l.info(f"Configured '{MISSING_ID}' driver for {self.driver_type} drivers")
        return self._missing

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def before_validate(self, driver: Any) -> Any:
        """Called before validation; a non-empty return value is validated
        instead of *driver*."""

    def after_validate(self, driver: BaseModel) -> None:
        """Called after successful validation; the return value is ignored."""

    def validate(self, driver: Any) -> BaseModel:
        """Validate *driver* in a before/after sandwich and return the result."""
        driver = validate_value(self.before_validate(driver) or driver, self.schema, self.options)
        self.after_validate(driver)
        return driver

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, event: str, handler: Callable) -> None:
        if event not in self._listeners:
            raise_and_log(f"Unknown registry event '{event}' (expected one of {', '.join(EVENTS)})", ConfigurationError)
        self._listeners[event].append(handler)
        l.debug(f"Subscribed {getattr(handler, '__name__', handler)!s} to {self.driver_type} '{event}'")

    def unsubscribe(self, event: str, handler: Callable) -> None:
        if event not in self._listeners:
            raise_and_log(f"Unknown registry event '{event}' (expected one of {', '.join(EVENTS)})", ConfigurationError)
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def _emit(self, event: str, *args) -> None:
        for handler in list(self._listeners[event]):
            handler(*args)

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def add(self, driver: Any) -> BaseModel:
        """Validate *driver* and add it to the registry.

        Raises:
            DriverValidationError: if the driver does not match the schema.
            DuplicateIdError: if the id is taken, or is ``"missing"`` while a
                'missing' generator is configured.
        """
        driver = self.validate(driver)

        if self._missing is not None and driver.id == MISSING_ID:
            raise_and_log(
                f"A driver with id '{MISSING_ID}' cannot be registered when the registry already has a default "
                f"'{MISSING_ID}' driver. This should be done when the registry is created.",
                DuplicateIdError,
            )
        if self.exists(driver.id):
            raise_and_log(f"A driver is already registered with id {driver.id}", DuplicateIdError)

        self._drivers[driver.id] = driver
        l.debug(f"Added {self.driver_type} driver: {driver.id}")

        self._emit("add", driver)
        return driver

    def add_all(self, *drivers: Any) -> list[BaseModel]:
        """Add every driver in order; returns the validated drivers.

        Accepts either one iterable of drivers (list, tuple, generator, ...) or
        the drivers as arguments.  Drivers added before a failing one stay
        registered.
        """
        if len(drivers) == 1 and _is_driver_batch(drivers[0]):
            drivers = drivers[0]
        return [self.add(d) for d in drivers]

    def exists(self, driver_id: str) -> bool:
        return driver_id in self._drivers

    def get(self, driver_id: str | None = None, allow_null: bool = False):
        """Return a driver by its id.

        Without an id, returns a shallow copy of ``{id: driver}``.  For an
        unknown id:

        - with a 'missing' generator configured, the synthesized driver;
        - otherwise, if *allow_null* is false, raises ``DriverNotFoundError``;
        - otherwise ``None``.
        """
        if driver_id is None:
            return dict(self._drivers)

        if not self.exists(driver_id):
            if self._missing is not None:
                return self._missing(driver_id)
            if not allow_null:
                raise_and_log(
                    f"No {self.driver_type} driver registered with id \"{driver_id}\" "
                    f"and no default '{MISSING_ID}' driver was configured.",
                    DriverNotFoundError,
                )

        return self._drivers.get(driver_id)

    def keys(self) -> list[str]:
        return list(self._drivers)

    def all(self) -> list[BaseModel]:
        return list(self._drivers.values())

    def remove(self, driver_id: str) -> None:
        """Remove the driver with *driver_id*, if present."""
        if driver_id == MISSING_ID:
            raise_and_log(f"Cannot remove the configured default '{MISSING_ID}' driver", ConfigurationError)

        if self.exists(driver_id):
            self._emit("remove", self._drivers[driver_id])
            del self._drivers[driver_id]
            l.debug(f"Removed {self.driver_type} driver: {driver_id}")

    def remove_all(self) -> None:
        self._drivers = {}
        l.debug(f"Removed all {self.driver_type} drivers")
        self._emit("remove_all")

    def __len__(self) -> int:
        return len(self._drivers)

    def __contains__(self, driver_id: object) -> bool:
        return driver_id in self._drivers
