"""
Synthesis of the placeholder 'missing' driver.

When a registry has a 'missing' generator configured, ``get`` on an unknown id
returns a driver built from the generator's partial fields.  Every function
field the schema requires (or defaults) that the generator leaves out is
filled with a stand-in that fails loudly when called::

    Cannot call connect() - driver 'postgres' is missing
"""

from __future__ import annotations

import inspect
from functools import partial
from typing import Any, Callable, Mapping

import services.logger as log
from services.error import DriverNotImplementedError, catch_and_log

from drivers.schema import FieldDescription

MISSING_ID = "missing"

l = log.get_logger()

StandInFactory = Callable[[str], Callable[..., Any]]


def not_implemented(driver_id: str, fn_name: str) -> DriverNotImplementedError:
    """Build the error raised by a stand-in for *fn_name* on a missing driver."""
    return DriverNotImplementedError(f"Cannot call {fn_name}() - driver '{driver_id}' is missing")


def make_sync(fn_name: str) -> StandInFactory:
    def factory(driver_id: str) -> Callable[..., Any]:
        def stand_in(*args, **kwargs):
            raise not_implemented(driver_id, fn_name)

        stand_in.__name__ = stand_in.__qualname__ = fn_name
        return stand_in

    return factory


def make_async(fn_name: str) -> StandInFactory:
    def factory(driver_id: str) -> Callable[..., Any]:
        async def stand_in(*args, **kwargs):
            raise not_implemented(driver_id, fn_name)

        stand_in.__name__ = stand_in.__qualname__ = fn_name
        return stand_in

    return factory


def build_overlay_template(descriptions: Mapping[str, FieldDescription]) -> dict[str, StandInFactory]:
    """Map every function field that is defaulted or required (and not
    forbidden) to a factory producing its stand-in."""
    template: dict[str, StandInFactory] = {}
    for name, desc in descriptions.items():
        if not desc.is_function or desc.is_forbidden:
            continue
        if not (desc.has_default or desc.is_required):
            continue
        template[name] = make_async(name) if desc.is_async else make_sync(name)
    return template


def takes_error_factory(generator: Callable[..., Any]) -> bool:
    """Return True when *generator* accepts a second positional argument."""
    try:
        params = inspect.signature(generator).parameters.values()
    except (TypeError, ValueError):
        return True
    positional = 0
    for param in params:
        if param.kind is param.VAR_POSITIONAL:
            return True
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def empty_generator(requested_id: str, make_error: Callable[[str], Exception]) -> dict:
    """Generator used when 'missing' is configured as ``True``."""
    return {}


class MissingDriverSynthesizer:
    """Builds a validated 'missing' driver for a requested id.

    The generator is called as ``generator(requested_id, make_error)`` where
    ``make_error(fn_name)`` returns the same error the stand-ins raise, so a
    hand-written override can fail the same way.  Generators taking only the
    requested id are called without ``make_error``.  Fields the generator returns
    win over the stand-ins; ``id`` is always forced to ``"missing"``.
    """

    def __init__(
        self,
        generator: Callable[..., Mapping[str, Any] | None],
        overlay: Mapping[str, StandInFactory],
        validate: Callable[[Any], Any],
    ):
        self.generator = generator
        self._pass_make_error = takes_error_factory(generator)
        self._overlay = dict(overlay)
        self._validate = validate

    def build(self, requested_id: str = "") -> dict[str, Any]:
        """Return the unvalidated field set for *requested_id*."""
        with catch_and_log(f"missing driver generator for '{requested_id}'"):
            if self._pass_make_error:
                base = self.generator(requested_id, partial(not_implemented, requested_id))
            else:
                base = self.generator(requested_id)
        fields = dict(base or {})
        fields["id"] = MISSING_ID

        for name, make_fn in self._overlay.items():
            if name not in fields:
                fields[name] = make_fn(requested_id)
        return fields

    def __call__(self, requested_id: str = ""):
        l.info(f"Synthesizing '{MISSING_ID}' driver for requested id '{requested_id}'")
        return self._validate(self.build(requested_id))
