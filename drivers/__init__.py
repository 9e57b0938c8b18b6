from drivers.schema import ASYNC_TAG, DriverModel, FieldDescription, compile_schema, describe_schema, driver_field
from drivers.missing import MISSING_ID, MissingDriverSynthesizer, not_implemented
from drivers.registry import DriverRegistry
from drivers.hub import DriverHub, hub

__all__ = [
    "ASYNC_TAG",
    "MISSING_ID",
    "DriverHub",
    "DriverModel",
    "DriverRegistry",
    "FieldDescription",
    "MissingDriverSynthesizer",
    "compile_schema",
    "describe_schema",
    "driver_field",
    "hub",
    "not_implemented",
]
