from contextlib import contextmanager
import services.logger as log

# Initialize logger
l = log.get_logger()


class RegistryError(Exception):
    """Base class for every error raised by a driver registry."""


class ConfigurationError(RegistryError, ValueError):
    """Invalid 'missing' generator assignment or registry wiring."""


class SchemaError(RegistryError, TypeError):
    """A driver schema could not be compiled."""


class DriverValidationError(RegistryError, ValueError):
    """A driver failed schema validation.

    ``field`` and ``reason`` describe the first offending entry; ``errors``
    holds every error reported by the schema engine.
    """

    def __init__(self, message: str, field: str = "", reason: str = "", errors: list | None = None):
        super().__init__(message)
        self.field = field
        self.reason = reason
        self.errors = errors or []


class DuplicateIdError(RegistryError, ValueError):
    """A driver id is already taken."""


class DriverNotFoundError(RegistryError, LookupError):
    """No driver registered under the requested id (bad request)."""


class UnknownDriverTypeError(RegistryError, LookupError):
    """No registry is registered under the requested driver type."""


class DriverNotImplementedError(RegistryError, NotImplementedError):
    """Raised by the stand-in functions of a synthesized 'missing' driver."""


def raise_and_log(message: str, exception_type: type = Exception):
    """
    Log an error and then raise the specified exception.

    :param message: Error message to log and include in the exception.
    :param exception_type: Type of exception to raise (default: Exception).
    """
    l.error(f"Raising exception: {message}")
    raise exception_type(message)


@contextmanager
def catch_and_log(context_info: str = ""):
    """
    Context manager that logs an exception with some context and re-raises it.

    :param context_info: Optional context info to include in the log.
    """
    try:
        yield
    except Exception as e:
        msg = f"Exception caught in context '{context_info}': {e}"
        l.error(msg)
        raise
