# services/config.py

from pathlib import Path

import services.util as u
import services.logger as log
import services.config_io as config_io

l = log.get_logger()

_config_cache = None


def _load_config():
    """Load the config file from the data path into the in-memory cache."""
    global _config_cache

    if _config_cache is not None:
        return _config_cache

    config_path = config_io.find_config(Path(u.get_data_path()))
    if config_path is None:
        l.debug(f"No config file found in: {u.get_data_path()}, using defaults")
        _config_cache = {}
        return _config_cache

    try:
        _config_cache = config_io.load_config(config_path) or {}
    except Exception as e:
        raise RuntimeError(f"Read config failed: {config_path}, Error: {e}") from e
    l.debug(f"Loaded config from: {config_path}")
    return _config_cache


def reload():
    """Drop the cached config so the next ``get`` reads the file again."""
    global _config_cache
    _config_cache = None


def get(key: str, default=None):
    """
    Return the value of a config entry.

    Nested keys are separated by dots, e.g.:
        get("registries.storage.validation")

    :param key: Config key (dot-separated for nested entries)
    :param default: Returned when the key does not exist
    :return: The config value or the default
    """
    config = _load_config()

    keys = key.split(".")
    value = config
    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default  # missing key or broken path
    return value
