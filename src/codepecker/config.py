"""
Configuration file support.

A YAML file can supply defaults for any ``scan`` option, so credentials
and the backend URL need not be repeated on every invocation:

    url: https://pecker.example.local:8081
    key: adfadfe343g
    lang: java
    severity: high
    get-source: true

Options given on the command line always win over the file.
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml


class ConfigFileError(ValueError):
    """Raised when a configuration file cannot be used"""
    pass


def load_config_file(path: Union[str, Path], allowed: Mapping[str, str]) -> Dict[str, Any]:
    """
    Load option defaults from a YAML file.

    Args:
        path: YAML file with a top-level mapping
        allowed: Accepted key (underscore form) to parameter name

    Returns:
        Mapping of parameter name to value, suitable for a click ``default_map``

    Raises:
        ConfigFileError: If the file is unreadable, not a mapping, or has unknown keys
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping")

    defaults = {}
    for key, value in data.items():
        name = allowed.get(str(key).replace("-", "_"))
        if name is None:
            raise ConfigFileError(f"Unknown option {key!r} in {path}")
        defaults[name] = value

    return defaults
