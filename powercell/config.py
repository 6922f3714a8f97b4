"""Configuration management for powercell."""

import copy
import json
import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

# Default configuration values
DEFAULTS = {
    # Which battery sources to try
    "providers": {
        "upower": True,
        "sysfs": True,
        "darwin": True,
        "freebsd": True,
    },

    "sysfs": {
        "root": "/sys/class/power_supply",
    },

    # CLI --watch behaviour
    "watch": {
        "interval_seconds": 30,
    },

    "logging": {
        "level": "WARNING",
    },
}


def get_config_dir() -> Path:
    """Get the configuration directory (not created)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "powercell"
    return Path.home() / ".config" / "powercell"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config() -> dict:
    """Load configuration from file, merging with defaults."""
    config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                user_config = json.load(f)
            if not isinstance(user_config, dict):
                raise ValueError("top-level value must be an object")
            return _deep_merge(DEFAULTS, user_config)
        except (ValueError, OSError) as e:
            log.warning("Could not load config from %s: %s", config_path, e)

    return _deep_merge(DEFAULTS, {})
