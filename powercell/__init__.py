"""powercell — instantaneous battery telemetry behind one accessor interface."""

from typing import List, Optional

from powercell.core import (
    Battery,
    BatteryDevice,
    BatteryError,
    BatteryManager,
    DeviceNotFoundError,
    ParseError,
    PlatformNotSupportedError,
    State,
    Technology,
)

__version__ = "0.1.0"

__all__ = [
    "Battery",
    "BatteryDevice",
    "BatteryError",
    "BatteryManager",
    "DeviceNotFoundError",
    "ParseError",
    "PlatformNotSupportedError",
    "State",
    "Technology",
    "batteries",
]


def batteries(config: Optional[dict] = None) -> List[Battery]:
    """One-shot helper: every battery the built-in providers can see.

    The providers are closed before returning; each battery keeps its last
    reading.
    """
    with BatteryManager() as mgr:
        mgr.register_default_providers(config)
        return mgr.batteries()
