"""Core abstractions: value types, the device interface and the Battery facade."""

from powercell.core.types import (
    State,
    Technology,
    ProviderType,
    DeviceId,
)
from powercell.core.errors import (
    BatteryError,
    DeviceNotFoundError,
    PlatformNotSupportedError,
    ParseError,
)
from powercell.core.device import BatteryDevice, BatterySnapshot, SnapshotDevice
from powercell.core.battery import Battery
from powercell.core.provider import BatteryProvider
from powercell.core.manager import BatteryManager

__all__ = [
    "State",
    "Technology",
    "ProviderType",
    "DeviceId",
    "BatteryError",
    "DeviceNotFoundError",
    "PlatformNotSupportedError",
    "ParseError",
    "BatteryDevice",
    "BatterySnapshot",
    "SnapshotDevice",
    "Battery",
    "BatteryProvider",
    "BatteryManager",
]
