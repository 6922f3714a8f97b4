"""Battery provider implementations."""

from pathlib import Path
from typing import List, Optional

from powercell.core.provider import BatteryProvider
from powercell.providers.darwin import DarwinProvider
from powercell.providers.freebsd import FreeBSDProvider
from powercell.providers.sysfs import POWER_SUPPLY_DIR, SysfsProvider
from powercell.providers.upower import UPowerProvider

__all__ = [
    "DarwinProvider",
    "FreeBSDProvider",
    "SysfsProvider",
    "UPowerProvider",
    "default_providers",
]


def default_providers(config: Optional[dict] = None) -> List[BatteryProvider]:
    """Instantiate the built-in providers enabled in config."""
    config = config or {}
    enabled = config.get("providers", {})
    sysfs_root = config.get("sysfs", {}).get("root") or POWER_SUPPLY_DIR

    providers: List[BatteryProvider] = []
    if enabled.get("upower", True):
        providers.append(UPowerProvider())
    if enabled.get("sysfs", True):
        providers.append(SysfsProvider(Path(sysfs_root)))
    if enabled.get("darwin", True):
        providers.append(DarwinProvider())
    if enabled.get("freebsd", True):
        providers.append(FreeBSDProvider())
    return providers
