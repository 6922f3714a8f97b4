"""Abstract base class for battery providers."""

from abc import ABC, abstractmethod
from typing import List, Callable

from powercell.core.device import BatteryDevice


class BatteryProvider(ABC):
    """A source of battery devices on this host.

    Implementations:
    - UPowerProvider: D-Bus UPower daemon (Linux)
    - SysfsProvider: /sys/class/power_supply/ (Linux)
    - DarwinProvider: ioreg AppleSmartBattery (macOS)
    - FreeBSDProvider: acpiconf (FreeBSD)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name (e.g., 'UPower')."""
        ...

    @property
    @abstractmethod
    def priority(self) -> int:
        """Lower = preferred. UPower=10, sysfs=20."""
        ...

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether the provider can run on this host at all."""
        ...

    @abstractmethod
    def discover(self) -> List[BatteryDevice]:
        """Scan for batteries and return one freshly read device per battery.

        Devices that fail to read are logged and skipped.
        """
        ...

    def refresh(self, device: BatteryDevice) -> None:
        """Re-read a device this provider discovered.

        Raises BatteryError if the battery can no longer be read.
        """
        device.refresh()

    def supports_hotplug(self) -> bool:
        """Whether this provider can emit hotplug callbacks."""
        return False

    def start_watching(self, on_change: Callable[[], None]) -> None:
        """Start monitoring for battery add/remove events.

        Args:
            on_change: Callback when batteries change.
        """
        pass

    def stop_watching(self) -> None:
        """Stop monitoring for battery events."""
        pass

    def close(self) -> None:
        """Clean up resources."""
        pass
