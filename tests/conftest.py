"""Shared fixtures: in-memory devices and providers."""

from typing import Callable, List, Optional
from unittest.mock import MagicMock

import pytest

from powercell.core.device import BatterySnapshot, SnapshotDevice
from powercell.core.errors import DeviceNotFoundError
from powercell.core.provider import BatteryProvider
from powercell.core.types import DeviceId, ProviderType, State, Technology


class FakeDevice(SnapshotDevice):
    """SnapshotDevice whose next read comes from ``next_snapshot``."""

    def __init__(self, snapshot: BatterySnapshot, path: str = "fake:0",
                 provider: ProviderType = ProviderType.SYSFS):
        self.next_snapshot: Optional[BatterySnapshot] = snapshot
        self.reads = 0
        super().__init__(DeviceId(provider=provider, path=path, serial=snapshot.serial_number),
                         snapshot)

    def _read(self) -> BatterySnapshot:
        self.reads += 1
        if self.next_snapshot is None:
            raise DeviceNotFoundError("gone")
        return self.next_snapshot

class FakeProvider(BatteryProvider):
    def __init__(self, name: str, priority: int, snapshots: List[BatterySnapshot],
                 provider_type: ProviderType = ProviderType.SYSFS, hotplug: bool = False):
        self._name = name
        self._priority = priority
        self.snapshots = snapshots
        self.provider_type = provider_type
        self.hotplug = hotplug
        self.on_change: Optional[Callable[[], None]] = None
        self.closed = False
        self.refreshed = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    def is_supported(self) -> bool:
        return True

    def discover(self):
        return [
            FakeDevice(snap, path=f"{self._name}:{i}", provider=self.provider_type)
            for i, snap in enumerate(self.snapshots)
        ]

    def refresh(self, device) -> None:
        self.refreshed += 1
        device.refresh()

    def supports_hotplug(self) -> bool:
        return self.hotplug

    def start_watching(self, on_change: Callable[[], None]) -> None:
        self.on_change = on_change

    def stop_watching(self) -> None:
        self.on_change = None

    def close(self) -> None:
        self.closed = True


class FakeDBusException(Exception):
    pass


def upower_props(**overrides):
    """Property map of a UPower laptop battery, as ``GetAll`` returns it."""
    props = {
        "Type": 2,
        "PowerSupply": True,
        "IsPresent": True,
        "NativePath": "BAT0",
        "Percentage": 55.0,
        "Energy": 27.5,
        "EnergyFull": 50.0,
        "EnergyFullDesign": 57.0,
        "EnergyRate": 15.2,
        "Voltage": 12.1,
        "State": 1,
        "Technology": 1,
        "Temperature": 0.0,
        "ChargeCycles": -1,
        "Vendor": "SMP",
        "Model": "5B10W13930",
        "Serial": "1234",
        "TimeToFull": 1500,
        "TimeToEmpty": 0,
    }
    props.update(overrides)
    return props


def fake_dbus_module(objects):
    """A stand-in for the dbus module serving ``objects`` {path: props}."""
    dbus = MagicMock()
    dbus.exceptions.DBusException = FakeDBusException
    bus = dbus.SystemBus.return_value

    def get_object(bus_name, path):
        if path != "/org/freedesktop/UPower" and path not in objects:
            raise FakeDBusException(f"no object {path}")
        obj = MagicMock()
        obj.path = path
        return obj

    def interface(obj, iface):
        proxy = MagicMock()
        proxy.EnumerateDevices.return_value = list(objects)
        proxy.GetAll.side_effect = lambda _iface: objects[obj.path]
        return proxy

    bus.get_object.side_effect = get_object
    dbus.Interface.side_effect = interface
    return dbus


@pytest.fixture
def charging_snapshot():
    return BatterySnapshot(
        energy=27500,
        energy_full=50000,
        energy_full_design=57000,
        energy_rate=15000,
        voltage=12100,
        state=State.CHARGING,
        technology=Technology.LITHIUM_ION,
        percentage=55.0,
        temperature=31.5,
        cycle_count=120,
        vendor="ACME",
        model="X1",
        serial_number="1234",
    )
