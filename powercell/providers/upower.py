"""UPower battery provider — reads system batteries via D-Bus.

UPower already smooths rates and computes time estimates, so this is the
preferred source on Linux desktops.
Priority: 10 (highest — preferred over raw sysfs).

Hotplug is left to the sysfs provider: dbus-python only delivers
``DeviceAdded``/``DeviceRemoved`` signals from inside a running GLib main
loop, while udev sees the same power_supply events without one.
"""

import logging
import posixpath
from datetime import timedelta
from typing import Any, List, Mapping, Optional

from powercell.core import units
from powercell.core.device import BatterySnapshot, SnapshotDevice
from powercell.core.errors import DeviceNotFoundError, PlatformNotSupportedError
from powercell.core.provider import BatteryProvider
from powercell.core.types import DeviceId, ProviderType, State, Technology

log = logging.getLogger(__name__)

# UPower device type constants
_UPOWER_TYPE_BATTERY = 2

# UPower state constants. Pending charge/discharge: no current is flowing
# yet, so the shared refinement decides.
_UPOWER_STATES = {
    1: State.CHARGING,
    2: State.DISCHARGING,
    3: State.EMPTY,
    4: State.FULL,
    5: State.UNKNOWN,  # pending charge
    6: State.UNKNOWN,  # pending discharge
}

_UPOWER_TECHNOLOGIES = {
    1: Technology.LITHIUM_ION,
    2: Technology.LITHIUM_POLYMER,
    3: Technology.LITHIUM_IRON_PHOSPHATE,
    4: Technology.LEAD_ACID,
    5: Technology.NICKEL_CADMIUM,
    6: Technology.NICKEL_METAL_HYDRIDE,
}

_IFACE_DEVICE = "org.freedesktop.UPower.Device"
_IFACE_PROPS = "org.freedesktop.DBus.Properties"
_IFACE_UPOWER = "org.freedesktop.UPower"
_UPOWER_PATH = "/org/freedesktop/UPower"
_UPOWER_BUS = "org.freedesktop.UPower"


def _try_import_dbus():
    """Import dbus lazily so the module is loadable even without dbus-python."""
    try:
        import dbus
        return dbus
    except ImportError:
        return None


def _seconds(value: Any) -> Optional[timedelta]:
    seconds = int(value or 0)
    if seconds <= 0:
        return None
    return timedelta(seconds=seconds)


def snapshot_from_properties(props: Mapping[str, Any]) -> BatterySnapshot:
    """Build a snapshot from an ``org.freedesktop.UPower.Device`` property map.

    UPower uses Wh, W and V. Zero temperature and non-positive cycle
    counts mean "not reported".
    """
    temperature = float(props.get("Temperature", 0.0) or 0.0)
    cycles = int(props.get("ChargeCycles", -1))

    return BatterySnapshot(
        energy=units.base_to_milli(float(props.get("Energy", 0.0))),
        energy_full=units.base_to_milli(float(props.get("EnergyFull", 0.0))),
        energy_full_design=units.base_to_milli(float(props.get("EnergyFullDesign", 0.0))),
        energy_rate=units.base_to_milli(float(props.get("EnergyRate", 0.0))),
        voltage=units.base_to_milli(float(props.get("Voltage", 0.0))),
        state=_UPOWER_STATES.get(int(props.get("State", 0)), State.UNKNOWN),
        technology=_UPOWER_TECHNOLOGIES.get(int(props.get("Technology", 0)), Technology.UNKNOWN),
        percentage=float(props.get("Percentage", 0.0)),
        temperature=temperature if temperature else None,
        cycle_count=cycles if cycles > 0 else None,
        vendor=units.blank_to_none(str(props.get("Vendor", ""))),
        model=units.blank_to_none(str(props.get("Model", ""))),
        serial_number=units.blank_to_none(str(props.get("Serial", ""))),
        time_to_full=_seconds(props.get("TimeToFull")),
        time_to_empty=_seconds(props.get("TimeToEmpty")),
    )


def _is_system_battery(props: Mapping[str, Any]) -> bool:
    return (int(props.get("Type", 0)) == _UPOWER_TYPE_BATTERY
            and bool(props.get("PowerSupply", False))
            and bool(props.get("IsPresent", False)))


def _native_name(props: Mapping[str, Any]) -> Optional[str]:
    """Kernel power supply name from ``NativePath`` (``BAT0`` or a full sysfs path)."""
    native = str(props.get("NativePath", "") or "").rstrip("/")
    return units.blank_to_none(posixpath.basename(native))


class UPowerDevice(SnapshotDevice):
    """A battery exposed as a UPower D-Bus object."""

    def __init__(self, bus, dbus, object_path: str, props: Optional[Mapping[str, Any]] = None):
        self._bus = bus
        self._dbus = dbus
        self._object_path = object_path
        if props is None:
            props = self._get_all()
        snapshot = snapshot_from_properties(props)
        device_id = DeviceId(
            provider=ProviderType.UPOWER,
            path=object_path,
            serial=snapshot.serial_number,
            native_name=_native_name(props),
        )
        super().__init__(device_id, snapshot)

    def _get_all(self) -> Mapping[str, Any]:
        try:
            dev_obj = self._bus.get_object(_UPOWER_BUS, self._object_path)
            props = self._dbus.Interface(dev_obj, _IFACE_PROPS)
            return props.GetAll(_IFACE_DEVICE)
        except self._dbus.exceptions.DBusException as e:
            raise DeviceNotFoundError(f"UPower device {self._object_path}: {e}") from e

    def _read(self) -> BatterySnapshot:
        return snapshot_from_properties(self._get_all())


class UPowerProvider(BatteryProvider):
    """Battery provider using the UPower D-Bus daemon."""

    @property
    def name(self) -> str:
        return "UPower"

    @property
    def priority(self) -> int:
        return 10

    def __init__(self):
        self._bus = None

    def _get_bus(self):
        if self._bus is None:
            dbus = _try_import_dbus()
            if dbus is None:
                return None
            try:
                self._bus = dbus.SystemBus()
            except dbus.exceptions.DBusException:
                log.debug("Could not connect to system D-Bus")
                return None
        return self._bus

    def is_supported(self) -> bool:
        return self._get_bus() is not None

    def discover(self) -> List[UPowerDevice]:
        dbus = _try_import_dbus()
        bus = self._get_bus()
        if dbus is None or bus is None:
            return []

        try:
            upower_obj = bus.get_object(_UPOWER_BUS, _UPOWER_PATH)
            upower_iface = dbus.Interface(upower_obj, _IFACE_UPOWER)
            device_paths = upower_iface.EnumerateDevices()
        except dbus.exceptions.DBusException:
            log.debug("Failed to enumerate UPower devices")
            return []

        results = []
        for dev_path in device_paths:
            try:
                dev_obj = bus.get_object(_UPOWER_BUS, dev_path)
                props = dbus.Interface(dev_obj, _IFACE_PROPS).GetAll(_IFACE_DEVICE)
                if not _is_system_battery(props):
                    continue
                results.append(UPowerDevice(bus, dbus, str(dev_path), props=props))
            except Exception:
                log.debug("Failed to read UPower device %s", dev_path, exc_info=True)

        return results

    def refresh(self, device: UPowerDevice) -> None:
        if self._get_bus() is None:
            raise PlatformNotSupportedError("system D-Bus is not available")
        device.refresh()

    def close(self) -> None:
        self._bus = None
