"""sysfs battery provider — reads /sys/class/power_supply/ for system batteries.

Works without any daemon running. Peripheral batteries (mice, headsets)
report ``scope=Device`` and are skipped.
Priority: 20 (after UPower).
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from powercell.core import units
from powercell.core.device import BatterySnapshot, SnapshotDevice
from powercell.core.errors import DeviceNotFoundError, ParseError
from powercell.core.provider import BatteryProvider
from powercell.core.types import DeviceId, ProviderType, State, Technology

log = logging.getLogger(__name__)

POWER_SUPPLY_DIR = Path("/sys/class/power_supply")


def _read_sysfs(path: Path) -> Optional[str]:
    """Read a sysfs attribute file, returning stripped content or None."""
    try:
        return path.read_text().strip()
    except (OSError, UnicodeDecodeError):
        return None


def _parse_uevent(ps_dir: Path) -> Dict[str, str]:
    """Parse the uevent file into {ATTRIBUTE: value} without the prefix."""
    raw = _read_sysfs(ps_dir / "uevent")
    if not raw:
        return {}
    data = {}
    for line in raw.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        data[key.strip().replace("POWER_SUPPLY_", "", 1).lower()] = value.strip()
    return data


class _Attributes:
    """Attribute lookup preferring uevent, falling back to individual files."""

    def __init__(self, ps_dir: Path):
        self._dir = ps_dir
        self._uevent = _parse_uevent(ps_dir)

    def text(self, name: str) -> Optional[str]:
        value = self._uevent.get(name)
        if value is None:
            value = _read_sysfs(self._dir / name)
        return units.blank_to_none(value)

    def number(self, *names: str) -> Optional[float]:
        for name in names:
            raw = self.text(name)
            if raw is None:
                continue
            try:
                return float(raw)
            except ValueError:
                log.debug("Non-numeric value in %s/%s: %r", self._dir, name, raw)
        return None


def _is_system_battery(ps_dir: Path) -> bool:
    if _read_sysfs(ps_dir / "type") != "Battery":
        return False
    # Device-scoped batteries belong to peripherals, not to this machine
    return _read_sysfs(ps_dir / "scope") != "Device"


def read_snapshot(ps_dir: Path) -> BatterySnapshot:
    """Read one power_supply directory into a snapshot.

    Raises DeviceNotFoundError if the directory is gone and ParseError if
    neither energy nor capacity can be determined.
    """
    if not ps_dir.is_dir():
        raise DeviceNotFoundError(f"{ps_dir} no longer exists")

    attrs = _Attributes(ps_dir)

    voltage_uv = attrs.number("voltage_now", "voltage_avg")
    design_voltage_uv = attrs.number("voltage_min_design", "voltage_max_design") or voltage_uv

    energy = units.micro_to_milli(attrs.number("energy_now", "energy_avg"))
    if energy is None:
        energy = units.charge_to_energy(attrs.number("charge_now", "charge_avg"), design_voltage_uv)

    energy_full = units.micro_to_milli(attrs.number("energy_full"))
    if energy_full is None:
        energy_full = units.charge_to_energy(attrs.number("charge_full"), design_voltage_uv)

    energy_full_design = units.micro_to_milli(attrs.number("energy_full_design"))
    if energy_full_design is None:
        energy_full_design = units.charge_to_energy(
            attrs.number("charge_full_design"), design_voltage_uv)

    energy_rate = units.micro_to_milli(attrs.number("power_now", "power_avg"))
    if energy_rate is None:
        current_ua = attrs.number("current_now", "current_avg")
        if current_ua is not None and voltage_uv is not None:
            # µA * µV = pW
            energy_rate = int(abs(current_ua) * voltage_uv // 1_000_000_000)

    percentage = attrs.number("capacity")
    if energy is None and percentage is None:
        raise ParseError(f"{ps_dir} reports neither energy nor capacity")

    if energy is None and energy_full:
        energy = int(energy_full * percentage / 100)

    temperature = attrs.number("temp")
    cycle_count = attrs.number("cycle_count")

    return BatterySnapshot(
        energy=energy or 0,
        energy_full=energy_full or 0,
        energy_full_design=energy_full_design or 0,
        energy_rate=energy_rate or 0,
        voltage=units.micro_to_milli(voltage_uv) or 0,
        state=State.from_str(attrs.text("status")),
        technology=Technology.from_str(attrs.text("technology")),
        percentage=percentage,
        # sysfs reports tenths of a degree
        temperature=temperature / 10.0 if temperature is not None else None,
        cycle_count=int(cycle_count) if cycle_count is not None else None,
        vendor=attrs.text("manufacturer"),
        model=attrs.text("model_name"),
        serial_number=attrs.text("serial_number"),
    )


class SysfsDevice(SnapshotDevice):
    """A battery backed by one /sys/class/power_supply/<name> directory."""

    def __init__(self, ps_dir: Path, snapshot: Optional[BatterySnapshot] = None):
        self._dir = Path(ps_dir)
        if snapshot is None:
            snapshot = read_snapshot(self._dir)
        device_id = DeviceId(
            provider=ProviderType.SYSFS,
            path=str(self._dir),
            serial=snapshot.serial_number,
            native_name=self._dir.name,
        )
        super().__init__(device_id, snapshot)

    @property
    def path(self) -> Path:
        return self._dir

    def _read(self) -> BatterySnapshot:
        return read_snapshot(self._dir)


class SysfsProvider(BatteryProvider):
    """Battery provider reading /sys/class/power_supply/*/ for system batteries."""

    def __init__(self, root: Path = POWER_SUPPLY_DIR):
        self._root = Path(root)
        self._watch_callback: Optional[Callable[[], None]] = None
        self._watch_thread: Optional[threading.Thread] = None
        self._watching = False

    @property
    def name(self) -> str:
        return "sysfs"

    @property
    def priority(self) -> int:
        return 20

    def is_supported(self) -> bool:
        return self._root.is_dir()

    def discover(self) -> List[SysfsDevice]:
        if not self._root.is_dir():
            return []

        results = []
        for entry in sorted(self._root.iterdir()):
            if not entry.is_dir() or not _is_system_battery(entry):
                continue
            try:
                results.append(SysfsDevice(entry))
            except Exception:
                log.debug("Failed to read sysfs battery %s", entry, exc_info=True)

        return results

    def supports_hotplug(self) -> bool:
        try:
            import pyudev  # noqa: F401
            return True
        except ImportError:
            return False

    def start_watching(self, on_change: Callable[[], None]) -> None:
        try:
            import pyudev
        except ImportError:
            return

        self._watch_callback = on_change
        self._watching = True

        def _watch():
            context = pyudev.Context()
            monitor = pyudev.Monitor.from_netlink(context)
            monitor.filter_by(subsystem="power_supply")
            # poll() with a timeout so stop_watching() is noticed
            while self._watching:
                device = monitor.poll(timeout=1.0)
                if device is None or device.action not in ("add", "remove"):
                    continue
                if self._watch_callback:
                    self._watch_callback()

        self._watch_thread = threading.Thread(target=_watch, name="powercell-udev", daemon=True)
        self._watch_thread.start()

    def stop_watching(self) -> None:
        self._watching = False
        self._watch_callback = None

    def close(self) -> None:
        self.stop_watching()
        if self._watch_thread and self._watch_thread.is_alive():
            self._watch_thread.join(timeout=2)
        self._watch_thread = None
