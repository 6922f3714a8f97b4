"""macOS battery provider — reads the AppleSmartBattery IOKit registry entry.

Polls `ioreg -r -a -c AppleSmartBattery`, which prints the registry as a
plist. IOKit doesn't report chemistry, so technology is always UNKNOWN.
"""

import logging
import plistlib
import shutil
import subprocess
import sys
from datetime import timedelta
from typing import Any, List, Mapping, Optional

from powercell.core.device import BatterySnapshot, SnapshotDevice
from powercell.core.errors import (
    DeviceNotFoundError, ParseError, PlatformNotSupportedError,
)
from powercell.core.provider import BatteryProvider
from powercell.core.types import DeviceId, ProviderType, State, Technology
from powercell.core import units

log = logging.getLogger(__name__)

_IOREG_CMD = ["ioreg", "-r", "-a", "-c", "AppleSmartBattery"]
_IOREG_TIMEOUT = 5

# AvgTimeToFull / AvgTimeToEmpty use this while still calculating
_TIME_UNKNOWN = 0xFFFF


def _signed(value: int) -> int:
    """ioreg prints negative 64-bit registers as huge unsigned integers."""
    if value >= 1 << 63:
        return value - (1 << 64)
    return value


def _minutes(value: Any) -> Optional[timedelta]:
    if value is None:
        return None
    minutes = int(value)
    if minutes <= 0 or minutes >= _TIME_UNKNOWN:
        return None
    return timedelta(minutes=minutes)


def _state(entry: Mapping[str, Any]) -> State:
    if entry.get("FullyCharged"):
        return State.FULL
    if entry.get("IsCharging"):
        return State.CHARGING
    if entry.get("ExternalConnected"):
        # On AC but not charging (charge limit, optimized charging)
        return State.UNKNOWN
    return State.DISCHARGING


def snapshot_from_ioreg(entry: Mapping[str, Any]) -> BatterySnapshot:
    """Build a snapshot from one AppleSmartBattery registry dictionary.

    Capacities are in mAh; Apple Silicon reports CurrentCapacity and
    MaxCapacity as percentages and puts the mAh values in the
    AppleRaw* keys instead.
    """
    try:
        voltage = int(entry["Voltage"])
        current_mah = int(entry.get("AppleRawCurrentCapacity", entry["CurrentCapacity"]))
        full_mah = int(entry.get("AppleRawMaxCapacity", entry["MaxCapacity"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"AppleSmartBattery entry is missing capacity data: {e}") from e

    design_mah = int(entry.get("DesignCapacity", 0))
    amperage = _signed(int(entry.get("InstantAmperage", entry.get("Amperage", 0))))
    temperature = entry.get("Temperature")
    cycles = entry.get("CycleCount")

    def mwh(mah: int) -> int:
        return mah * voltage // 1000

    return BatterySnapshot(
        energy=mwh(current_mah),
        energy_full=mwh(full_mah),
        energy_full_design=mwh(design_mah),
        energy_rate=abs(amperage) * voltage // 1000,
        voltage=voltage,
        state=_state(entry),
        technology=Technology.UNKNOWN,
        temperature=int(temperature) / 100.0 if temperature is not None else None,
        cycle_count=int(cycles) if cycles is not None else None,
        vendor=units.blank_to_none(entry.get("Manufacturer")),
        model=units.blank_to_none(entry.get("DeviceName")),
        serial_number=units.blank_to_none(entry.get("BatterySerialNumber") or entry.get("Serial")),
        time_to_full=_minutes(entry.get("AvgTimeToFull")),
        time_to_empty=_minutes(entry.get("AvgTimeToEmpty")),
    )


def _run_ioreg() -> List[Mapping[str, Any]]:
    try:
        result = subprocess.run(_IOREG_CMD, capture_output=True, timeout=_IOREG_TIMEOUT)
    except FileNotFoundError as e:
        raise PlatformNotSupportedError("ioreg is not available") from e
    except subprocess.TimeoutExpired as e:
        raise DeviceNotFoundError("ioreg timed out") from e

    if result.returncode != 0:
        raise DeviceNotFoundError(f"ioreg exited with status {result.returncode}")
    if not result.stdout.strip():
        # Desktop Mac: no AppleSmartBattery in the registry
        return []

    try:
        entries = plistlib.loads(result.stdout)
    except (plistlib.InvalidFileException, ValueError) as e:
        raise ParseError(f"Could not parse ioreg output: {e}") from e
    if isinstance(entries, dict):
        entries = [entries]
    return list(entries)


class DarwinDevice(SnapshotDevice):
    """The n-th AppleSmartBattery entry."""

    def __init__(self, index: int, snapshot: Optional[BatterySnapshot] = None):
        self._index = index
        if snapshot is None:
            snapshot = self._read()
        device_id = DeviceId(
            provider=ProviderType.DARWIN,
            path=f"AppleSmartBattery:{index}",
            serial=snapshot.serial_number,
        )
        super().__init__(device_id, snapshot)

    def _read(self) -> BatterySnapshot:
        entries = _run_ioreg()
        if self._index >= len(entries):
            raise DeviceNotFoundError(f"AppleSmartBattery {self._index} is gone")
        return snapshot_from_ioreg(entries[self._index])


class DarwinProvider(BatteryProvider):
    """Battery provider for macOS."""

    @property
    def name(self) -> str:
        return "IOKit"

    @property
    def priority(self) -> int:
        return 10

    def is_supported(self) -> bool:
        return sys.platform == "darwin" and shutil.which("ioreg") is not None

    def discover(self) -> List[DarwinDevice]:
        try:
            entries = _run_ioreg()
        except PlatformNotSupportedError:
            return []

        results = []
        for index, entry in enumerate(entries):
            try:
                results.append(DarwinDevice(index, snapshot=snapshot_from_ioreg(entry)))
            except ParseError:
                log.debug("Skipping unreadable AppleSmartBattery entry %d", index, exc_info=True)
        return results
