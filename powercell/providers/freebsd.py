"""FreeBSD battery provider — parses `acpiconf -i <unit>` output.

acpiconf exposes neither temperature nor cycle count, so both are
always None for these devices.
"""

import logging
import re
import shutil
import subprocess
import sys
from datetime import timedelta
from typing import Dict, List, Optional

from powercell.core.device import BatterySnapshot, SnapshotDevice
from powercell.core.errors import (
    DeviceNotFoundError, ParseError, PlatformNotSupportedError,
)
from powercell.core.provider import BatteryProvider
from powercell.core.types import DeviceId, ProviderType, State, Technology
from powercell.core import units

log = logging.getLogger(__name__)

_ACPICONF_TIMEOUT = 5
# Guard against looping forever if acpiconf keeps answering
_MAX_UNITS = 8

_VALUE_RE = re.compile(r"^\s*(-?\d+)\s*(mWh|mAh|mW|mA|mV|%)?\s*$")
_TIME_RE = re.compile(r"^\s*(\d+):(\d{2})\s*$")


def parse_acpiconf(output: str) -> Dict[str, str]:
    """Parse acpiconf output into {lowercased label: raw value}."""
    fields = {}
    for line in output.splitlines():
        label, sep, value = line.partition(":")
        if not sep:
            continue
        fields[label.strip().lower()] = value.strip()
    return fields


def _number(fields: Dict[str, str], label: str) -> Optional[tuple]:
    """(value, unit) for a numeric field, None when missing or "unknown"."""
    raw = fields.get(label)
    if raw is None:
        return None
    m = _VALUE_RE.match(raw)
    if not m:
        return None
    value = int(m.group(1))
    if value < 0:
        return None
    return value, m.group(2)


def _state(raw: Optional[str]) -> State:
    if raw is None:
        return State.UNKNOWN
    raw = raw.lower()
    if "discharging" in raw:
        return State.DISCHARGING
    if "charging" in raw:
        return State.CHARGING
    if "critical" in raw:
        return State.DISCHARGING
    # "high" means on AC, neither charging nor discharging
    return State.UNKNOWN


def _remaining_time(raw: Optional[str]) -> Optional[timedelta]:
    if raw is None:
        return None
    m = _TIME_RE.match(raw)
    if not m:
        return None
    return timedelta(hours=int(m.group(1)), minutes=int(m.group(2)))


def snapshot_from_acpiconf(fields: Dict[str, str]) -> BatterySnapshot:
    """Build a snapshot from parsed acpiconf fields.

    Capacities come either in mWh or in mAh; mAh values are converted
    with the design voltage.
    """
    if fields.get("state", "").lower() == "not present":
        raise DeviceNotFoundError("battery not present")

    remaining = _number(fields, "remaining capacity")
    last_full = _number(fields, "last full capacity")
    if remaining is None or last_full is None:
        raise ParseError("acpiconf output lacks remaining or last full capacity")

    design_voltage = _number(fields, "design voltage")
    present_voltage = _number(fields, "present voltage")
    voltage = (present_voltage or design_voltage or (0, "mV"))[0]

    def mwh(field: Optional[tuple]) -> int:
        if field is None:
            return 0
        value, unit = field
        if unit == "mAh":
            volts = (design_voltage or present_voltage or (0, "mV"))[0]
            return value * volts // 1000
        return value

    energy_full = mwh(last_full)
    percentage = float(remaining[0])

    rate = _number(fields, "present rate")
    energy_rate = 0
    if rate is not None:
        energy_rate = rate[0] * voltage // 1000 if rate[1] == "mA" else rate[0]

    state = _state(fields.get("state"))

    return BatterySnapshot(
        energy=int(energy_full * percentage / 100),
        energy_full=energy_full,
        energy_full_design=mwh(_number(fields, "design capacity")),
        energy_rate=energy_rate,
        voltage=voltage,
        state=state,
        technology=Technology.from_str(fields.get("type")),
        percentage=percentage,
        temperature=None,
        cycle_count=None,
        vendor=units.blank_to_none(fields.get("oem info")),
        model=units.blank_to_none(fields.get("model number")),
        serial_number=units.blank_to_none(fields.get("serial number")),
        time_to_empty=(_remaining_time(fields.get("remaining time"))
                       if state is State.DISCHARGING else None),
    )


def _run_acpiconf(unit: int) -> Optional[str]:
    """acpiconf output for a battery unit, or None when the unit doesn't exist."""
    try:
        result = subprocess.run(
            ["acpiconf", "-i", str(unit)],
            capture_output=True, text=True, timeout=_ACPICONF_TIMEOUT,
        )
    except FileNotFoundError as e:
        raise PlatformNotSupportedError("acpiconf is not available") from e
    except subprocess.TimeoutExpired as e:
        raise DeviceNotFoundError(f"acpiconf -i {unit} timed out") from e
    if result.returncode != 0:
        return None
    return result.stdout


class FreeBSDDevice(SnapshotDevice):
    """One ACPI battery unit."""

    def __init__(self, unit: int, snapshot: Optional[BatterySnapshot] = None):
        self._unit = unit
        if snapshot is None:
            snapshot = self._read()
        device_id = DeviceId(
            provider=ProviderType.FREEBSD,
            path=f"acpi_battery:{unit}",
            serial=snapshot.serial_number,
        )
        super().__init__(device_id, snapshot)

    def _read(self) -> BatterySnapshot:
        output = _run_acpiconf(self._unit)
        if output is None:
            raise DeviceNotFoundError(f"ACPI battery unit {self._unit} is gone")
        return snapshot_from_acpiconf(parse_acpiconf(output))


class FreeBSDProvider(BatteryProvider):
    """Battery provider for FreeBSD."""

    @property
    def name(self) -> str:
        return "acpiconf"

    @property
    def priority(self) -> int:
        return 10

    def is_supported(self) -> bool:
        return sys.platform.startswith("freebsd") and shutil.which("acpiconf") is not None

    def discover(self) -> List[FreeBSDDevice]:
        results = []
        for unit in range(_MAX_UNITS):
            try:
                output = _run_acpiconf(unit)
            except PlatformNotSupportedError:
                return results
            if output is None:
                break
            try:
                snapshot = snapshot_from_acpiconf(parse_acpiconf(output))
            except DeviceNotFoundError:
                # Empty battery bay; later units may still be populated
                continue
            except ParseError:
                log.debug("Skipping unreadable ACPI battery unit %d", unit, exc_info=True)
                continue
            results.append(FreeBSDDevice(unit, snapshot=snapshot))
        return results
