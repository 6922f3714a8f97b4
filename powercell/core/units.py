"""Unit conversion and derived-value helpers shared by platform devices.

All public values are integers in milli-units (mWh, mW, mV) and floats
in percent. Platform sources report micro-units (sysfs), base units
(UPower: Wh, W, V) or milli-units already (macOS, FreeBSD).
"""

from datetime import timedelta
from typing import Optional


def clamp_percentage(value: float) -> float:
    """Clamp a percentage into the 0.0..100.0 range."""
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(100.0, float(value)))


def micro_to_milli(value: Optional[float]) -> Optional[int]:
    """Convert µWh/µW/µV to mWh/mW/mV."""
    if value is None:
        return None
    return int(abs(value) // 1000)


def base_to_milli(value: Optional[float]) -> Optional[int]:
    """Convert Wh/W/V to mWh/mW/mV."""
    if value is None:
        return None
    return int(round(abs(value) * 1000))


def charge_to_energy(charge_uah: Optional[float], voltage_uv: Optional[float]) -> Optional[int]:
    """Energy in mWh from a charge counter in µAh and a voltage in µV."""
    if charge_uah is None or voltage_uv is None:
        return None
    # µAh * µV = 1e-12 Wh -> 1e-9 mWh
    return int(abs(charge_uah) * abs(voltage_uv) // 1_000_000_000)


def percentage_of(part: int, whole: int) -> Optional[float]:
    """``part / whole`` as a clamped percentage, or None when whole is zero."""
    if not whole:
        return None
    return clamp_percentage(part / whole * 100.0)


def capacity_of(energy_full: int, energy_full_design: int) -> float:
    """Health ratio of a battery. 100.0 when the design energy is unknown."""
    ratio = percentage_of(energy_full, energy_full_design)
    return 100.0 if ratio is None else ratio


def hours_to_duration(hours: float) -> timedelta:
    return timedelta(seconds=round(hours * 3600))


def estimate_time_to_full(energy: int, energy_full: int, energy_rate: int) -> Optional[timedelta]:
    """Instantaneous estimate; None when the rate is zero."""
    if energy_rate <= 0:
        return None
    missing = max(energy_full - energy, 0)
    return hours_to_duration(missing / energy_rate)


def estimate_time_to_empty(energy: int, energy_rate: int) -> Optional[timedelta]:
    """Instantaneous estimate; None when the rate is zero."""
    if energy_rate <= 0:
        return None
    return hours_to_duration(energy / energy_rate)


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """OS tools often report missing identifiers as empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value or None
