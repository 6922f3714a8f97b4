"""Battery facade over a single platform device."""

from collections import OrderedDict
from datetime import timedelta
from enum import Enum
from typing import Any, List, Optional, Tuple

from powercell.core.device import BatteryDevice
from powercell.core.types import State, Technology


class Battery:
    """Instantaneous information about one battery.

    Every accessor forwards to the wrapped device and reflects its state
    at the moment of the call. Nothing is cached here: two calls in a row
    can return different values if the device was refreshed in between.

    Time estimates are instant values and may vary a lot from call to
    call; any smoothing is up to the caller.
    """

    __slots__ = ("_device",)

    def __init__(self, device: BatteryDevice):
        self._device = device

    @classmethod
    def from_device(cls, device: BatteryDevice) -> "Battery":
        return cls(device)

    def percentage(self) -> float:
        """Energy left, as a percentage between 0.0 and 100.0."""
        return self._device.percentage()

    def energy(self) -> int:
        """Energy currently available, in mWh."""
        return self._device.energy()

    def energy_full(self) -> int:
        """Energy when the battery is considered full, in mWh."""
        return self._device.energy_full()

    def energy_full_design(self) -> int:
        """Energy the battery was designed to hold when full, in mWh."""
        return self._device.energy_full_design()

    def energy_rate(self) -> int:
        """Power being drawn from or fed into the battery, in mW."""
        return self._device.energy_rate()

    def voltage(self) -> int:
        """Battery voltage, in mV."""
        return self._device.voltage()

    def capacity(self) -> float:
        """Health: full energy over design energy, 0.0..100.0 percent."""
        return self._device.capacity()

    def state(self) -> State:
        return self._device.state()

    def technology(self) -> Technology:
        """Battery chemistry. Always ``Technology.UNKNOWN`` on macOS."""
        return self._device.technology()

    def temperature(self) -> Optional[float]:
        """Temperature in Celsius. Always None on FreeBSD."""
        return self._device.temperature()

    def cycle_count(self) -> Optional[int]:
        """Number of charge/discharge cycles. Always None on FreeBSD."""
        return self._device.cycle_count()

    def vendor(self) -> Optional[str]:
        return self._device.vendor()

    def model(self) -> Optional[str]:
        return self._device.model()

    def serial_number(self) -> Optional[str]:
        return self._device.serial_number()

    def time_to_full(self) -> Optional[timedelta]:
        """Time until full. None unless the battery is charging."""
        return self._device.time_to_full()

    def time_to_empty(self) -> Optional[timedelta]:
        """Time until empty. None unless the battery is discharging."""
        return self._device.time_to_empty()

    # --- Diagnostics ---

    def debug_fields(self) -> List[Tuple[str, Any]]:
        """All accessor values as ordered ``(name, value)`` pairs.

        Each accessor is called exactly once. Absent values stay None.
        """
        return [
            # static info
            ("vendor", self.vendor()),
            ("model", self.model()),
            ("serial_number", self.serial_number()),
            ("technology", self.technology()),

            # common information
            ("state", self.state()),
            ("capacity", self.capacity()),
            ("temperature", self.temperature()),
            ("percentage", self.percentage()),
            ("cycle_count", self.cycle_count()),

            # energy stats
            ("energy", self.energy()),
            ("energy_full", self.energy_full()),
            ("energy_full_design", self.energy_full_design()),
            ("energy_rate", self.energy_rate()),
            ("voltage", self.voltage()),

            # charge stats
            ("time_to_full", self.time_to_full()),
            ("time_to_empty", self.time_to_empty()),
        ]

    def as_dict(self) -> "OrderedDict[str, Any]":
        """The diagnostic fields with JSON-friendly values.

        Enums become their display names and durations become seconds.
        """
        return OrderedDict((name, _plain(value)) for name, value in self.debug_fields())

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={_render(value)}" for name, value in self.debug_fields())
        return f"Battery({fields})"

    # --- Internal: used by the manager ---

    @property
    def device(self) -> BatteryDevice:
        """The wrapped device, for read-only use."""
        return self._device

    def device_for_update(self) -> BatteryDevice:
        """The wrapped device, handed out so it can be refreshed in place."""
        return self._device


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return str(value)
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    return value


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, timedelta):
        return str(value)
    return repr(value)
