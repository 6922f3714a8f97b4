"""Platform device capability interface.

A ``BatteryDevice`` is the per-OS collaborator wrapped by ``Battery``.
Concrete devices keep one snapshot of the OS data and replace it on
``refresh()``; accessors only read the current snapshot and never raise.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from powercell.core.types import DeviceId, State, Technology
from powercell.core import units


class BatteryDevice(ABC):
    """The capability set a platform device must implement."""

    @property
    def device_id(self) -> Optional[DeviceId]:
        """Identity used by the manager for deduplication, if known."""
        return None

    def refresh(self) -> None:
        """Re-read the OS source in place.

        Raises a ``BatteryError`` subclass when the source can't be read;
        the previous data must stay intact in that case.
        """

    @abstractmethod
    def percentage(self) -> float:
        ...

    @abstractmethod
    def energy(self) -> int:
        ...

    @abstractmethod
    def energy_full(self) -> int:
        ...

    @abstractmethod
    def energy_full_design(self) -> int:
        ...

    @abstractmethod
    def energy_rate(self) -> int:
        ...

    @abstractmethod
    def voltage(self) -> int:
        ...

    @abstractmethod
    def capacity(self) -> float:
        ...

    @abstractmethod
    def state(self) -> State:
        ...

    @abstractmethod
    def technology(self) -> Technology:
        ...

    @abstractmethod
    def temperature(self) -> Optional[float]:
        ...

    @abstractmethod
    def cycle_count(self) -> Optional[int]:
        ...

    @abstractmethod
    def vendor(self) -> Optional[str]:
        ...

    @abstractmethod
    def model(self) -> Optional[str]:
        ...

    @abstractmethod
    def serial_number(self) -> Optional[str]:
        ...

    @abstractmethod
    def time_to_full(self) -> Optional[timedelta]:
        ...

    @abstractmethod
    def time_to_empty(self) -> Optional[timedelta]:
        ...


@dataclass(frozen=True)
class BatterySnapshot:
    """Raw values read from the OS in public units (mWh, mW, mV).

    ``percentage`` and the time estimates are optional: when the source
    does not report them they are derived from the energy figures.
    """
    energy: int = 0
    energy_full: int = 0
    energy_full_design: int = 0
    energy_rate: int = 0
    voltage: int = 0
    state: State = State.UNKNOWN
    technology: Technology = Technology.UNKNOWN
    percentage: Optional[float] = None
    temperature: Optional[float] = None
    cycle_count: Optional[int] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    time_to_full: Optional[timedelta] = None
    time_to_empty: Optional[timedelta] = None


class SnapshotDevice(BatteryDevice):
    """Base for devices backed by a ``BatterySnapshot``.

    Subclasses implement ``_read()``; this class applies the normalization
    every platform shares (clamping, state refinement, time gating).
    """

    def __init__(self, device_id: DeviceId, snapshot: Optional[BatterySnapshot] = None):
        self._device_id = device_id
        self._snapshot = snapshot if snapshot is not None else self._read()

    @abstractmethod
    def _read(self) -> BatterySnapshot:
        """Query the OS and return a fresh snapshot, or raise BatteryError."""
        ...

    @property
    def device_id(self) -> DeviceId:
        return self._device_id

    @property
    def snapshot(self) -> BatterySnapshot:
        return self._snapshot

    def refresh(self) -> None:
        self._snapshot = self._read()

    def adopt(self, other: "SnapshotDevice") -> None:
        """Take over the reading of a freshly discovered device for the same battery."""
        self._snapshot = other.snapshot

    def percentage(self) -> float:
        snap = self._snapshot
        if snap.percentage is not None:
            return units.clamp_percentage(snap.percentage)
        derived = units.percentage_of(snap.energy, snap.energy_full)
        return 0.0 if derived is None else derived

    def energy(self) -> int:
        return self._snapshot.energy

    def energy_full(self) -> int:
        return self._snapshot.energy_full

    def energy_full_design(self) -> int:
        return self._snapshot.energy_full_design

    def energy_rate(self) -> int:
        return self._snapshot.energy_rate

    def voltage(self) -> int:
        return self._snapshot.voltage

    def capacity(self) -> float:
        return units.capacity_of(self._snapshot.energy_full, self._snapshot.energy_full_design)

    def state(self) -> State:
        snap = self._snapshot
        if snap.state is not State.UNKNOWN:
            return snap.state
        if self.percentage() >= 100.0:
            return State.FULL
        if snap.energy == 0 and snap.energy_full > 0:
            return State.EMPTY
        return State.UNKNOWN

    def technology(self) -> Technology:
        return self._snapshot.technology

    def temperature(self) -> Optional[float]:
        return self._snapshot.temperature

    def cycle_count(self) -> Optional[int]:
        return self._snapshot.cycle_count

    def vendor(self) -> Optional[str]:
        return self._snapshot.vendor

    def model(self) -> Optional[str]:
        return self._snapshot.model

    def serial_number(self) -> Optional[str]:
        return self._snapshot.serial_number

    def time_to_full(self) -> Optional[timedelta]:
        if self.state() is not State.CHARGING:
            return None
        snap = self._snapshot
        if snap.time_to_full is not None:
            return snap.time_to_full
        return units.estimate_time_to_full(snap.energy, snap.energy_full, snap.energy_rate)

    def time_to_empty(self) -> Optional[timedelta]:
        if self.state() is not State.DISCHARGING:
            return None
        snap = self._snapshot
        if snap.time_to_empty is not None:
            return snap.time_to_empty
        return units.estimate_time_to_empty(snap.energy, snap.energy_rate)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._device_id.path!r})"
