"""Core value types for battery telemetry."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class State(Enum):
    """Charge state reported by the platform."""
    UNKNOWN = auto()
    CHARGING = auto()
    DISCHARGING = auto()
    EMPTY = auto()
    FULL = auto()

    @classmethod
    def from_str(cls, value: Optional[str]) -> "State":
        """Map a platform status string (sysfs, acpiconf, ...) to a State.

        Matching is case-insensitive. Anything not recognized, including
        the kernel's "Not charging", maps to UNKNOWN.
        """
        if not value:
            return cls.UNKNOWN
        return _STATE_NAMES.get(value.strip().lower(), cls.UNKNOWN)

    def __str__(self) -> str:
        return self.name.capitalize()


_STATE_NAMES = {
    "charging": State.CHARGING,
    "discharging": State.DISCHARGING,
    "empty": State.EMPTY,
    "full": State.FULL,
    "charged": State.FULL,
    "fully-charged": State.FULL,
}


class Technology(Enum):
    """Battery chemistry."""
    UNKNOWN = auto()
    LITHIUM_ION = auto()
    LEAD_ACID = auto()
    LITHIUM_POLYMER = auto()
    NICKEL_METAL_HYDRIDE = auto()
    NICKEL_CADMIUM = auto()
    NICKEL_ZINC = auto()
    LITHIUM_IRON_PHOSPHATE = auto()
    RECHARGEABLE_ALKALINE_MANGANESE = auto()

    @classmethod
    def from_str(cls, value: Optional[str]) -> "Technology":
        """Map a kernel abbreviation or long chemistry name to a Technology."""
        if not value:
            return cls.UNKNOWN
        return _TECHNOLOGY_NAMES.get(value.strip().lower(), cls.UNKNOWN)

    def __str__(self) -> str:
        return self.name.replace("_", " ").title().replace(" ", "")


_TECHNOLOGY_NAMES = {
    "li-ion": Technology.LITHIUM_ION,
    "lion": Technology.LITHIUM_ION,
    "li_ion": Technology.LITHIUM_ION,
    "lithium-ion": Technology.LITHIUM_ION,
    "lithium ion": Technology.LITHIUM_ION,
    "pb": Technology.LEAD_ACID,
    "pbac": Technology.LEAD_ACID,
    "lead-acid": Technology.LEAD_ACID,
    "lead acid": Technology.LEAD_ACID,
    "lip": Technology.LITHIUM_POLYMER,
    "lipo": Technology.LITHIUM_POLYMER,
    "li-poly": Technology.LITHIUM_POLYMER,
    "lithium-polymer": Technology.LITHIUM_POLYMER,
    "lithium polymer": Technology.LITHIUM_POLYMER,
    "nimh": Technology.NICKEL_METAL_HYDRIDE,
    "nickel metal hydride": Technology.NICKEL_METAL_HYDRIDE,
    "nicd": Technology.NICKEL_CADMIUM,
    "nickel cadmium": Technology.NICKEL_CADMIUM,
    "nizn": Technology.NICKEL_ZINC,
    "nickel zinc": Technology.NICKEL_ZINC,
    "life": Technology.LITHIUM_IRON_PHOSPHATE,
    "lifepo4": Technology.LITHIUM_IRON_PHOSPHATE,
    "lithium iron phosphate": Technology.LITHIUM_IRON_PHOSPHATE,
    "ram": Technology.RECHARGEABLE_ALKALINE_MANGANESE,
    "rechargeable alkaline manganese": Technology.RECHARGEABLE_ALKALINE_MANGANESE,
}


class ProviderType(Enum):
    """Where the battery data was obtained."""
    SYSFS = auto()
    UPOWER = auto()
    DARWIN = auto()
    FREEBSD = auto()


@dataclass(frozen=True)
class DeviceId:
    """Unique identifier for a battery across providers.

    UPower and sysfs usually see the same physical battery. When the serial
    number is known it identifies the pack regardless of which provider
    found it first. Otherwise both fall back to the kernel's power supply
    name (``BAT0``), which UPower reports as ``NativePath``.
    """
    provider: ProviderType
    path: str

    serial: Optional[str] = None
    native_name: Optional[str] = None

    @property
    def stable_key(self) -> str:
        if self.serial:
            return f"serial:{self.serial}"
        if self.native_name:
            return f"sysfs:{self.native_name}"
        return self.path
