"""Errors raised by platform devices and providers.

The Battery facade never raises these itself; they come out of
``BatteryDevice.refresh()`` and provider discovery.
"""


class BatteryError(Exception):
    """Base class for all powercell errors."""


class DeviceNotFoundError(BatteryError):
    """The OS no longer exposes the battery (unplugged, removed, renamed)."""


class PlatformNotSupportedError(BatteryError):
    """The provider cannot run on this host."""


class ParseError(BatteryError):
    """A driver-reported value could not be parsed into a required field."""
