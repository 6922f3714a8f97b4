"""Tests for the UPower provider — D-Bus is replaced by a MagicMock module."""

from datetime import timedelta

import pytest

from powercell.core.errors import DeviceNotFoundError
from powercell.core.types import State, Technology
from powercell.providers import upower
from powercell.providers.upower import UPowerProvider, snapshot_from_properties

from conftest import fake_dbus_module, upower_props as _battery_props

_BAT0 = "/org/freedesktop/UPower/devices/battery_BAT0"
_MOUSE = "/org/freedesktop/UPower/devices/mouse_hidpp_battery_0"
_LINE = "/org/freedesktop/UPower/devices/line_power_AC"


@pytest.fixture
def objects():
    return {
        _LINE: {"Type": 1, "PowerSupply": True, "IsPresent": False},
        _BAT0: _battery_props(),
        _MOUSE: _battery_props(Type=5, PowerSupply=False, NativePath="hidpp_battery_0"),
    }


@pytest.fixture
def provider(objects, monkeypatch):
    fake = fake_dbus_module(objects)
    monkeypatch.setattr(upower, "_try_import_dbus", lambda: fake)
    return UPowerProvider()


class TestSnapshotFromProperties:
    def test_units_are_converted(self):
        snap = snapshot_from_properties(_battery_props())

        assert snap.energy == 27500
        assert snap.energy_full == 50000
        assert snap.energy_full_design == 57000
        assert snap.energy_rate == 15200
        assert snap.voltage == 12100
        assert snap.percentage == 55.0
        assert snap.state is State.CHARGING
        assert snap.technology is Technology.LITHIUM_ION
        assert snap.time_to_full == timedelta(minutes=25)
        assert snap.time_to_empty is None

    def test_unreported_values_are_absent(self):
        snap = snapshot_from_properties(_battery_props(Vendor="", Serial=""))
        assert snap.temperature is None
        assert snap.cycle_count is None
        assert snap.vendor is None
        assert snap.serial_number is None

    def test_reported_temperature_and_cycles(self):
        snap = snapshot_from_properties(_battery_props(Temperature=29.5, ChargeCycles=88))
        assert snap.temperature == 29.5
        assert snap.cycle_count == 88

    @pytest.mark.parametrize("code, state", [
        (0, State.UNKNOWN), (2, State.DISCHARGING), (3, State.EMPTY),
        (4, State.FULL), (5, State.UNKNOWN), (6, State.UNKNOWN),
    ])
    def test_states(self, code, state):
        assert snapshot_from_properties(_battery_props(State=code)).state is state

    def test_pending_charge_is_not_charging(self):
        props = _battery_props(State=5, TimeToFull=0, Percentage=80.0)
        device = upower.UPowerDevice(None, None, _BAT0, props=props)

        assert device.state() is State.UNKNOWN
        assert device.time_to_full() is None

    def test_pending_charge_when_full(self):
        props = _battery_props(State=5, TimeToFull=0, Percentage=100.0)
        device = upower.UPowerDevice(None, None, _BAT0, props=props)
        assert device.state() is State.FULL


class TestUPowerProvider:
    def test_discovers_power_supply_batteries(self, provider):
        devices = provider.discover()

        assert len(devices) == 1
        assert devices[0].device_id.path == _BAT0
        assert devices[0].percentage() == 55.0
        assert devices[0].time_to_full() == timedelta(minutes=25)

    def test_refresh_reads_new_properties(self, provider, objects):
        device = provider.discover()[0]
        objects[_BAT0] = _battery_props(Percentage=60.0, State=2, TimeToEmpty=7200)

        provider.refresh(device)

        assert device.percentage() == 60.0
        assert device.state() is State.DISCHARGING
        assert device.time_to_empty() == timedelta(hours=2)
        assert device.time_to_full() is None

    def test_refresh_of_removed_device(self, provider, objects):
        device = provider.discover()[0]
        del objects[_BAT0]

        with pytest.raises(DeviceNotFoundError):
            provider.refresh(device)

    def test_without_dbus(self, monkeypatch):
        monkeypatch.setattr(upower, "_try_import_dbus", lambda: None)
        provider = UPowerProvider()
        assert not provider.is_supported()
        assert provider.discover() == []
        assert not provider.supports_hotplug()

    def test_hotplug_is_left_to_udev(self, provider):
        assert provider.is_supported()
        assert not provider.supports_hotplug()

        provider.start_watching(lambda: None)
        assert not provider._get_bus().add_signal_receiver.called

    def test_serial_is_the_stable_key(self, provider):
        assert provider.discover()[0].device_id.stable_key == "serial:1234"

    @pytest.mark.parametrize("native_path", [
        "BAT0",
        "/sys/devices/LNXSYSTM:00/LNXSYBUS:00/PNP0C0A:00/power_supply/BAT0",
    ])
    def test_native_path_key_without_serial(self, provider, objects, native_path):
        objects[_BAT0] = _battery_props(Serial="", NativePath=native_path)

        device = provider.discover()[0]

        assert device.device_id.native_name == "BAT0"
        assert device.device_id.stable_key == "sysfs:BAT0"
