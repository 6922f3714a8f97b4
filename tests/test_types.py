"""Tests for enum parsing, identity keys and unit helpers."""

from datetime import timedelta

import pytest

from powercell.core import units
from powercell.core.types import DeviceId, ProviderType, State, Technology


class TestState:
    @pytest.mark.parametrize("raw, expected", [
        ("Charging", State.CHARGING),
        ("discharging", State.DISCHARGING),
        ("Full", State.FULL),
        ("charged", State.FULL),
        ("Empty", State.EMPTY),
        ("Not charging", State.UNKNOWN),
        ("", State.UNKNOWN),
        (None, State.UNKNOWN),
    ])
    def test_from_str(self, raw, expected):
        assert State.from_str(raw) is expected

    def test_str(self):
        assert str(State.CHARGING) == "Charging"


class TestTechnology:
    @pytest.mark.parametrize("raw, expected", [
        ("Li-ion", Technology.LITHIUM_ION),
        ("LION", Technology.LITHIUM_ION),
        ("Li-poly", Technology.LITHIUM_POLYMER),
        ("NiMH", Technology.NICKEL_METAL_HYDRIDE),
        ("NiCd", Technology.NICKEL_CADMIUM),
        ("Pb", Technology.LEAD_ACID),
        ("LiFe", Technology.LITHIUM_IRON_PHOSPHATE),
        ("Unknown", Technology.UNKNOWN),
        (None, Technology.UNKNOWN),
    ])
    def test_from_str(self, raw, expected):
        assert Technology.from_str(raw) is expected


class TestDeviceId:
    def test_serial_key_is_provider_independent(self):
        a = DeviceId(ProviderType.UPOWER, "/org/freedesktop/UPower/devices/battery_BAT0", "42")
        b = DeviceId(ProviderType.SYSFS, "/sys/class/power_supply/BAT0", "42")
        assert a.stable_key == b.stable_key == "serial:42"

    def test_path_key_without_serial(self):
        assert DeviceId(ProviderType.SYSFS, "/sys/class/power_supply/BAT0").stable_key == \
            "/sys/class/power_supply/BAT0"

    def test_native_name_key_without_serial(self):
        a = DeviceId(ProviderType.UPOWER, "/org/freedesktop/UPower/devices/battery_BAT0",
                     "", native_name="BAT0")
        b = DeviceId(ProviderType.SYSFS, "/sys/class/power_supply/BAT0", native_name="BAT0")
        assert a.stable_key == b.stable_key == "sysfs:BAT0"


class TestUnits:
    def test_micro_to_milli(self):
        assert units.micro_to_milli(45_123_456) == 45123
        assert units.micro_to_milli(None) is None

    def test_base_to_milli(self):
        assert units.base_to_milli(12.345) == 12345
        assert units.base_to_milli(-7.5) == 7500

    def test_charge_to_energy(self):
        # 4 Ah at 11.1 V
        assert units.charge_to_energy(4_000_000, 11_100_000) == 44400

    def test_estimates(self):
        assert units.estimate_time_to_full(40000, 50000, 20000) == timedelta(minutes=30)
        assert units.estimate_time_to_empty(10000, 20000) == timedelta(minutes=30)
        assert units.estimate_time_to_empty(10000, 0) is None

    def test_blank_to_none(self):
        assert units.blank_to_none("  ") is None
        assert units.blank_to_none(" SMP ") == "SMP"
