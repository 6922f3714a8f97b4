"""Tests for snapshot normalization shared by all platform devices."""

from dataclasses import replace
from datetime import timedelta

import pytest

from powercell.core.device import BatterySnapshot
from powercell.core.errors import DeviceNotFoundError
from powercell.core.types import State

from conftest import FakeDevice


def _device(**fields) -> FakeDevice:
    return FakeDevice(BatterySnapshot(**fields))


class TestPercentage:
    def test_reported_value_is_clamped(self):
        assert _device(percentage=104.2).percentage() == 100.0
        assert _device(percentage=-3.0).percentage() == 0.0

    def test_derived_from_energy(self):
        assert _device(energy=25000, energy_full=50000).percentage() == 50.0

    def test_zero_full_energy_gives_zero(self):
        assert _device(energy=100, energy_full=0).percentage() == 0.0


class TestCapacity:
    def test_matches_full_over_design(self):
        device = _device(energy_full=45000, energy_full_design=50000)
        assert device.capacity() == pytest.approx(90.0)

    def test_clamped_when_full_exceeds_design(self):
        assert _device(energy_full=52000, energy_full_design=50000).capacity() == 100.0

    def test_unknown_design_reports_full_health(self):
        assert _device(energy_full=45000, energy_full_design=0).capacity() == 100.0


class TestState:
    def test_reported_state_wins(self):
        assert _device(state=State.DISCHARGING, percentage=100.0).state() is State.DISCHARGING

    def test_unknown_at_full_charge_is_full(self):
        assert _device(state=State.UNKNOWN, percentage=100.0).state() is State.FULL

    def test_unknown_with_no_energy_is_empty(self):
        device = _device(state=State.UNKNOWN, energy=0, energy_full=50000, percentage=0.0)
        assert device.state() is State.EMPTY

    def test_unknown_stays_unknown(self):
        assert _device(state=State.UNKNOWN, percentage=80.0, energy=1).state() is State.UNKNOWN


class TestTimeEstimates:
    def test_time_to_full_only_while_charging(self):
        for state in (State.DISCHARGING, State.FULL, State.EMPTY, State.UNKNOWN):
            device = _device(state=state, energy=10000, energy_full=50000, energy_rate=10000,
                             percentage=20.0, time_to_full=timedelta(hours=1))
            assert device.time_to_full() is None

    def test_time_to_empty_only_while_discharging(self):
        for state in (State.CHARGING, State.FULL, State.EMPTY, State.UNKNOWN):
            device = _device(state=state, energy=10000, energy_full=50000, energy_rate=10000,
                             percentage=20.0, time_to_empty=timedelta(hours=1))
            assert device.time_to_empty() is None

    def test_estimated_from_rate_while_charging(self):
        device = _device(state=State.CHARGING, energy=30000, energy_full=50000, energy_rate=10000)
        assert device.time_to_full() == timedelta(hours=2)

    def test_estimated_from_rate_while_discharging(self):
        device = _device(state=State.DISCHARGING, energy=30000, energy_full=50000, energy_rate=20000)
        assert device.time_to_empty() == timedelta(hours=1, minutes=30)

    def test_zero_rate_gives_no_estimate(self):
        device = _device(state=State.DISCHARGING, energy=30000, energy_full=50000, energy_rate=0)
        assert device.time_to_empty() is None

    def test_reported_estimate_preferred(self):
        device = _device(state=State.CHARGING, energy=30000, energy_full=50000,
                         energy_rate=10000, time_to_full=timedelta(minutes=25))
        assert device.time_to_full() == timedelta(minutes=25)


class TestRefresh:
    def test_refresh_replaces_snapshot(self, charging_snapshot):
        device = FakeDevice(charging_snapshot)
        device.next_snapshot = replace(charging_snapshot, voltage=11000)
        device.refresh()
        assert device.voltage() == 11000

    def test_failed_refresh_keeps_previous_snapshot(self, charging_snapshot):
        device = FakeDevice(charging_snapshot)
        device.next_snapshot = None

        with pytest.raises(DeviceNotFoundError):
            device.refresh()

        assert device.snapshot is charging_snapshot
        assert device.voltage() == 12100
