"""Battery manager - owns providers and the batteries they find."""

import logging
import threading
from typing import Dict, List, Optional

from powercell.core.battery import Battery
from powercell.core.device import BatteryDevice, SnapshotDevice
from powercell.core.provider import BatteryProvider

log = logging.getLogger(__name__)


class BatteryManager:
    """Tracks providers, batteries, and deduplication logic.

    Each physical battery maps to exactly one ``Battery`` for as long as it
    stays visible. When two providers see the same battery (UPower and
    sysfs on Linux), the one with the lower priority value wins.
    """

    def __init__(self):
        self._providers: List[BatteryProvider] = []
        self._batteries: Dict[str, Battery] = {}  # stable_key -> Battery
        self._battery_provider: Dict[str, BatteryProvider] = {}  # stable_key -> provider
        self._lock = threading.Lock()

    def register_provider(self, provider: BatteryProvider) -> None:
        """Register a battery provider, maintaining priority order."""
        self._providers.append(provider)
        self._providers.sort(key=lambda p: p.priority)

    def register_default_providers(self, config: Optional[dict] = None) -> None:
        """Register every built-in provider enabled in config and usable here."""
        from powercell.providers import default_providers

        for provider in default_providers(config):
            if provider.is_supported():
                self.register_provider(provider)
            else:
                log.debug("Provider %s not supported on this host", provider.name)

    @property
    def providers(self) -> List[BatteryProvider]:
        return list(self._providers)

    def get(self, stable_key: str) -> Optional[Battery]:
        return self._batteries.get(stable_key)

    def get_all(self) -> List[Battery]:
        return list(self._batteries.values())

    def run_discovery(self):
        """Scan all providers and reconcile the battery list.

        Batteries that were already tracked keep their ``Battery`` object
        and take the fresh reading in place, without reading the device twice.
        Returns (added_keys, removed_keys).
        """
        seen: Dict[str, Battery] = {}
        seen_providers: Dict[str, BatteryProvider] = {}

        for provider in self._providers:
            try:
                found = provider.discover()
            except Exception:
                log.exception("Discovery failed for provider %s", provider.name)
                continue

            for index, device in enumerate(found):
                key = _stable_key(provider, device, index)
                if key in seen:
                    continue
                existing = self._batteries.get(key)
                if existing is not None and self._battery_provider.get(key) is provider:
                    # Keep the caller's object; take the fresh reading in place.
                    current = existing.device_for_update()
                    if isinstance(current, SnapshotDevice) and isinstance(device, SnapshotDevice):
                        current.adopt(device)
                        seen[key] = existing
                    else:
                        try:
                            provider.refresh(current)
                            seen[key] = existing
                        except Exception:
                            log.debug("Refresh of %s failed, using new device", key)
                            seen[key] = Battery(device)
                else:
                    seen[key] = Battery(device)
                seen_providers[key] = provider

        with self._lock:
            added = set(seen) - set(self._batteries)
            removed = set(self._batteries) - set(seen)
            self._batteries = seen
            self._battery_provider = seen_providers

        for key in added:
            log.debug("Battery added: %s", key)
        for key in removed:
            log.debug("Battery removed: %s", key)
        return added, removed

    def batteries(self) -> List[Battery]:
        """Synchronous one-shot: discover batteries and return them."""
        self.run_discovery()
        return self.get_all()

    def refresh(self, battery: Battery) -> None:
        """Re-synchronize one battery with the OS.

        Raises BatteryError when the device can't be read anymore.
        """
        provider = self._provider_for(battery)
        device = battery.device_for_update()
        if provider is None:
            device.refresh()
        else:
            provider.refresh(device)

    def refresh_all(self) -> List[Battery]:
        """Refresh every tracked battery. Returns those that refreshed."""
        refreshed = []
        for key, battery in list(self._batteries.items()):
            try:
                self.refresh(battery)
            except Exception:
                log.debug("Battery refresh failed for %s", key)
                continue
            refreshed.append(battery)
        return refreshed

    def start_watching(self) -> None:
        """Re-run discovery whenever a provider reports a hotplug event."""
        for provider in self._providers:
            if provider.supports_hotplug():
                provider.start_watching(self._on_hotplug_event)

    def close(self) -> None:
        """Stop watching and clean up all providers."""
        for provider in self._providers:
            try:
                provider.stop_watching()
            except Exception:
                log.debug("Failed to stop watching %s", provider.name)
            try:
                provider.close()
            except Exception:
                log.debug("Failed to close provider %s", provider.name)

    def __enter__(self) -> "BatteryManager":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- Internal ---

    def _provider_for(self, battery: Battery) -> Optional[BatteryProvider]:
        with self._lock:
            for key, tracked in self._batteries.items():
                if tracked is battery:
                    return self._battery_provider.get(key)
        return None

    def _on_hotplug_event(self) -> None:
        try:
            self.run_discovery()
        except Exception:
            log.exception("Discovery after hotplug event failed")


def _stable_key(provider: BatteryProvider, device: BatteryDevice, index: int) -> str:
    device_id = device.device_id
    if device_id is not None:
        return device_id.stable_key
    return f"{provider.name}:{index}"
