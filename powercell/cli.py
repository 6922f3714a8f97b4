#!/usr/bin/env python3
"""Command-line interface for powercell battery telemetry."""

import sys
import json
import time
import logging
import argparse
from typing import List, Optional

from powercell.config import load_config
from powercell.core.battery import Battery
from powercell.core.manager import BatteryManager
from powercell.core.types import State

log = logging.getLogger(__name__)


def _create_manager(config: dict) -> BatteryManager:
    """Create a BatteryManager with all enabled providers."""
    mgr = BatteryManager()
    mgr.register_default_providers(config)
    return mgr


def _display_name(battery: Battery) -> str:
    parts = [p for p in (battery.vendor(), battery.model()) if p]
    if parts:
        return " ".join(parts)
    device_id = battery.device.device_id
    return device_id.stable_key if device_id else "Battery"


def format_status(battery: Battery) -> str:
    """One-line summary, e.g. ``ACME X1: 55.0% (Charging, 0:25:00 to full)``."""
    state = battery.state()
    details = [str(state)]
    if state is State.CHARGING:
        remaining = battery.time_to_full()
        if remaining is not None:
            details.append(f"{remaining} to full")
    elif state is State.DISCHARGING:
        remaining = battery.time_to_empty()
        if remaining is not None:
            details.append(f"{remaining} to empty")
    return f"{_display_name(battery)}: {battery.percentage():.1f}% ({', '.join(details)})"


def format_details(battery: Battery) -> List[str]:
    """Every diagnostic field, one per line, absent values shown as None."""
    lines = [f"  {_display_name(battery)}"]
    device_id = battery.device.device_id
    if device_id is not None:
        lines.append(f"    {'key':<20}{device_id.stable_key}")
        lines.append(f"    {'source':<20}{device_id.provider.name.lower()}")
    for name, value in battery.debug_fields():
        lines.append(f"    {name:<20}{'None' if value is None else value}")
    return lines


def _setup_logging(verbose: bool, config: dict) -> None:
    name = str(config.get("logging", {}).get("level", "WARNING")).upper()
    level = logging.getLevelName(name)
    valid = isinstance(level, int)
    if verbose:
        level = logging.DEBUG
    elif not valid:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not valid:
        log.warning("Unknown logging.level %r in config, using WARNING", name)


def main(argv: Optional[List[str]] = None) -> int:
    config = load_config()

    parser = argparse.ArgumentParser(
        prog="powercell",
        description="powercell — battery telemetry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  %(prog)s              Show a status line per battery
  %(prog)s --json       Output as JSON (for scripts/waybar)
  %(prog)s --list       Show every field for every battery
  %(prog)s --watch      Continuously monitor
  %(prog)s --device KEY Filter to a specific battery by stable key
""",
    )
    parser.add_argument("--list", "-l", action="store_true", help="Show all fields per battery")
    parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    parser.add_argument("--watch", "-w", action="store_true", help="Continuously monitor batteries")
    parser.add_argument("--device", "-d", type=str, default=None, help="Filter to a specific battery key")
    parser.add_argument(
        "--interval", "-i", type=int,
        default=config.get("watch", {}).get("interval_seconds", 30),
        help="Watch interval in seconds (default: %(default)s)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose, config)

    mgr = _create_manager(config)

    def get_batteries(rescan: bool) -> List[Battery]:
        if rescan:
            batteries = mgr.batteries()
        else:
            batteries = mgr.refresh_all()
        if args.device:
            batteries = [
                b for b in batteries
                if b.device.device_id and b.device.device_id.stable_key == args.device
            ]
        return batteries

    def print_status(rescan: bool) -> bool:
        batteries = get_batteries(rescan)

        if not batteries:
            if args.json:
                print(json.dumps({"error": "No batteries found"}))
            elif args.device:
                print(f"Error: Battery '{args.device}' not found.")
            else:
                print("Error: No batteries found.")
                print("\nRun with --verbose to see which sources were tried.")
            return False

        if args.json:
            result = [b.as_dict() for b in batteries]
            # Single battery: flat object for waybar compat; multi: array
            if len(result) == 1:
                print(json.dumps(result[0]))
            else:
                print(json.dumps(result))
        elif args.list:
            print(f"Found {len(batteries)} battery(ies):\n")
            for battery in batteries:
                print("\n".join(format_details(battery)))
                print()
        else:
            for battery in batteries:
                print(format_status(battery))

        return True

    with mgr:
        if args.watch:
            print(f"Monitoring battery (every {args.interval}s, Ctrl+C to stop)...\n")
            mgr.start_watching()
            rescan = True
            try:
                while True:
                    print_status(rescan)
                    rescan = False
                    print()
                    time.sleep(args.interval)
            except KeyboardInterrupt:
                print("\nStopped.")
        elif not print_status(rescan=True):
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
