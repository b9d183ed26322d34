"""
auto-dark - follow the system dark/light appearance.

Usage:
    auto-dark                       # Print the current appearance
    auto-dark --json                # Current appearance and method as JSON
    auto-dark --watch               # Log every change until interrupted
    auto-dark --watch --exec CMD    # Run `CMD dark|light` on every change
    auto-dark --methods             # Show detection methods and probe results
    auto-dark --method dbus         # Force a detection method
"""

import argparse
import json
import os
import re
import shlex
import signal
import subprocess
import sys
import threading
from pathlib import Path

from .appearance import Appearance, DetectionMethod
from .config import Config, load_config
from .controller import Controller
from .detectors import DetectorRegistry
from .errors import AutoDarkError
from .log import set_verbose
from .resolver import StrategyResolver, SystemProbes, platform_family

# Polling interval: a whole number with an optional s/m/h unit
_INTERVAL_RE = re.compile(r"([0-9]+)([smh]?)")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600}


def parse_interval(value: str) -> int | None:
    """
    Convert an --interval value to seconds for Config.polling_interval.

    "5" and "5s" are five seconds (the default poll interval), "2m" is 120,
    "1h" is 3600. Case and surrounding spaces are ignored. Returns None for
    anything else; zero is returned as is and rejected by build_config().
    """
    match = _INTERVAL_RE.fullmatch(value.strip().lower())
    if match is None:
        return None
    number, unit = match.groups()
    return int(number) * _UNIT_SECONDS[unit]


def build_config(args: argparse.Namespace) -> Config:
    """Merge the config file with command line overrides."""
    config = load_config(Path(args.config) if args.config else None)
    data = config.to_dict()

    if args.method:
        data["method"] = args.method
    if args.interval:
        interval = parse_interval(args.interval)
        if interval is None or interval <= 0:
            raise AutoDarkError(f"Invalid interval '{args.interval}' (use e.g. 5, 30s, 2m, 1h)")
        data["polling_interval"] = interval
    if args.allow_osascript:
        data["allow_external_process"] = True
    if args.no_push:
        data["push_notifications"] = False

    return Config.from_dict(data)


def make_exec_action(command: str):
    """Build an apply action that spawns `command <appearance>` without waiting."""
    argv = shlex.split(command)

    def run(appearance: Appearance) -> None:
        env = {**os.environ, "AUTO_DARK_APPEARANCE": appearance.value}
        subprocess.Popen(argv + [appearance.value], env=env)

    return run


def show_current(config: Config, as_json: bool) -> None:
    """Detect once and print the result."""
    resolver = StrategyResolver(config)
    method = config.forced_method or resolver.resolve()
    appearance = DetectorRegistry.create(method, config).query()

    if as_json:
        print(json.dumps({"appearance": appearance.value, "method": method.value}))
    else:
        print(appearance.value)


def show_methods(config: Config) -> None:
    """Display detection methods and what the probes report."""
    from rich import box
    from rich.console import Console
    from rich.table import Table

    console = Console()
    probes = SystemProbes(timeout=config.query_timeout)
    family = platform_family(probes.platform)

    console.print(f"Platform: [bold]{probes.platform}[/] ({family or 'unsupported'})")

    probe_results = {
        DetectionMethod.SCRIPTING: family == "darwin" and probes.has_native_scripting(),
        DetectionMethod.EXTERNAL_PROCESS: family == "darwin" and probes.has_external_interpreter(),
        DetectionMethod.PORTAL: family == "linux" and probes.has_bus_client() and probes.portal_registered(),
        DetectionMethod.REGISTRY: family == "windows",
    }

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold cyan")
    table.add_column("method", style="bold", no_wrap=True)
    table.add_column("detector")
    table.add_column("status")

    for entry in DetectorRegistry.list_detectors():
        method = DetectionMethod(entry["method"])
        status = "[green]available[/]" if probe_results.get(method) else "[dim]not available[/]"
        if method is DetectionMethod.EXTERNAL_PROCESS and not config.allow_external_process:
            status += " [yellow](needs --allow-osascript)[/]"
        table.add_row(method.value, entry["name"], status)
    console.print(table)

    if config.forced_method:
        console.print(f"Active method: [bold]{config.forced_method.value}[/] (forced)")
        return
    try:
        method = StrategyResolver(config, probes).resolve()
        console.print(f"Active method: [bold]{method.value}[/]")
    except AutoDarkError as e:
        console.print(f"[red]{e}[/]")


def watch(config: Config, exec_command: str | None) -> None:
    """Run a controller until SIGINT/SIGTERM."""
    apply = make_exec_action(exec_command) if exec_command else None
    controller = Controller(apply, config)
    done = threading.Event()

    def handle_signal(signum, frame):
        done.set()

    signal.signal(signal.SIGTERM, handle_signal)
    controller.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Follow the system dark/light appearance")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--watch", action="store_true", help="Watch for appearance changes")
    parser.add_argument("--exec", type=str, metavar="CMD", help="Command run with 'dark' or 'light' on each change")
    parser.add_argument("--methods", action="store_true", help="Show available detection methods")
    parser.add_argument(
        "--method",
        type=str,
        choices=[m.value for m in DetectionMethod],
        help="Force a detection method",
    )
    parser.add_argument("--interval", type=str, help="Polling interval (e.g., 5, 30s, 2m)")
    parser.add_argument("--allow-osascript", action="store_true", help="Allow the osascript fallback on macOS")
    parser.add_argument("--no-push", action="store_true", help="Always poll, even if push notifications exist")
    parser.add_argument("--config", type=str, metavar="FILE", help="Config file path")
    parser.add_argument("--verbose", action="store_true", help="Log debug events")
    args = parser.parse_args(argv)

    set_verbose(args.verbose)

    try:
        config = build_config(args)
        if args.methods:
            show_methods(config)
        elif args.watch:
            watch(config, args.exec)
        else:
            show_current(config, args.json)
    except AutoDarkError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
