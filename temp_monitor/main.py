from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from typing import TextIO

from temp_monitor import __version__
from temp_monitor.config import (
    MAX_REFRESH_S,
    MIN_REFRESH_S,
    AppConfig,
    default_config,
    load_config,
    with_overrides,
)
from temp_monitor.discovery import SensorDiscovery
from temp_monitor.display import Display
from temp_monitor.logging_utils import configure_logging, resolve_log_level
from temp_monitor.models import Sensor, SystemStats
from temp_monitor.schema import validate_snapshot
from temp_monitor.snapshot import build_snapshot, collect_host
from temp_monitor.stats import poll_once

NO_SENSORS_HELP = """\
ERROR: No temperature sensors detected!

TROUBLESHOOTING STEPS:

1. Load kernel modules:
   sudo modprobe coretemp        # Intel CPUs
   sudo modprobe k10temp         # AMD CPUs
   sudo modprobe zenpower        # AMD Ryzen (alternative)

2. Install and configure lm-sensors:
   sudo apt install lm-sensors
   sudo sensors-detect
   sudo systemctl restart kmod

3. Verify sensors:
   ls -la /sys/class/hwmon/
   sensors

4. Check permissions:
   Make sure you have read access to /sys/class/hwmon/
"""


def _refresh_rate(value: str) -> int:
    try:
        rate = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid refresh rate '{value}'")
    if not MIN_REFRESH_S <= rate <= MAX_REFRESH_S:
        raise argparse.ArgumentTypeError(
            f"invalid refresh rate '{value}'. Must be between {MIN_REFRESH_S}-{MAX_REFRESH_S}."
        )
    return rate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="temp-monitor",
        description="Real-time hardware temperature monitoring for Linux",
    )
    parser.add_argument(
        "refresh_rate",
        nargs="?",
        type=_refresh_rate,
        help=f"Update interval in seconds ({MIN_REFRESH_S}-{MAX_REFRESH_S}, default: 2)",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        help="Path to CFG configuration file",
    )
    parser.add_argument(
        "-f",
        "--fahrenheit",
        action="store_true",
        default=None,
        help="Use Fahrenheit instead of Celsius",
    )
    parser.add_argument(
        "-s",
        "--stats",
        action="store_true",
        default=None,
        help="Show detailed statistics",
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="List all detected sensors and exit",
    )
    parser.add_argument(
        "-c",
        "--compact",
        action="store_true",
        default=None,
        help="Use compact display mode",
    )
    fans = parser.add_mutually_exclusive_group()
    fans.add_argument(
        "-F",
        "--fans",
        dest="show_fans",
        action="store_true",
        default=None,
        help="Show fan speed monitoring",
    )
    fans.add_argument(
        "-n",
        "--no-fans",
        dest="show_fans",
        action="store_false",
        default=None,
        help="Disable fan speed monitoring",
    )
    parser.add_argument(
        "-g",
        "--graphs",
        action="store_true",
        default=None,
        help="Show a sparkline of recent readings per sensor",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        default=None,
        help="Disable ANSI colors",
    )
    parser.add_argument(
        "--hwmon-path",
        help="Root of the hwmon sensor tree (default: /sys/class/hwmon)",
    )
    parser.add_argument(
        "--thermal-path",
        help="Root of the thermal zone tree (default: /sys/class/thermal)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Take a single reading, print it, then exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON snapshots instead of the terminal display",
    )
    parser.add_argument(
        "--dump-json",
        help="Write the JSON snapshot to a file (overwrites on each poll)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    config = load_config(args.config) if args.config else default_config()
    return with_overrides(
        config,
        sensors={"hwmon_path": args.hwmon_path, "thermal_path": args.thermal_path},
        display={
            "refresh_s": args.refresh_rate,
            "fahrenheit": args.fahrenheit,
            "show_stats": args.stats,
            "show_fans": args.show_fans,
            "show_graphs": args.graphs,
            "compact": args.compact,
            "color": args.color,
        },
    )


def install_signal_handlers(stop: threading.Event) -> None:
    def _handler(signum: int, frame: object) -> None:
        logging.getLogger("temp_monitor").info("Received signal %s; stopping.", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


class Monitor:
    """Owns the sensor list and drives poll -> render -> wait until stopped."""

    def __init__(
        self,
        sensors: list[Sensor],
        config: AppConfig,
        stop: threading.Event | None = None,
        stream: TextIO | None = None,
        json_output: bool = False,
        dump_json: str | None = None,
    ) -> None:
        self.sensors = sensors
        self.config = config
        self.stop = stop or threading.Event()
        self.stream = stream or sys.stdout
        self.display = Display(config.display, self.stream, version=__version__)
        self.json_output = json_output
        self.dump_json = dump_json
        self.host = collect_host() if (json_output or dump_json) else None
        self.logger = logging.getLogger(self.__class__.__name__)

    def _emit_snapshot(self, stats: SystemStats) -> None:
        payload = build_snapshot(self.sensors, stats, self.host)
        schema_errors = validate_snapshot(payload)
        if schema_errors:
            self.logger.warning("Schema validation failed with %s errors.", len(schema_errors))
            self.logger.debug("Schema errors: %s", schema_errors)
        payload_json = json.dumps(payload)
        if self.dump_json:
            try:
                with open(self.dump_json, "w", encoding="utf-8") as handle:
                    handle.write(payload_json)
            except OSError as exc:
                self.logger.warning("Unable to write snapshot to %s: %s", self.dump_json, exc)
        if self.json_output:
            self.stream.write(payload_json + "\n")
            self.stream.flush()

    def tick(self, interactive: bool = True) -> None:
        stats = poll_once(self.sensors)
        if self.json_output or self.dump_json:
            self._emit_snapshot(stats)
        if self.json_output:
            return
        if interactive:
            self.display.draw(self.sensors, stats)
        else:
            self.stream.write(self.display.render(self.sensors, stats))
            self.stream.flush()

    def run(self, once: bool = False) -> None:
        if once:
            self.tick(interactive=False)
            return
        interval = self.config.display.refresh_s
        self.logger.info("Monitoring %s sensors every %s seconds.", len(self.sensors), interval)
        fullscreen = not self.json_output
        if fullscreen:
            self.display.enter()
        try:
            while not self.stop.is_set():
                self.tick(interactive=fullscreen)
                self.stop.wait(interval)
        finally:
            if fullscreen:
                self.display.exit()
        self.logger.info("Monitoring stopped.")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = resolve_log_level(args.verbose, args.log_level)
    configure_logging(level)
    logger = logging.getLogger("temp_monitor")

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    discovery = SensorDiscovery(config.sensors)
    sensors = discovery.discover()
    if not sensors:
        sys.stderr.write(NO_SENSORS_HELP)
        return 1
    logger.info(
        "Detected %s sensors (%s fans unassociated).",
        len(sensors),
        sum(1 for fan in discovery.fans if fan.sensor is None),
    )

    if args.list:
        sys.stdout.write(Display(config.display, version=__version__).render_sensor_list(sensors))
        return 0

    stop = threading.Event()
    install_signal_handlers(stop)
    monitor = Monitor(
        sensors,
        config,
        stop=stop,
        json_output=args.json,
        dump_json=args.dump_json,
    )
    monitor.run(once=args.once)
    return 0


if __name__ == "__main__":
    sys.exit(main())
