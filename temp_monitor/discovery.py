from __future__ import annotations

import logging
import os
import re
from typing import Iterator

from temp_monitor.classifier import Category, classify
from temp_monitor.config import SensorConfig
from temp_monitor.logging_utils import TRACE_LEVEL
from temp_monitor.models import DEFAULT_CRITICAL, FanChannel, Sensor
from temp_monitor.sysfs import SENTINEL, dir_exists, read_int, read_number, read_text

MAX_PATH_LENGTH = 512
MIN_PLAUSIBLE_CRITICAL = 50.0
MAX_PLAUSIBLE_CRITICAL = 150.0
THERMAL_ZONE_CRITICAL = 100.0
DEFAULT_FAN_MAX_RPM = 5000
PWM_MAX_RPM = 255

TEMP_INPUT_RE = re.compile(r"^temp(\d+)_input$")
FAN_INPUT_RE = re.compile(r"^fan(\d+)_input$")
THERMAL_ZONE_RE = re.compile(r"^thermal_zone(\d+)$")
TRIP_TYPE_RE = re.compile(r"^trip_point_(\d+)_type$")


def _natural_key(name: str) -> list[object]:
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", name)]


def plausible_critical(value: float, default: float = DEFAULT_CRITICAL) -> float:
    """Replace a missing or out-of-range threshold with ``default``."""
    if value == SENTINEL:
        return default
    if value < MIN_PLAUSIBLE_CRITICAL or value > MAX_PLAUSIBLE_CRITICAL:
        return default
    return value


class SensorDiscovery:
    """Walks hwmon (and the thermal-zone fallback) once to build the sensor list.

    Fans are linked greedily: each fan goes to the first sensor in the same
    hwmon directory that has no fan yet. Surplus fans are kept in
    :attr:`fans` with ``sensor=None``.
    """

    def __init__(self, config: SensorConfig | None = None) -> None:
        self.config = config or SensorConfig()
        self.fans: list[FanChannel] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def discover(self) -> list[Sensor]:
        self.logger.debug("Scanning %s for temperature channels.", self.config.hwmon_path)
        self.fans = []
        sensors = self._scan_hwmon()
        if not sensors:
            self.logger.debug(
                "No hwmon channels found; falling back to %s.", self.config.thermal_path
            )
            sensors = self._scan_thermal_zones()
        if sensors:
            self.fans = self._scan_fans(sensors)
        self.logger.info(
            "Discovered %s sensors and %s fans.", len(sensors), len(self.fans)
        )
        return sensors

    def _hwmon_dirs(self) -> list[str]:
        root = self.config.hwmon_path
        try:
            entries = sorted(os.listdir(root), key=_natural_key)
        except OSError as exc:
            self.logger.debug("Cannot open %s: %s", root, exc)
            return []

        dirs: list[str] = []
        for entry in entries:
            if entry.startswith("."):
                continue
            path = os.path.join(root, entry)
            if len(path) >= MAX_PATH_LENGTH:
                self.logger.debug("Skipping over-long path %s", path[:64])
                continue
            if not dir_exists(path):
                continue
            dirs.append(path)
        return dirs

    def _list_channels(self, directory: str, pattern: re.Pattern[str]) -> list[tuple[int, str]]:
        try:
            entries = os.listdir(directory)
        except OSError as exc:
            self.logger.debug("Cannot list %s: %s", directory, exc)
            return []
        channels: list[tuple[int, str]] = []
        for entry in entries:
            match = pattern.match(entry)
            if match is None:
                continue
            channels.append((int(match.group(1)), entry))
        return sorted(channels)

    def _critical_for(self, directory: str, index: int) -> float:
        value = read_number(os.path.join(directory, f"temp{index}_crit"))
        if value == SENTINEL:
            value = read_number(os.path.join(directory, f"temp{index}_max"))
        return plausible_critical(value)

    def _temp_channels(self) -> Iterator[tuple[str, str, int, str]]:
        for directory in self._hwmon_dirs():
            chip_name = read_text(os.path.join(directory, "name")) or "Unknown"
            for index, filename in self._list_channels(directory, TEMP_INPUT_RE):
                yield directory, chip_name, index, filename

    def _scan_hwmon(self) -> list[Sensor]:
        sensors: list[Sensor] = []
        limit = self.config.max_sensors
        for directory, chip_name, index, filename in self._temp_channels():
            if len(sensors) >= limit:
                self.logger.warning("Sensor limit of %s reached; ignoring the rest.", limit)
                break
            path = os.path.join(directory, filename)
            if len(path) >= MAX_PATH_LENGTH:
                continue
            label = read_text(os.path.join(directory, f"temp{index}_label")) or f"Sensor {index}"
            sensor = Sensor(
                name=chip_name,
                label=label,
                path=path,
                category=classify(chip_name, label),
                critical=self._critical_for(directory, index),
            )
            self.logger.log(
                TRACE_LEVEL,
                "Found %s/%s at %s (%s, crit %.1f)",
                chip_name,
                label,
                path,
                sensor.category.value,
                sensor.critical,
            )
            sensors.append(sensor)
        return sensors

    def _zone_critical(self, zone_dir: str) -> float:
        for index, _ in self._list_channels(zone_dir, TRIP_TYPE_RE):
            trip_type = read_text(os.path.join(zone_dir, f"trip_point_{index}_type"))
            if trip_type == "critical":
                value = read_number(os.path.join(zone_dir, f"trip_point_{index}_temp"))
                return plausible_critical(value, THERMAL_ZONE_CRITICAL)
        return THERMAL_ZONE_CRITICAL

    def _scan_thermal_zones(self) -> list[Sensor]:
        root = self.config.thermal_path
        try:
            entries = os.listdir(root)
        except OSError as exc:
            self.logger.debug("Cannot open %s: %s", root, exc)
            return []

        zones: list[tuple[int, str]] = []
        for entry in entries:
            match = THERMAL_ZONE_RE.match(entry)
            if match is not None:
                zones.append((int(match.group(1)), entry))

        sensors: list[Sensor] = []
        for index, entry in sorted(zones):
            if len(sensors) >= self.config.max_sensors:
                self.logger.warning(
                    "Sensor limit of %s reached; ignoring the rest.", self.config.max_sensors
                )
                break
            zone_dir = os.path.join(root, entry)
            if len(zone_dir) >= MAX_PATH_LENGTH or not dir_exists(zone_dir):
                continue
            zone_type = read_text(os.path.join(zone_dir, "type"))
            sensors.append(
                Sensor(
                    name=zone_type or entry,
                    label=zone_type or f"Zone {index}",
                    path=os.path.join(zone_dir, "temp"),
                    category=Category.CHIPSET,
                    critical=self._zone_critical(zone_dir),
                )
            )
        return sensors

    def _fan_max_rpm(self, directory: str, index: int) -> int:
        max_rpm = read_int(os.path.join(directory, f"fan{index}_max"), -1)
        if max_rpm > 0:
            return max_rpm
        if read_text(os.path.join(directory, f"pwm{index}_max")) is not None:
            return PWM_MAX_RPM
        return DEFAULT_FAN_MAX_RPM

    def _scan_fans(self, sensors: list[Sensor]) -> list[FanChannel]:
        fans: list[FanChannel] = []
        for directory in self._hwmon_dirs():
            for index, filename in self._list_channels(directory, FAN_INPUT_RE):
                fan = FanChannel(
                    path=os.path.join(directory, filename),
                    directory=directory,
                    max_rpm=self._fan_max_rpm(directory, index),
                )
                for sensor in sensors:
                    if sensor.has_fan or os.path.dirname(sensor.path) != fan.directory:
                        continue
                    sensor.has_fan = True
                    sensor.fan_path = fan.path
                    sensor.fan_max_rpm = fan.max_rpm
                    fan.sensor = sensor
                    break
                if fan.sensor is None:
                    self.logger.debug(
                        "Fan %s has no free sensor in %s to attach to.", fan.path, fan.directory
                    )
                fans.append(fan)
        return fans


def discover(config: SensorConfig | None = None) -> list[Sensor]:
    return SensorDiscovery(config).discover()
