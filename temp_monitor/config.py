from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import configparser

DEFAULT_HWMON_PATH = "/sys/class/hwmon"
DEFAULT_THERMAL_PATH = "/sys/class/thermal"
DEFAULT_MAX_SENSORS = 200
DEFAULT_REFRESH_S = 2
MIN_REFRESH_S = 1
MAX_REFRESH_S = 60


@dataclass(frozen=True)
class SensorConfig:
    hwmon_path: str = DEFAULT_HWMON_PATH
    thermal_path: str = DEFAULT_THERMAL_PATH
    max_sensors: int = DEFAULT_MAX_SENSORS


@dataclass(frozen=True)
class DisplayConfig:
    refresh_s: int = DEFAULT_REFRESH_S
    fahrenheit: bool = False
    show_stats: bool = False
    show_fans: bool = True
    show_graphs: bool = False
    compact: bool = False
    color: bool = True


@dataclass(frozen=True)
class AppConfig:
    sensors: SensorConfig
    display: DisplayConfig


def validate_refresh(value: int) -> int:
    if not MIN_REFRESH_S <= value <= MAX_REFRESH_S:
        raise ValueError(
            f"Refresh rate must be between {MIN_REFRESH_S} and {MAX_REFRESH_S} seconds, got {value}"
        )
    return value


def default_config() -> AppConfig:
    return AppConfig(sensors=SensorConfig(), display=DisplayConfig())


def load_config(path: str | Path) -> AppConfig:
    parser = configparser.ConfigParser()
    read_files = parser.read(path)
    if not read_files:
        raise FileNotFoundError(f"Config file not found: {path}")

    # Use parser.get with fallback to handle missing sections
    sensors = SensorConfig(
        hwmon_path=parser.get("sensors", "hwmon_path", fallback=DEFAULT_HWMON_PATH),
        thermal_path=parser.get("sensors", "thermal_path", fallback=DEFAULT_THERMAL_PATH),
        max_sensors=max(1, parser.getint("sensors", "max_sensors", fallback=DEFAULT_MAX_SENSORS)),
    )

    display = DisplayConfig(
        refresh_s=validate_refresh(
            parser.getint("display", "refresh_s", fallback=DEFAULT_REFRESH_S)
        ),
        fahrenheit=parser.getboolean("display", "fahrenheit", fallback=False),
        show_stats=parser.getboolean("display", "show_stats", fallback=False),
        show_fans=parser.getboolean("display", "show_fans", fallback=True),
        show_graphs=parser.getboolean("display", "show_graphs", fallback=False),
        compact=parser.getboolean("display", "compact", fallback=False),
        color=parser.getboolean("display", "color", fallback=True),
    )

    return AppConfig(sensors=sensors, display=display)


def with_overrides(config: AppConfig, sensors: dict | None = None, display: dict | None = None) -> AppConfig:
    """Return a copy of ``config`` with non-None overrides applied per section."""
    sensor_changes = {k: v for k, v in (sensors or {}).items() if v is not None}
    display_changes = {k: v for k, v in (display or {}).items() if v is not None}
    if "refresh_s" in display_changes:
        validate_refresh(display_changes["refresh_s"])
    return AppConfig(
        sensors=replace(config.sensors, **sensor_changes),
        display=replace(config.display, **display_changes),
    )
