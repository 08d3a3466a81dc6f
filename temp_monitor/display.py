from __future__ import annotations

from datetime import datetime
import shutil
import sys
from typing import Iterable, TextIO

from colorlog.escape_codes import parse_colors

from temp_monitor.classifier import Category
from temp_monitor.config import DisplayConfig
from temp_monitor.models import Sensor, SensorStatus, SystemStats
from temp_monitor.sysfs import SENTINEL

CLEAR_SCREEN = "\033[2J\033[H"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
ENTER_ALT_SCREEN = "\033[?1049h"
EXIT_ALT_SCREEN = "\033[?1049l"

BAR_WIDTH = 20
FAN_BAR_WIDTH = 15
LABEL_WIDTH = 28
SPARK_CHARS = " .:-=+*#%@"

# (upper bound exclusive, color, bar glyph)
TEMP_BANDS: tuple[tuple[float, str, str], ...] = (
    (40.0, "cyan", "#"),
    (50.0, "green", "#"),
    (60.0, "light_green", "#"),
    (70.0, "yellow", "="),
    (80.0, "light_yellow", "="),
    (90.0, "light_red", "*"),
    (float("inf"), "bold_red", "!"),
)

STATUS_COLORS = {
    SensorStatus.OK: "green",
    SensorStatus.WARN: "yellow",
    SensorStatus.CRITICAL: "red",
    SensorStatus.ERROR: "light_black",
}


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def temp_band(temp: float) -> tuple[str, str]:
    for upper, color, glyph in TEMP_BANDS:
        if temp < upper:
            return color, glyph
    return TEMP_BANDS[-1][1], TEMP_BANDS[-1][2]


class Display:
    """ANSI renderer for the sensor list and the per-poll summary."""

    def __init__(
        self,
        config: DisplayConfig,
        stream: TextIO | None = None,
        version: str = "",
    ) -> None:
        self.config = config
        self.stream = stream or sys.stdout
        self.version = version

    def _c(self, names: str) -> str:
        return parse_colors(names) if self.config.color else ""

    @property
    def _reset(self) -> str:
        return self._c("reset")

    def width(self) -> int:
        cols = shutil.get_terminal_size((80, 24)).columns
        return max(60, min(100, cols - 4))

    def format_temp(self, temp: float | None) -> str:
        if temp is None or temp == SENTINEL:
            return "  N/A  "
        if self.config.fahrenheit:
            return f"{celsius_to_fahrenheit(temp):6.1f}F"
        return f"{temp:6.1f}C"

    def temp_bar(self, temp: float, width: int = BAR_WIDTH) -> str:
        if temp == SENTINEL:
            return f"{self._c('light_black')}[{'.' * width}]{self._reset}"
        if temp > 100:
            filled = width
        elif temp >= 0:
            filled = int(temp / 100.0 * width)
        else:
            filled = 0
        color, glyph = temp_band(temp)
        return f"{self._c(color)}[{glyph * filled}{'.' * (width - filled)}]{self._reset}"

    def fan_speed(self, rpm: int, percent: int) -> str:
        if rpm < 0:
            return f"{self._c('light_black')}  N/A  {self._reset}"
        if percent < 30:
            color = "green"
        elif percent < 60:
            color = "yellow"
        elif percent < 80:
            color = "light_yellow"
        else:
            color = "red"
        return f"{self._c(color)}{rpm:5d} RPM ({percent:3d}%){self._reset}"

    def sparkline(self, history: Iterable[float], width: int = BAR_WIDTH) -> str:
        values = list(history)[-width:]
        if not values:
            return ""
        low, high = min(values), max(values)
        span = high - low
        top = len(SPARK_CHARS) - 1
        chars = []
        for value in values:
            level = top if span == 0 else int((value - low) / span * top)
            chars.append(SPARK_CHARS[level])
        return "".join(chars)

    def header(self) -> list[str]:
        width = self.width()
        cyan = self._c("light_cyan")
        rule = f"{cyan}+{'=' * (width - 2)}+{self._reset}"
        title = "HARDWARE TEMPERATURE MONITOR"
        if self.version:
            title = f"{title} v{self.version}"
        now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return [
            rule,
            f"{cyan}|{self._reset}{self._c('bold_yellow')}{title.center(width - 2)}{self._reset}{cyan}|{self._reset}",
            f"{cyan}|{self._reset}{f'  {now}  |  Real-time Monitoring'.ljust(width - 2)}{cyan}|{self._reset}",
            rule,
        ]

    def footer(self) -> list[str]:
        unit = "F" if self.config.fahrenheit else "C"
        legend = " ".join(
            f"{self._c(color)}{label}{self._reset}"
            for color, label in (
                ("cyan", "<40"),
                ("green", "40-50"),
                ("light_green", "50-60"),
                ("yellow", "60-70"),
                ("light_yellow", "70-80"),
                ("light_red", "80-90"),
                ("bold_red", ">90"),
            )
        )
        controls = f"Controls: {self._c('red')}Ctrl+C{self._reset}=Exit | "
        if self.config.show_fans:
            controls += f"{self._c('purple')}Fan monitoring enabled{self._reset} | "
        controls += f"Refresh: {self._c('cyan')}{self.config.refresh_s}s{self._reset}"
        return [
            "",
            f"{self._c('light_cyan')}{'=' * self.width()}{self._reset}",
            f"Temperature Ranges (C, shown in {unit}): {legend}",
            controls,
        ]

    def sensor_line(self, sensor: Sensor) -> str:
        parts = [
            f"| {sensor.label[:LABEL_WIDTH]:<{LABEL_WIDTH}} ",
            f"{self._c(STATUS_COLORS[sensor.status])}{self.format_temp(sensor.current)}{self._reset} ",
            self.temp_bar(sensor.current),
        ]
        if self.config.show_stats:
            parts.append(
                f" {self._c('light_black')}[{self.format_temp(sensor.min)}->"
                f"{self.format_temp(sensor.max)}]{self._reset}"
            )
        if self.config.show_graphs:
            parts.append(f" {self._c('blue')}{self.sparkline(sensor.history)}{self._reset}")
        if sensor.has_fan and self.config.show_fans:
            parts.append(" " + self.fan_speed(sensor.fan_rpm, sensor.fan_percent))
        if sensor.status is SensorStatus.CRITICAL:
            parts.append(f" {self._c('red')}[!] CRITICAL!{self._reset}")
        elif sensor.status is SensorStatus.WARN:
            parts.append(f" {self._c('yellow')}[!] High{self._reset}")
        return "".join(parts)

    def compact_line(self, sensor: Sensor) -> str:
        return (
            f"{sensor.category.value:<8} {sensor.label[:LABEL_WIDTH]:<{LABEL_WIDTH}} "
            f"{self._c(STATUS_COLORS[sensor.status])}{self.format_temp(sensor.current)}{self._reset}"
        )

    def sensor_group(self, sensors: list[Sensor], category: Category) -> list[str]:
        members = [s for s in sensors if s.category is category and s.active]
        if not members:
            return []
        if self.config.compact:
            return [self.compact_line(s) for s in members]
        lines = [
            "",
            f"{self._c('bold,light_cyan')}+-- {category.value} SENSORS "
            f"{self._c('light_black')}({len(members)} detected) {'-' * 40}{self._reset}",
        ]
        lines.extend(self.sensor_line(s) for s in members)
        return lines

    def fan_section(self, sensors: list[Sensor]) -> list[str]:
        fans = [s for s in sensors if s.has_fan and s.fan_rpm > 0]
        if not fans:
            return []
        lines = [
            "",
            f"{self._c('bold,light_purple')}+-- [FAN] FAN SENSORS "
            f"{self._c('light_black')}({len(fans)} detected) {'-' * 40}{self._reset}",
        ]
        for sensor in fans:
            filled = sensor.fan_percent * FAN_BAR_WIDTH // 100
            bar = f"{self._c('purple')}{'=' * filled}{self._reset}{'.' * (FAN_BAR_WIDTH - filled)}"
            lines.append(
                f"| {sensor.label[:LABEL_WIDTH]:<{LABEL_WIDTH}} "
                f"{self.fan_speed(sensor.fan_rpm, sensor.fan_percent)} [{bar}]"
            )
        return lines

    def statistics(self, stats: SystemStats) -> list[str]:
        lines = ["", f"{self._c('light_cyan')}+-- [STATS] SYSTEM STATISTICS {'-' * 54}{self._reset}"]
        if stats.cpu_count:
            lines.append(
                f"| {self._c('green')}CPU Statistics:{self._reset}  "
                f"Average: {self.format_temp(stats.avg_cpu_temp)}  |  "
                f"Peak: {self.format_temp(stats.max_cpu_temp)}  |  "
                f"Min: {self.format_temp(stats.min_cpu_temp)}"
            )
        if stats.gpu_count:
            lines.append(
                f"| {self._c('purple')}GPU Statistics:{self._reset}  "
                f"Average: {self.format_temp(stats.avg_gpu_temp)}  |  "
                f"Peak: {self.format_temp(stats.max_gpu_temp)}"
            )
        if stats.nvme_count:
            lines.append(
                f"| {self._c('blue')}NVMe Statistics:{self._reset} "
                f"Average: {self.format_temp(stats.avg_nvme_temp)}"
            )
        lines.append(
            f"| {self._c('cyan')}System Status:{self._reset}   "
            f"Active Sensors: {self._c('light_green')}{stats.total_active_sensors}{self._reset}"
            f"  |  Fans: {stats.active_fans}"
            f"  |  Warnings: {self._c('yellow')}{stats.warnings}{self._reset}"
            f"  |  Critical: {self._c('red')}{stats.criticals}{self._reset}"
        )
        return lines

    def render(self, sensors: list[Sensor], stats: SystemStats) -> str:
        lines = self.header()
        for category in Category:
            lines.extend(self.sensor_group(sensors, category))
        if self.config.show_fans:
            lines.extend(self.fan_section(sensors))
        if self.config.show_stats:
            lines.extend(self.statistics(stats))
        lines.extend(self.footer())
        return "\n".join(lines) + "\n"

    def render_sensor_list(self, sensors: list[Sensor]) -> str:
        lines = [f"{self._c('bold,light_cyan')}Detected Temperature Sensors: {len(sensors)}{self._reset}", ""]
        for idx, sensor in enumerate(sensors, start=1):
            fan = f" | fan: {sensor.fan_path}" if sensor.has_fan else ""
            lines.append(
                f"{self._c('bold_yellow')}[{idx:2d}]{self._reset} {sensor.category.value:<8} | "
                f"{sensor.name:<12} | {sensor.label:<28} | crit {sensor.critical:5.1f}C | {sensor.path}{fan}"
            )
        return "\n".join(lines) + "\n"

    def draw(self, sensors: list[Sensor], stats: SystemStats) -> None:
        self.stream.write(CLEAR_SCREEN + self.render(sensors, stats))
        self.stream.flush()

    def enter(self) -> None:
        self.stream.write(ENTER_ALT_SCREEN + HIDE_CURSOR)
        self.stream.flush()

    def exit(self) -> None:
        self.stream.write(SHOW_CURSOR + EXIT_ALT_SCREEN)
        self.stream.flush()
