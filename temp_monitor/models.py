from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from temp_monitor.classifier import Category
from temp_monitor.sysfs import SENTINEL

DEFAULT_CRITICAL = 90.0
HISTORY_SIZE = 60


class SensorStatus(str, Enum):
    OK = "OK"
    WARN = "WARN"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"


@dataclass
class Sensor:
    """One temperature channel, mutated in place on every poll."""

    name: str
    label: str
    path: str
    category: Category
    critical: float = DEFAULT_CRITICAL

    current: float = SENTINEL
    min: float | None = None
    max: float | None = None
    average: float | None = None
    sample_count: int = 0
    status: SensorStatus = SensorStatus.OK
    active: bool = True
    history: deque = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))

    has_fan: bool = False
    fan_path: str | None = None
    fan_rpm: int = 0
    fan_max_rpm: int = 0
    fan_percent: int = 0

    def as_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "path": self.path,
            "category": self.category.value,
            "critical_c": self.critical,
            "active": self.active,
            "status": self.status.value,
            "samples": self.sample_count,
        }
        if self.current != SENTINEL:
            entry["temp_c"] = self.current
        if self.sample_count:
            entry["min_c"] = self.min
            entry["max_c"] = self.max
            entry["avg_c"] = round(self.average, 3)
        if self.has_fan:
            entry["fan"] = {
                "path": self.fan_path,
                "rpm": self.fan_rpm,
                "max_rpm": self.fan_max_rpm,
                "percent": self.fan_percent,
            }
        return entry


@dataclass
class FanChannel:
    path: str
    directory: str
    max_rpm: int
    sensor: Sensor | None = None


@dataclass
class SystemStats:
    avg_cpu_temp: float = 0.0
    max_cpu_temp: float = 0.0
    min_cpu_temp: float = 0.0
    avg_gpu_temp: float = 0.0
    max_gpu_temp: float = 0.0
    avg_nvme_temp: float = 0.0

    cpu_count: int = 0
    gpu_count: int = 0
    nvme_count: int = 0
    chipset_count: int = 0
    total_active_sensors: int = 0
    active_fans: int = 0

    warnings: int = 0
    criticals: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "cpu": {
                "count": self.cpu_count,
                "avg_c": round(self.avg_cpu_temp, 3),
                "max_c": self.max_cpu_temp,
                "min_c": self.min_cpu_temp,
            },
            "gpu": {
                "count": self.gpu_count,
                "avg_c": round(self.avg_gpu_temp, 3),
                "max_c": self.max_gpu_temp,
            },
            "nvme": {"count": self.nvme_count, "avg_c": round(self.avg_nvme_temp, 3)},
            "chipset": {"count": self.chipset_count},
            "active_sensors": self.total_active_sensors,
            "active_fans": self.active_fans,
            "warnings": self.warnings,
            "criticals": self.criticals,
        }
