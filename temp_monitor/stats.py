"""Per-sensor running statistics and the per-poll system summary."""
from __future__ import annotations

import logging
from typing import Iterable

from temp_monitor.classifier import Category
from temp_monitor.models import Sensor, SensorStatus, SystemStats
from temp_monitor.sysfs import SENTINEL, read_int, read_number

WARN_RATIO = 0.85

logger = logging.getLogger(__name__)


def sensor_status(value: float, critical: float) -> SensorStatus:
    if value < 0:
        return SensorStatus.ERROR
    if value >= critical:
        return SensorStatus.CRITICAL
    if value >= critical * WARN_RATIO:
        return SensorStatus.WARN
    return SensorStatus.OK


def fan_percent(rpm: int, max_rpm: int) -> int:
    if rpm <= 0 or max_rpm <= 0:
        return 0
    return min(100, rpm * 100 // max_rpm)


def update_sensor(sensor: Sensor) -> bool:
    """Take one reading for ``sensor`` and fold it into its running stats.

    A failed read only clears ``active``; min, max, average and the sample
    count keep their last good values so a flaky file does not reset them.
    """
    value = read_number(sensor.path)
    if value == SENTINEL:
        if sensor.active:
            logger.debug("Sensor %s/%s stopped responding.", sensor.name, sensor.label)
        sensor.active = False
        return False

    sensor.current = value
    sensor.active = True
    sensor.sample_count += 1
    n = sensor.sample_count

    if n == 1:
        sensor.min = value
        sensor.max = value
        sensor.average = value
    else:
        if value > sensor.max:
            sensor.max = value
        if value < sensor.min:
            sensor.min = value
        sensor.average = (sensor.average * (n - 1) + value) / n

    sensor.history.append(value)
    sensor.status = sensor_status(value, sensor.critical)

    if sensor.has_fan and sensor.fan_path:
        sensor.fan_rpm = read_int(sensor.fan_path, -1)
        sensor.fan_percent = fan_percent(sensor.fan_rpm, sensor.fan_max_rpm)
    return True


def summarize(sensors: Iterable[Sensor]) -> SystemStats:
    stats = SystemStats(min_cpu_temp=999.0)

    for sensor in sensors:
        if not sensor.active or sensor.current == SENTINEL:
            continue
        temp = sensor.current
        stats.total_active_sensors += 1

        if sensor.has_fan and sensor.fan_rpm > 0:
            stats.active_fans += 1
        if sensor.status is SensorStatus.WARN:
            stats.warnings += 1
        elif sensor.status is SensorStatus.CRITICAL:
            stats.criticals += 1

        if sensor.category is Category.CPU:
            stats.avg_cpu_temp += temp
            stats.max_cpu_temp = max(stats.max_cpu_temp, temp)
            stats.min_cpu_temp = min(stats.min_cpu_temp, temp)
            stats.cpu_count += 1
        elif sensor.category is Category.GPU:
            stats.avg_gpu_temp += temp
            stats.max_gpu_temp = max(stats.max_gpu_temp, temp)
            stats.gpu_count += 1
        elif sensor.category is Category.NVME:
            stats.avg_nvme_temp += temp
            stats.nvme_count += 1
        elif sensor.category is Category.CHIPSET:
            stats.chipset_count += 1

    if stats.cpu_count:
        stats.avg_cpu_temp /= stats.cpu_count
    else:
        stats.min_cpu_temp = 0.0
    if stats.gpu_count:
        stats.avg_gpu_temp /= stats.gpu_count
    if stats.nvme_count:
        stats.avg_nvme_temp /= stats.nvme_count
    return stats


def poll_once(sensors: list[Sensor]) -> SystemStats:
    for sensor in sensors:
        update_sensor(sensor)
    stats = summarize(sensors)
    logger.debug(
        "Poll: %s active, %s warn, %s critical.",
        stats.total_active_sensors,
        stats.warnings,
        stats.criticals,
    )
    return stats
