from __future__ import annotations

from datetime import datetime, timezone
import logging
import socket
import time
from typing import Any

import psutil

from temp_monitor.models import Sensor, SystemStats

SCHEMA_NAME = "temp-monitor-snapshot"
SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)


def collect_host() -> dict[str, Any]:
    host: dict[str, Any] = {
        "name": socket.gethostname(),
        "cpu_count": psutil.cpu_count(logical=True) or 1,
    }
    try:
        host["uptime_s"] = max(0, int(time.time() - psutil.boot_time()))
    except (OSError, RuntimeError):
        logger.debug("Failed to read boot time.")
    try:
        host["memory_total_bytes"] = int(psutil.virtual_memory().total)
    except (OSError, RuntimeError):
        logger.debug("Failed to read total memory.")
    return host


def build_snapshot(
    sensors: list[Sensor],
    stats: SystemStats,
    host: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "schema": {"name": SCHEMA_NAME, "version": SCHEMA_VERSION},
        "ts": datetime.now(timezone.utc).isoformat(),
        "host": host if host is not None else collect_host(),
        "sensors": [sensor.as_dict() for sensor in sensors],
        "stats": stats.as_dict(),
    }
